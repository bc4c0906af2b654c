"""
YTree - jsTree 树形数据服务

提供邻接表扁平化、标签失效缓存、FastAPI 接口、日志与配置等功能
"""

from .version import __version__, __author__, __description__

# 导出日志模块（需最先导入，其他模块依赖它）
from .log import (
    setup_logger,
    setup_root_logger,
    logger,
    get_logger,
)

# 导出配置
from .config import (
    AppSettings,
    TreeDataSettings,
    CacheSettings,
    LoggingSettings,
    ConfigLoader,
    load_yaml_config,
)

# 导出异常处理模块
from .exceptions import (
    ErrorCode,
    BusinessException,
    TreeConfigException,
    register_exception_handlers,
)

# 导出缓存模块
from .cache import (
    CacheBackend,
    MemoryBackend,
    RedisBackend,
    create_cache_backend,
    common_tag,
    tag_invalidator,
    no_auto_invalidation,
)

# 导出树形数据模块
from .tree import (
    Deferred,
    TreeDataOptions,
    TreeSelection,
    RowSource,
    SQLAlchemyRowSource,
    MemoryRowSource,
    TreeFlattener,
)

# 导出接口与控件
from .api import FullTreeDataAction, create_tree_data_router
from .widgets import TreeInput

__all__ = [
    # 版本信息
    "__version__",
    "__author__",
    "__description__",

    # Log
    "setup_logger",
    "setup_root_logger",
    "logger",
    "get_logger",

    # Config
    "AppSettings",
    "TreeDataSettings",
    "CacheSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_yaml_config",

    # Exceptions
    "ErrorCode",
    "BusinessException",
    "TreeConfigException",
    "register_exception_handlers",

    # Cache
    "CacheBackend",
    "MemoryBackend",
    "RedisBackend",
    "create_cache_backend",
    "common_tag",
    "tag_invalidator",
    "no_auto_invalidation",

    # Tree
    "Deferred",
    "TreeDataOptions",
    "TreeSelection",
    "RowSource",
    "SQLAlchemyRowSource",
    "MemoryRowSource",
    "TreeFlattener",

    # API / Widgets
    "FullTreeDataAction",
    "create_tree_data_router",
    "TreeInput",
]
