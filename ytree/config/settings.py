"""
配置模块
提供树形数据服务的默认配置，业务项目可以继承并覆盖
"""

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class TreeDataSettings(BaseSettings):
    """树形数据接口配置

    字段名与查询参数名都可以按模型调整，默认值与 jsTree 约定一致。

    使用示例:
        from ytree.config import TreeDataSettings

        tree_config = TreeDataSettings(
            label_field="title",
            sort_field="position",
            cache_key_prefix="CategoryTree",
        )
    """
    id_field: str = Field(default="id", description="主键字段")
    label_field: str = Field(default="name", description="节点文本字段，支持 a.b 形式的嵌套路径")
    parent_field: str = Field(default="parent_id", description="父节点字段")
    icon_field: str = Field(default="icon", description="图标字段")
    type_attr_field: Optional[str] = Field(default=None, description="写入 a_attr.data-type 的字段")
    vary_by_type_field: Optional[str] = Field(default=None, description="写入节点 type 的字段")
    sort_field: str = Field(default="sort_order", description="排序字段（升序）")
    recursive_parents: bool = Field(default=True, description="是否补全所有祖先节点")
    cache_enabled: bool = Field(default=True, description="是否启用缓存")
    cache_key_prefix: str = Field(default="FullTree", description="缓存键前缀，不同过滤条件的接口应使用不同前缀")
    cache_lifetime: int = Field(default=86400, description="缓存有效期（秒）")
    icons: Optional[Dict[str, str]] = Field(default=None, description="图标映射，需包含 default")
    query_parent_param: str = Field(default="id", description="父节点查询参数")
    query_selected_param: str = Field(default="selected_id", description="选中节点查询参数")
    selected_list_param: str = Field(default="selected", description="多选节点查询参数（逗号分隔）")

    class Config:
        env_prefix = "YTREE_TREE_"


class CacheSettings(BaseSettings):
    """缓存配置

    使用示例:
        from ytree.config import CacheSettings

        cache_config = CacheSettings(backend="redis", redis_url="redis://localhost:6379/0")
    """
    backend: str = Field(default="memory", description="缓存后端：memory 或 redis")
    maxsize: int = Field(default=1000, description="内存缓存最大条目数")
    ttl: int = Field(default=86400, description="默认过期时间（秒）")
    redis_url: str = Field(default="", description="Redis连接URL")
    redis_prefix: str = Field(default="ytree:", description="Redis 键前缀")

    class Config:
        env_prefix = "YTREE_CACHE_"


class LoggingSettings(BaseSettings):
    """日志配置

    使用示例:
        from ytree.config import LoggingSettings

        log_config = LoggingSettings(level="DEBUG", file_path="logs/tree.log")
    """
    level: str = Field(default="INFO", description="日志级别")
    file_path: str = Field(default="", description="日志文件路径，为空时不写文件")
    file_max_bytes: int = Field(default=10 * 1024 * 1024, description="单个日志文件最大字节数")
    file_backup_count: int = Field(default=5, description="保留的备份文件数量")
    file_encoding: str = Field(default="utf-8", description="文件编码")
    enable_console: bool = Field(default=True, description="是否启用控制台输出")

    class Config:
        env_prefix = "YTREE_LOG_"


class AppSettings(BaseSettings):
    """应用配置

    聚合各子配置，可直接从 YAML 加载:

        settings = load_yaml_config("config/settings.yaml", AppSettings)

    配置文件示例:
        tree:
          label_field: title
          cache_lifetime: 3600
        cache:
          backend: redis
          redis_url: redis://localhost:6379/0
        logging:
          level: DEBUG
    """
    tree: TreeDataSettings = Field(default_factory=TreeDataSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_prefix = "YTREE_"
        env_nested_delimiter = "__"
