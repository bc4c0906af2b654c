"""配置模块

提供配置管理功能：
- AppSettings: 聚合配置，支持 YAML + 环境变量
- 子配置类: TreeDataSettings, CacheSettings, LoggingSettings
- ConfigLoader: YAML 配置加载器

快速开始:
    from ytree.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)

配置优先级: 构造参数 > 环境变量 > 默认值
"""

from .settings import (
    AppSettings,
    TreeDataSettings,
    CacheSettings,
    LoggingSettings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "AppSettings",
    "TreeDataSettings",
    "CacheSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_yaml_config",
]
