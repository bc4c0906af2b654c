"""接口模块"""

from .tree_data_api import (
    JSON_MEDIA_TYPE,
    FullTreeDataAction,
    create_tree_data_router,
)

__all__ = [
    "JSON_MEDIA_TYPE",
    "FullTreeDataAction",
    "create_tree_data_router",
]
