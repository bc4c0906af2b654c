"""树形数据模块

将邻接表数据转换为 jsTree 扁平节点列表。

主要组件:
- TreeFlattener: 构建节点列表（祖先补全、缓存、选中状态）
- TreeDataOptions / TreeSelection: 构建选项与单次请求的选中状态
- RowSource: 数据源接口，SQLAlchemyRowSource / MemoryRowSource 两种实现

使用示例:
    from ytree.tree import TreeFlattener, TreeDataOptions, TreeSelection, SQLAlchemyRowSource

    items = TreeFlattener.build(
        SQLAlchemyRowSource(Category, session),
        TreeDataOptions(where={"is_deleted": False}),
        TreeSelection.from_query(request.query_params, options),
        cache=backend,
    )
"""

from .options import Deferred, TreeDataOptions, TreeSelection
from .source import (
    Row,
    get_value,
    RowSource,
    SQLAlchemyRowSource,
    MemoryRowSource,
)
from .flattener import (
    ROOT_SENTINEL,
    CACHE_KEY_NAMESPACE,
    is_empty_parent,
    build_cache_key,
    resolve_ancestors,
    row_to_item,
    build_item_mapping,
    apply_selection,
    TreeFlattener,
)

__all__ = [
    "Deferred",
    "TreeDataOptions",
    "TreeSelection",
    "Row",
    "get_value",
    "RowSource",
    "SQLAlchemyRowSource",
    "MemoryRowSource",
    "ROOT_SENTINEL",
    "CACHE_KEY_NAMESPACE",
    "is_empty_parent",
    "build_cache_key",
    "resolve_ancestors",
    "row_to_item",
    "build_item_mapping",
    "apply_selection",
    "TreeFlattener",
]
