"""树形数据扁平化

将邻接表（每行记录父节点 ID）转换为 jsTree 可直接使用的扁平节点列表。

构建流程:
    1. 读取缓存（启用时），命中则跳到第 5 步
    2. 按排序字段读取全部行，应用过滤条件与关联加载
    3. 补全祖先节点（recursive_parents）
    4. 行 -> 节点，按 ID 建立映射并写入缓存（不含选中状态）
    5. 标记选中状态：先单选（opened + selected），再多选（selected，整体覆盖）
    6. 按映射插入顺序输出

使用示例:
    from ytree.tree import TreeFlattener, TreeDataOptions, TreeSelection, MemoryRowSource

    source = MemoryRowSource(rows, entity_name="Category")
    items = TreeFlattener.build(
        source,
        TreeDataOptions(cache_enabled=False),
        TreeSelection(selected_id="2"),
    )
"""

import copy
import json
from typing import Any, Dict, List, Optional, Sequence

from ytree.cache import CacheBackend, common_tag
from ytree.exceptions import ErrorCode, TreeConfigException
from ytree.log import get_logger
from .options import TreeDataOptions, TreeSelection
from .source import Row, RowSource, get_value

logger = get_logger()

ROOT_SENTINEL = "#"

CACHE_KEY_NAMESPACE = "AdjacencyFullTreeData"

ItemMapping = Dict[str, Dict[str, Any]]


def is_empty_parent(value: Any) -> bool:
    """父节点值为空、0、"0"、False 时视为根节点"""
    return value is None or value == "" or value == 0 or value == "0"


def build_cache_key(prefix: Any, entity_name: str, sort_field: str) -> str:
    return f"{CACHE_KEY_NAMESPACE}:{prefix}:{entity_name}:{sort_field}"


def resolve_ancestors(
    source: RowSource,
    rows: List[Row],
    id_field: str = "id",
    parent_field: str = "parent_id",
    with_relations: Sequence[str] = (),
) -> List[Row]:
    """向上查找所有行的祖先节点

    每个祖先 ID 只查询一次，多条路径共享的祖先只追加一次。
    已访问过的 ID 会终止当前链路，数据中存在环时也能结束。

    Args:
        source: 数据源，祖先通过 fetch_one 单独查询
        rows: 初始行
        id_field: 主键字段
        parent_field: 父节点字段
        with_relations: 祖先行同样加载这些关联，内容与主查询的行保持一致

    Returns:
        去重后的祖先行，按发现顺序排列
    """
    ancestors: List[Row] = []
    visited = set()

    for row in rows:
        parent = row.get(parent_field)
        while not is_empty_parent(parent) and parent not in visited:
            visited.add(parent)
            parent_row = source.fetch_one(id_field, parent, with_relations)
            if parent_row is None:
                break
            if parent_row not in ancestors:
                ancestors.append(parent_row)
            parent = parent_row.get(parent_field)

    return ancestors


def _resolve_icon(row: Row, options: TreeDataOptions) -> str:
    icons = options.icons
    icon = row.get(options.icon_field)
    if icon and icon in icons:
        return icons[icon]
    if "default" not in icons:
        raise TreeConfigException(
            f"图标配置缺少 default，无法处理图标值: {icon!r}",
            code=ErrorCode.ICON_NOT_CONFIGURED,
        )
    return icons["default"]


def row_to_item(row: Row, options: TreeDataOptions) -> Dict[str, Any]:
    """将一行数据转换为 jsTree 节点"""
    parent = row.get(options.parent_field)
    item = {
        "id": row.get(options.id_field, 0),
        "parent": ROOT_SENTINEL if is_empty_parent(parent) else parent,
        "text": get_value(row, options.label_field, "item"),
        "a_attr": {
            "data-id": row.get(options.id_field),
            "data-parent_id": parent,
        },
    }
    if options.type_attr_field is not None:
        item["a_attr"]["data-type"] = row.get(options.type_attr_field)

    if options.icons is not None:
        item["icon"] = _resolve_icon(row, options)

    if options.vary_by_type_field is not None:
        item["type"] = row.get(options.vary_by_type_field)

    return item


def build_item_mapping(rows: List[Row], options: TreeDataOptions) -> ItemMapping:
    """行 -> 节点映射，键为 str(id)

    重复 ID 以后出现的为准（祖先行追加在末尾，内容与原行一致）。
    """
    result: ItemMapping = {}
    for row in rows:
        item = row_to_item(row, options)
        result[str(item["id"])] = item
    return result


def apply_selection(result: ItemMapping, selection: TreeSelection) -> ItemMapping:
    """在映射上原地标记选中状态

    单选节点合并 {"opened": True, "selected": True}；随后多选列表中的节点
    整体覆盖为 {"selected": True}。同一节点两者都命中时以多选为准。
    """
    current_id = selection.current_id
    if current_id is not None and current_id in result:
        result[current_id] = {
            **result[current_id],
            "state": {"opened": True, "selected": True},
        }

    for node in selection.selected_ids:
        if node in result:
            result[node]["state"] = {"selected": True}

    return result


class TreeFlattener:
    """树形数据构建器

    无状态，所有输入通过参数传入。缓存中只保存未标记选中状态的节点映射，
    写入与读取时都会深拷贝，选中状态不会泄漏到其他请求。
    """

    @staticmethod
    def load_items(
        source: RowSource,
        options: TreeDataOptions,
        cache: Optional[CacheBackend] = None,
    ) -> ItemMapping:
        """读取（或从缓存取得）未标记选中状态的节点映射"""
        use_cache = options.cache_enabled and cache is not None

        if use_cache:
            cache_key = build_cache_key(
                options.cache_key_prefix.resolve(), source.entity_name, options.sort_field
            )
            cached = cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Tree cache hit: {cache_key}")
                return copy.deepcopy(cached)
            logger.debug(f"Tree cache miss: {cache_key}")

        relations = tuple(options.with_relations.resolve() or ())
        rows = source.fetch_all(
            options.sort_field,
            where=options.where.resolve(),
            with_relations=relations,
        )

        if options.recursive_parents and rows:
            ancestors = resolve_ancestors(
                source, rows, options.id_field, options.parent_field, relations
            )
            logger.debug(f"Resolved {len(ancestors)} ancestor rows for {source.entity_name}")
            rows = rows + ancestors

        result = build_item_mapping(rows, options)

        if use_cache:
            cache.set(
                cache_key,
                copy.deepcopy(result),
                ttl=options.cache_lifetime,
                tags=[common_tag(source.entity_name)],
            )

        return result

    @classmethod
    def build(
        cls,
        source: RowSource,
        options: TreeDataOptions,
        selection: Optional[TreeSelection] = None,
        cache: Optional[CacheBackend] = None,
    ) -> List[Dict[str, Any]]:
        """构建 jsTree 节点列表

        Args:
            source: 行数据源
            options: 构建选项
            selection: 选中状态，None 表示不选中任何节点
            cache: 缓存后端；options.cache_enabled 为 False 或未提供时不使用缓存

        Returns:
            按映射插入顺序排列的节点列表
        """
        result = cls.load_items(source, options, cache)
        apply_selection(result, selection or TreeSelection())
        return list(result.values())

    @classmethod
    def build_json(
        cls,
        source: RowSource,
        options: TreeDataOptions,
        selection: Optional[TreeSelection] = None,
        cache: Optional[CacheBackend] = None,
    ) -> str:
        """构建并序列化为 JSON 文本"""
        return json.dumps(
            cls.build(source, options, selection, cache),
            ensure_ascii=False,
            default=str,
        )


__all__ = [
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
