"""树形数据选项

TreeDataOptions 是一次性构建、之后只读的配置对象，TreeSelection 描述单次
请求的选中状态。两者都传入 TreeFlattener.build，构建过程本身不持有状态。
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Callable, List, Mapping, Optional

_UNSET = object()


class Deferred:
    """字面量或延迟计算

    配置项既可以直接给值，也可以给一个无参函数，在每次构建开始时求值
    （例如依赖当前用户的过滤条件）。

    使用示例:
        Deferred.of({"is_deleted": False}).resolve()      # 字面量
        Deferred.of(lambda: {"owner_id": current_user()}) # 延迟计算
    """

    __slots__ = ("_value", "_factory")

    def __init__(self, value: Any = None, factory: Optional[Callable[[], Any]] = None):
        self._value = value
        self._factory = factory

    @classmethod
    def of(cls, value: Any) -> "Deferred":
        if isinstance(value, Deferred):
            return value
        if callable(value):
            return cls(factory=value)
        return cls(value=value)

    @property
    def is_deferred(self) -> bool:
        return self._factory is not None

    def resolve(self) -> Any:
        if self._factory is not None:
            return self._factory()
        return self._value

    def __repr__(self) -> str:
        if self._factory is not None:
            return f"Deferred(factory={self._factory!r})"
        return f"Deferred({self._value!r})"


@dataclass(frozen=True)
class TreeDataOptions:
    """树形数据构建选项

    使用示例:
        options = TreeDataOptions(
            label_field="translation.name",
            where={"is_deleted": False},
            with_relations=("translation",),
            icons={"default": "fa fa-file", "dir": "fa fa-folder-o"},
        )

        # 从配置创建
        options = TreeDataOptions.from_settings(settings.tree, where=lambda: {...})
    """
    id_field: str = "id"
    label_field: str = "name"
    parent_field: str = "parent_id"
    icon_field: str = "icon"
    type_attr_field: Optional[str] = None
    vary_by_type_field: Optional[str] = None
    sort_field: str = "sort_order"
    where: Any = None
    with_relations: Any = ()
    recursive_parents: bool = True
    cache_enabled: bool = True
    cache_key_prefix: Any = "FullTree"
    cache_lifetime: int = 86400
    icons: Optional[Mapping[str, str]] = None
    query_parent_param: str = "id"
    query_selected_param: str = "selected_id"
    selected_list_param: str = "selected"

    def __post_init__(self):
        # 可延迟的配置项统一包装为 Deferred
        for name in ("where", "with_relations", "cache_key_prefix"):
            object.__setattr__(self, name, Deferred.of(getattr(self, name)))
        if self.icons is not None:
            object.__setattr__(self, "icons", dict(self.icons))

    @classmethod
    def from_settings(cls, settings: Any, **overrides) -> "TreeDataOptions":
        """从 TreeDataSettings 创建选项

        Args:
            settings: TreeDataSettings 实例（或具有同名属性的对象）
            **overrides: 覆盖项，例如 where / with_relations 等无法写进配置文件的值
        """
        values = {}
        for f in fields(cls):
            value = getattr(settings, f.name, _UNSET)
            if value is not _UNSET:
                values[f.name] = value
        values.update(overrides)
        return cls(**values)

    def evolve(self, **changes) -> "TreeDataOptions":
        """返回修改了部分字段的新选项"""
        return replace(self, **changes)


@dataclass(frozen=True)
class TreeSelection:
    """单次请求的选中状态

    节点映射的键是 str(id)，构造时统一转为字符串，TreeSelection(selected_id=2)
    与 TreeSelection(selected_id="2") 等价。

    Attributes:
        selected_id: 单选节点（优先）
        parent_id: 单选节点的回退值
        selected: 逗号分隔的多选节点，也可以传 ID 列表
    """
    selected_id: Optional[str] = None
    parent_id: Optional[str] = None
    selected: str = ""

    def __post_init__(self):
        for name in ("selected_id", "parent_id"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, str(value))
        selected = self.selected
        if selected is None:
            selected = ""
        elif isinstance(selected, (list, tuple, set)):
            selected = ",".join(str(node) for node in selected)
        object.__setattr__(self, "selected", str(selected))

    @classmethod
    def from_query(cls, params: Mapping[str, Any], options: TreeDataOptions) -> "TreeSelection":
        """从查询参数读取选中状态"""
        return cls(
            selected_id=params.get(options.query_selected_param),
            parent_id=params.get(options.query_parent_param),
            selected=params.get(options.selected_list_param) or "",
        )

    @property
    def current_id(self) -> Optional[str]:
        if self.selected_id is not None:
            return self.selected_id
        return self.parent_id

    @property
    def selected_ids(self) -> List[str]:
        return [node for node in self.selected.split(",") if node != ""]


__all__ = [
    "Deferred",
    "TreeDataOptions",
    "TreeSelection",
]
