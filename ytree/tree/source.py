"""行数据源

TreeFlattener 只通过 RowSource 读取数据，行统一表示为 字段名 -> 值 的字典。

- SQLAlchemyRowSource: 从 ORM 模型读取，关联关系序列化为嵌套字典
- MemoryRowSource: 从内存列表读取，用于测试或非数据库数据
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.orm import Session, selectinload

from ytree.exceptions import ErrorCode, TreeConfigException
from ytree.log import get_logger

logger = get_logger()

Row = Dict[str, Any]


def get_value(row: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """按字段名取值，支持 "translation.name" 形式的嵌套路径

    完整键优先，找不到时再按点号逐级查找。
    """
    if key in row:
        return row[key]
    value: Any = row
    for part in key.split("."):
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return default
    return value


class RowSource(ABC):
    """行数据源抽象基类"""

    @property
    @abstractmethod
    def entity_name(self) -> str:
        """实体名称，用于缓存键与失效标签"""
        pass

    @abstractmethod
    def fetch_all(
        self,
        sort_field: str,
        where: Any = None,
        with_relations: Sequence[str] = (),
    ) -> List[Row]:
        """按 sort_field 升序读取全部行

        Args:
            sort_field: 排序字段
            where: 过滤条件，具体形式由实现决定
            with_relations: 需要一并加载的关联
        """
        pass

    @abstractmethod
    def fetch_one(
        self,
        field: str,
        value: Any,
        with_relations: Sequence[str] = (),
    ) -> Optional[Row]:
        """读取 field == value 的第一行，不存在时返回 None"""
        pass


class SQLAlchemyRowSource(RowSource):
    """基于 SQLAlchemy ORM 模型的数据源

    where 支持三种形式:
        - 字典: {"is_deleted": False}，按等值过滤
        - 单个表达式: Category.is_deleted.is_(False)
        - 表达式列表/元组: [Category.level < 3, Category.is_active.is_(True)]

    使用示例:
        source = SQLAlchemyRowSource(Category, session)
        rows = source.fetch_all("sort_order", where={"is_deleted": False},
                                with_relations=["translation"])
    """

    def __init__(self, model: type, session: Session):
        self._model = model
        self._session = session
        self._mapper = sa_inspect(model)

    @property
    def entity_name(self) -> str:
        return self._model.__name__

    def _column(self, name: str):
        if name not in self._mapper.all_orm_descriptors:
            raise TreeConfigException(
                f"模型 {self.entity_name} 不存在字段: {name}",
                code=ErrorCode.UNKNOWN_FIELD,
            )
        return getattr(self._model, name)

    def _relationship(self, name: str):
        if name not in self._mapper.relationships:
            raise TreeConfigException(
                f"模型 {self.entity_name} 不存在关联: {name}",
                code=ErrorCode.UNKNOWN_FIELD,
            )
        return getattr(self._model, name)

    def _apply_where(self, stmt, where: Any):
        if where is None:
            return stmt
        if isinstance(where, Mapping):
            if not where:
                return stmt
            return stmt.where(*[self._column(k) == v for k, v in where.items()])
        if isinstance(where, (list, tuple)):
            return stmt.where(*where) if where else stmt
        return stmt.where(where)

    def _to_row(self, instance: Any, relations: Iterable[str] = ()) -> Row:
        row = {
            attr.key: getattr(instance, attr.key)
            for attr in sa_inspect(instance).mapper.column_attrs
        }
        for name in relations:
            related = getattr(instance, name)
            if related is None:
                row[name] = None
            elif isinstance(related, (list, tuple, set)):
                row[name] = [self._to_row(item) for item in related]
            else:
                row[name] = self._to_row(related)
        return row

    def fetch_all(
        self,
        sort_field: str,
        where: Any = None,
        with_relations: Sequence[str] = (),
    ) -> List[Row]:
        relations = list(with_relations or ())
        stmt = select(self._model).order_by(self._column(sort_field).asc())
        if relations:
            stmt = stmt.options(*[selectinload(self._relationship(r)) for r in relations])
        stmt = self._apply_where(stmt, where)

        instances = self._session.scalars(stmt).all()
        logger.debug(f"Fetched {len(instances)} rows from {self.entity_name}")
        return [self._to_row(instance, relations) for instance in instances]

    def fetch_one(
        self,
        field: str,
        value: Any,
        with_relations: Sequence[str] = (),
    ) -> Optional[Row]:
        relations = list(with_relations or ())
        stmt = select(self._model).where(self._column(field) == value).limit(1)
        if relations:
            stmt = stmt.options(*[selectinload(self._relationship(r)) for r in relations])
        instance = self._session.scalars(stmt).first()
        if instance is None:
            return None
        return self._to_row(instance, relations)


def _sort_key(field: str) -> Callable[[Row], Any]:
    # 缺少排序字段的行排在最后
    def key(row: Row):
        value = row.get(field)
        return (value is None, value if value is not None else 0)
    return key


class MemoryRowSource(RowSource):
    """内存数据源

    where 支持字典（等值过滤）或 row -> bool 的谓词。注意 TreeDataOptions
    会把裸函数当作延迟计算，谓词需要写成 Deferred(value=predicate) 或
    lambda: predicate。

    使用示例:
        source = MemoryRowSource([
            {"id": 1, "parent_id": 0, "name": "Root", "sort_order": 1},
            {"id": 2, "parent_id": 1, "name": "Child", "sort_order": 2},
        ], entity_name="Category")
    """

    def __init__(self, rows: Iterable[Mapping[str, Any]], entity_name: str = "MemoryRow"):
        self._rows = [dict(row) for row in rows]
        self._entity_name = entity_name
        self.fetch_all_calls = 0
        self.fetch_one_calls = 0

    @property
    def entity_name(self) -> str:
        return self._entity_name

    def _matches(self, row: Row, where: Any) -> bool:
        if where is None:
            return True
        if isinstance(where, Mapping):
            return all(row.get(k) == v for k, v in where.items())
        if callable(where):
            return bool(where(row))
        raise TreeConfigException(
            f"MemoryRowSource 不支持的过滤条件类型: {type(where).__name__}",
            code=ErrorCode.INVALID_CONFIG,
        )

    def fetch_all(
        self,
        sort_field: str,
        where: Any = None,
        with_relations: Sequence[str] = (),
    ) -> List[Row]:
        self.fetch_all_calls += 1
        rows = [dict(row) for row in self._rows if self._matches(row, where)]
        return sorted(rows, key=_sort_key(sort_field))

    def fetch_one(
        self,
        field: str,
        value: Any,
        with_relations: Sequence[str] = (),
    ) -> Optional[Row]:
        self.fetch_one_calls += 1
        for row in self._rows:
            if row.get(field) == value:
                return dict(row)
        return None


__all__ = [
    "Row",
    "get_value",
    "RowSource",
    "SQLAlchemyRowSource",
    "MemoryRowSource",
]
