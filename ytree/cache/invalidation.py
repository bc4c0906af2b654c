"""缓存标签失效模块

模型数据变更时按标签清除树形缓存。

使用示例:
    from ytree.cache import MemoryBackend, tag_invalidator

    backend = MemoryBackend()
    tag_invalidator.register(Category, backend)

    # 之后 Category 插入/更新/删除时，CommonTag:Category 关联的缓存全部失效
"""

from typing import Any, Dict, List, Set, Type, Union
import threading

from sqlalchemy import event

from ytree.log import get_logger

logger = get_logger("ytree.cache.invalidation")

COMMON_TAG_PREFIX = "CommonTag"

DEFAULT_EVENTS = ("after_insert", "after_update", "after_delete")


def common_tag(model: Union[Type, str]) -> str:
    """生成实体的公共失效标签

    Args:
        model: 模型类或实体名称

    Returns:
        形如 "CommonTag:Category" 的标签
    """
    name = model if isinstance(model, str) else model.__name__
    return f"{COMMON_TAG_PREFIX}:{name}"


class TagInvalidator:
    """缓存标签失效管理器

    监听 SQLAlchemy 模型事件，清除该模型公共标签下的缓存。
    树形结构的任何增删改都会改变整棵树，因此默认同时监听插入事件。

    使用示例:
        invalidator = TagInvalidator()
        invalidator.register(Category, backend)

        # 只在删除时失效
        invalidator.register(Category, backend, events=("after_delete",))
    """

    def __init__(self):
        self._registrations: Dict[Type, List[dict]] = {}
        self._listened_events: Dict[Type, Set[str]] = {}
        self._lock = threading.RLock()
        self._enabled = True

    def register(
        self,
        model: Type,
        backend: Any,
        events: tuple = DEFAULT_EVENTS,
    ) -> "TagInvalidator":
        """注册模型与缓存后端的关联

        Args:
            model: SQLAlchemy 模型类
            backend: 支持 invalidate_tags 的缓存后端
            events: 要监听的事件元组

        Returns:
            self，支持链式调用

        Raises:
            ValueError: backend 不支持标签失效
        """
        if not hasattr(backend, "invalidate_tags"):
            raise ValueError(
                f"backend 必须支持 invalidate_tags，"
                f"但收到的是 {type(backend).__name__}"
            )

        with self._lock:
            self._registrations.setdefault(model, []).append({
                "backend": backend,
                "events": events,
            })

            listened = self._listened_events.setdefault(model, set())
            new_events = set(events) - listened
            for event_name in new_events:
                if event_name in DEFAULT_EVENTS:
                    event.listen(
                        model,
                        event_name,
                        self._create_handler(model, event_name),
                        propagate=True,
                    )
                    listened.add(event_name)
                    logger.debug(f"Set up {event_name} listener for {model.__name__}")

        return self

    def _create_handler(self, model: Type, event_name: str):
        def handler(mapper, connection, target):
            self.invalidate(model, event_name)

        return handler

    def invalidate(self, model: Type, event_name: str = None) -> int:
        """清除模型公共标签下的缓存

        Args:
            model: 模型类
            event_name: 触发的事件名，为 None 时忽略事件过滤

        Returns:
            删除的缓存条目数
        """
        if not self._enabled:
            return 0

        tag = common_tag(model)
        count = 0
        for reg in self._registrations.get(model, []):
            if event_name is not None and event_name not in reg["events"]:
                continue
            try:
                count += reg["backend"].invalidate_tags(tag)
            except Exception as e:
                logger.warning(f"Failed to invalidate cache for {model.__name__}: {e}")

        if count:
            logger.debug(f"Auto-invalidated {count} cache entries: tag={tag} on {event_name}")
        return count

    def unregister(self, model: Type) -> bool:
        """取消模型的所有注册（SQLAlchemy 监听器保留，但不再有任何动作）"""
        with self._lock:
            return self._registrations.pop(model, None) is not None

    def disable(self):
        """临时禁用自动失效"""
        self._enabled = False
        logger.debug("Cache auto-invalidation disabled")

    def enable(self):
        """启用自动失效"""
        self._enabled = True
        logger.debug("Cache auto-invalidation enabled")

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def get_registrations(self) -> Dict[str, List[dict]]:
        return {
            m.__name__: [
                {"backend": type(reg["backend"]).__name__, "events": reg["events"]}
                for reg in regs
            ]
            for m, regs in self._registrations.items()
        }


# 全局实例
tag_invalidator = TagInvalidator()


class InvalidationContext:
    """缓存失效控制上下文

    批量导入节点时临时禁用自动失效，导入完成后手动按标签清除一次。

    使用示例:
        with no_auto_invalidation():
            for data in bulk_data:
                session.add(Category(**data))
            session.commit()
        backend.invalidate_tags(common_tag(Category))
    """

    def __init__(self, invalidator: TagInvalidator):
        self._invalidator = invalidator
        self._was_enabled = True

    def __enter__(self):
        self._was_enabled = self._invalidator.is_enabled
        self._invalidator.disable()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._was_enabled:
            self._invalidator.enable()
        return False


def no_auto_invalidation(invalidator: TagInvalidator = None) -> InvalidationContext:
    """创建禁用自动失效的上下文"""
    return InvalidationContext(invalidator or tag_invalidator)


__all__ = [
    "COMMON_TAG_PREFIX",
    "common_tag",
    "TagInvalidator",
    "tag_invalidator",
    "InvalidationContext",
    "no_auto_invalidation",
]
