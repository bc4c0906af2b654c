"""缓存模块

提供支持标签失效的缓存后端，以及模型变更时按标签自动失效。

使用示例:
    from ytree.cache import MemoryBackend, common_tag, tag_invalidator

    backend = MemoryBackend(ttl=86400)
    backend.set("key", value, tags=[common_tag(Category)])

    # Category 变更时自动清除
    tag_invalidator.register(Category, backend)

    # 手动清除
    backend.invalidate_tags(common_tag(Category))
"""

from .backends import (
    CacheStats,
    CacheBackend,
    MemoryBackend,
    RedisBackend,
    PickleSerializer,
    JsonSerializer,
    create_cache_backend,
)

from .invalidation import (
    COMMON_TAG_PREFIX,
    common_tag,
    TagInvalidator,
    tag_invalidator,
    InvalidationContext,
    no_auto_invalidation,
)


__all__ = [
    "CacheStats",
    "CacheBackend",
    "MemoryBackend",
    "RedisBackend",
    "PickleSerializer",
    "JsonSerializer",
    "create_cache_backend",
    "COMMON_TAG_PREFIX",
    "common_tag",
    "TagInvalidator",
    "tag_invalidator",
    "InvalidationContext",
    "no_auto_invalidation",
]
