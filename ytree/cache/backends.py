"""缓存后端模块

提供支持标签失效的缓存存储后端实现。

标签失效：写入时为缓存条目关联一个或多个标签，之后按标签一次性清除
所有关联条目，调用方无需知道具体的缓存键。
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Optional, Set
from dataclasses import dataclass
import threading
import time
import json
import pickle

from cachetools import TLRUCache

from ytree.exceptions import ErrorCode, TreeConfigException
from ytree.log import get_logger

logger = get_logger("ytree.cache")


@dataclass
class CacheStats:
    """缓存统计信息"""
    hits: int = 0
    misses: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        """命中率"""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def record_hit(self):
        self.hits += 1

    def record_miss(self):
        self.misses += 1

    def record_invalidation(self, count: int = 1):
        self.invalidations += count

    def reset(self):
        self.hits = 0
        self.misses = 0
        self.invalidations = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "invalidations": self.invalidations,
            "hit_rate": f"{self.hit_rate:.2%}",
        }


class CacheBackend(ABC):
    """缓存后端抽象基类

    未命中统一返回 None。
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """获取缓存值"""
        pass

    @abstractmethod
    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        """设置缓存值，并关联失效标签"""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """删除缓存"""
        pass

    @abstractmethod
    def invalidate_tags(self, *tags: str) -> int:
        """清除关联了任一标签的所有缓存条目

        Returns:
            实际删除的条目数
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """清空所有缓存"""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """获取统计信息"""
        pass


class _Entry:
    """缓存条目，携带自身的 TTL，供 TLRUCache 计算过期时间"""
    __slots__ = ("value", "ttl")

    def __init__(self, value: Any, ttl: float):
        self.value = value
        self.ttl = ttl


def _entry_ttu(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryBackend(CacheBackend):
    """内存缓存后端

    基于 cachetools.TLRUCache 实现，每个条目按自身的 TTL 过期，
    未指定 TTL 时使用默认值。
    标签索引保存 tag -> keys 映射，条目过期或被淘汰后索引中可能残留
    旧键，失效时会自动跳过。

    使用示例:
        backend = MemoryBackend(maxsize=1000, ttl=86400)
        backend.set("tree:Category", items, ttl=3600, tags=["CommonTag:Category"])
        backend.invalidate_tags("CommonTag:Category")
    """

    def __init__(
        self,
        maxsize: int = 1000,
        ttl: int = 86400,
        enable_stats: bool = True,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            maxsize: 最大缓存条目数
            ttl: 默认过期时间（秒）
            enable_stats: 是否启用统计
            timer: 时钟函数，默认 time.monotonic
        """
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_entry_ttu, timer=timer)
        self._tags: Dict[str, Set[str]] = {}
        self._default_ttl = ttl
        self._maxsize = maxsize
        self._lock = threading.RLock()
        self._stats = CacheStats() if enable_stats else None

        logger.debug(f"MemoryBackend initialized: maxsize={maxsize}, ttl={ttl}")

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                if self._stats:
                    self._stats.record_miss()
                return None

            if self._stats:
                self._stats.record_hit()
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        with self._lock:
            effective_ttl = ttl if ttl is not None else self._default_ttl
            if effective_ttl <= 0:
                # TLRUCache 不会写入已过期的条目，旧值需要手动移除
                self._cache.pop(key, None)
                return
            self._cache[key] = _Entry(value, effective_ttl)

            for tag in tags:
                self._tags.setdefault(tag, set()).add(key)

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                if self._stats:
                    self._stats.record_invalidation()
                return True
            return False

    def invalidate_tags(self, *tags: str) -> int:
        with self._lock:
            count = 0
            for tag in tags:
                for key in self._tags.pop(tag, set()):
                    if key in self._cache:
                        del self._cache[key]
                        count += 1
            if self._stats and count:
                self._stats.record_invalidation(count)
            logger.debug(f"MemoryBackend invalidated tags {tags}: {count} keys")
            return count

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._tags.clear()
            if self._stats:
                self._stats.record_invalidation()
            logger.info("MemoryBackend cleared")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = {
                "backend": "memory",
                "size": len(self._cache),
                "maxsize": self._maxsize,
                "ttl": self._default_ttl,
                "tags": len(self._tags),
            }
            if self._stats:
                stats.update(self._stats.to_dict())
            return stats


class PickleSerializer:
    """pickle 序列化器（RedisBackend 默认）"""

    def dumps(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)

    def loads(self, data: bytes) -> Any:
        return pickle.loads(data)


class JsonSerializer:
    """JSON 序列化器

    树形数据本身就是 JSON 结构，使用该序列化器时 Redis 中的数据可直接阅读。
    注意 JSON 对象的键总是字符串，与条目映射的 str(id) 键一致。
    """

    def dumps(self, value: Any) -> str:
        return json.dumps(value, default=str)

    def loads(self, data: str) -> Any:
        return json.loads(data)


_default_pickle_serializer = PickleSerializer()


class RedisBackend(CacheBackend):
    """Redis 缓存后端

    支持分布式缓存，多实例共享。每个标签对应一个 Redis Set，
    保存关联的完整缓存键。Redis 故障只记录警告并按未命中处理。

    使用示例:
        import redis
        redis_client = redis.Redis.from_url("redis://localhost:6379/0")
        backend = RedisBackend(redis_client, prefix="ytree:", ttl=86400)
    """

    def __init__(
        self,
        redis_client,
        prefix: str = "ytree:",
        ttl: int = 86400,
        enable_stats: bool = True,
        serializer: Optional[Any] = None
    ):
        """
        Args:
            redis_client: Redis 客户端实例
            prefix: 缓存键前缀
            ttl: 默认过期时间（秒）
            enable_stats: 是否启用统计（本地统计，非分布式）
            serializer: 序列化器，默认使用 PickleSerializer
        """
        self._redis = redis_client
        self._prefix = prefix
        self._default_ttl = ttl
        self._stats = CacheStats() if enable_stats else None
        self._serializer = serializer or _default_pickle_serializer

        logger.debug(f"RedisBackend initialized: prefix={prefix}, ttl={ttl}")

    def _make_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _make_tag_key(self, tag: str) -> str:
        return f"{self._prefix}tag:{tag}"

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self._redis.get(self._make_key(key))
            if data is not None:
                if self._stats:
                    self._stats.record_hit()
                return self._serializer.loads(data)
            if self._stats:
                self._stats.record_miss()
            return None
        except Exception as e:
            logger.warning(f"Redis get error: {e}")
            if self._stats:
                self._stats.record_miss()
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        try:
            ttl = ttl or self._default_ttl
            full_key = self._make_key(key)
            self._redis.setex(full_key, ttl, self._serializer.dumps(value))
            for tag in tags:
                self._redis.sadd(self._make_tag_key(tag), full_key)
        except Exception as e:
            logger.warning(f"Redis set error: {e}")

    def delete(self, key: str) -> bool:
        try:
            result = self._redis.delete(self._make_key(key))
            if result and self._stats:
                self._stats.record_invalidation()
            return bool(result)
        except Exception as e:
            logger.warning(f"Redis delete error: {e}")
            return False

    def invalidate_tags(self, *tags: str) -> int:
        count = 0
        try:
            for tag in tags:
                tag_key = self._make_tag_key(tag)
                keys = self._redis.smembers(tag_key)
                if keys:
                    count += self._redis.delete(*keys)
                self._redis.delete(tag_key)
            if self._stats and count:
                self._stats.record_invalidation(count)
            logger.debug(f"RedisBackend invalidated tags {tags}: {count} keys")
        except Exception as e:
            logger.warning(f"Redis invalidate error: {e}")
        return count

    def clear(self) -> None:
        """清空所有带前缀的缓存键（包括标签集合）"""
        try:
            pattern = f"{self._prefix}*"
            cursor = 0
            while True:
                cursor, keys = self._redis.scan(cursor, match=pattern, count=100)
                if keys:
                    self._redis.delete(*keys)
                if cursor == 0:
                    break
            if self._stats:
                self._stats.record_invalidation()
            logger.info(f"RedisBackend cleared: prefix={self._prefix}")
        except Exception as e:
            logger.warning(f"Redis clear error: {e}")

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            "backend": "redis",
            "prefix": self._prefix,
            "ttl": self._default_ttl,
        }
        if self._stats:
            stats.update(self._stats.to_dict())
        return stats


def create_cache_backend(settings, redis_client=None) -> CacheBackend:
    """根据 CacheSettings 创建缓存后端

    Args:
        settings: CacheSettings 实例
        redis_client: 可选的 Redis 客户端；未提供时按 settings.redis_url 创建

    Raises:
        TreeConfigException: 后端类型未知，或 redis 后端缺少连接信息
    """
    if settings.backend == "memory":
        return MemoryBackend(maxsize=settings.maxsize, ttl=settings.ttl)

    if settings.backend == "redis":
        if redis_client is None:
            if not settings.redis_url:
                raise TreeConfigException(
                    "使用 Redis 缓存时必须提供 redis_url 或 redis_client",
                    code=ErrorCode.CACHE_ERROR,
                )
            import redis
            redis_client = redis.Redis.from_url(settings.redis_url)
        return RedisBackend(
            redis_client=redis_client,
            prefix=settings.redis_prefix,
            ttl=settings.ttl,
        )

    raise TreeConfigException(
        f"未知的缓存后端: {settings.backend}",
        code=ErrorCode.CACHE_ERROR,
    )


__all__ = [
    "CacheStats",
    "CacheBackend",
    "MemoryBackend",
    "RedisBackend",
    "PickleSerializer",
    "JsonSerializer",
    "create_cache_backend",
]
