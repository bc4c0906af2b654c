"""缓存后端测试"""

import pickle
from unittest.mock import MagicMock

import pytest

from ytree.cache import (
    JsonSerializer,
    MemoryBackend,
    PickleSerializer,
    RedisBackend,
    create_cache_backend,
)
from ytree.config import CacheSettings
from ytree.exceptions import ErrorCode, TreeConfigException


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestMemoryBackend:
    """MemoryBackend 测试"""

    def setup_method(self):
        self.backend = MemoryBackend(maxsize=100, ttl=3600)

    def test_set_get(self):
        """测试基本读写"""
        self.backend.set("k", {"1": {"id": 1}})
        assert self.backend.get("k") == {"1": {"id": 1}}
        assert self.backend.get("missing") is None

    def test_custom_ttl_expired(self):
        """测试自定义 TTL 到期后按未命中处理"""
        self.backend.set("k", "v", ttl=0)
        assert self.backend.get("k") is None

    def test_custom_ttl_not_expired(self):
        """测试自定义 TTL 未到期"""
        self.backend.set("k", "v", ttl=60)
        assert self.backend.get("k") == "v"

    def test_zero_ttl_removes_previous_value(self):
        """测试 TTL 为 0 时旧值也被移除"""
        self.backend.set("k", "v1")
        self.backend.set("k", "v2", ttl=0)
        assert self.backend.get("k") is None

    def test_custom_ttl_longer_than_default(self):
        """测试自定义 TTL 长于默认值时不会被截断"""
        clock = FakeClock()
        backend = MemoryBackend(ttl=1, timer=clock)
        backend.set("k", "v", ttl=3600)

        clock.now = 1.2
        assert backend.get("k") == "v"

        clock.now = 3601
        assert backend.get("k") is None

    def test_default_ttl_expires(self):
        """测试未指定 TTL 时按默认值过期"""
        clock = FakeClock()
        backend = MemoryBackend(ttl=1, timer=clock)
        backend.set("k", "v")

        clock.now = 0.5
        assert backend.get("k") == "v"

        clock.now = 1.5
        assert backend.get("k") is None

    def test_invalidate_tags(self):
        """测试按标签清除"""
        self.backend.set("k1", 1, tags=["A"])
        self.backend.set("k2", 2, tags=["A", "B"])
        self.backend.set("k3", 3, tags=["B"])

        assert self.backend.invalidate_tags("A") == 2
        assert self.backend.get("k1") is None
        assert self.backend.get("k2") is None
        assert self.backend.get("k3") == 3

        # 已清除的标签再次失效不删除任何条目
        assert self.backend.invalidate_tags("A") == 0
        # k2 已被删除，只剩 k3
        assert self.backend.invalidate_tags("B") == 1

    def test_invalidate_multiple_tags(self):
        """测试一次清除多个标签"""
        self.backend.set("k1", 1, tags=["A"])
        self.backend.set("k2", 2, tags=["B"])

        assert self.backend.invalidate_tags("A", "B") == 2
        assert self.backend.get_stats()["size"] == 0

    def test_invalidate_skips_deleted_keys(self):
        """测试标签索引中残留的已删除键被跳过"""
        self.backend.set("k1", 1, tags=["A"])
        self.backend.delete("k1")

        assert self.backend.invalidate_tags("A") == 0

    def test_delete(self):
        self.backend.set("k", 1)

        assert self.backend.delete("k") is True
        assert self.backend.delete("k") is False

    def test_clear(self):
        """测试清空缓存与标签索引"""
        self.backend.set("k1", 1, tags=["A"])
        self.backend.clear()

        stats = self.backend.get_stats()
        assert stats["size"] == 0
        assert stats["tags"] == 0

    def test_stats(self):
        """测试统计信息"""
        self.backend.set("k", 1, tags=["A"])
        self.backend.get("k")
        self.backend.get("missing")

        stats = self.backend.get_stats()
        assert stats["backend"] == "memory"
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == "50.00%"
        assert stats["tags"] == 1

    def test_stats_disabled(self):
        backend = MemoryBackend(enable_stats=False)
        backend.get("k")

        assert "hits" not in backend.get_stats()


class TestRedisBackend:
    """RedisBackend 测试（使用模拟客户端）"""

    def setup_method(self):
        self.redis = MagicMock()
        self.backend = RedisBackend(self.redis, prefix="ytree:", ttl=3600)

    def test_set_with_tags(self):
        """测试写入时登记标签集合"""
        self.backend.set("tree", [1, 2], ttl=60, tags=["CommonTag:Category"])

        self.redis.setex.assert_called_once_with(
            "ytree:tree", 60, pickle.dumps([1, 2], protocol=pickle.HIGHEST_PROTOCOL)
        )
        self.redis.sadd.assert_called_once_with("ytree:tag:CommonTag:Category", "ytree:tree")

    def test_set_default_ttl(self):
        self.backend.set("tree", 1)
        assert self.redis.setex.call_args[0][1] == 3600

    def test_get(self):
        self.redis.get.return_value = pickle.dumps({"1": {"id": 1}})

        assert self.backend.get("tree") == {"1": {"id": 1}}
        self.redis.get.assert_called_once_with("ytree:tree")

    def test_get_miss(self):
        self.redis.get.return_value = None
        assert self.backend.get("tree") is None

    def test_get_error_treated_as_miss(self):
        """测试 Redis 故障按未命中处理"""
        self.redis.get.side_effect = ConnectionError("down")

        assert self.backend.get("tree") is None
        assert self.backend.get_stats()["misses"] == 1

    def test_invalidate_tags(self):
        """测试按标签删除关联键与标签集合"""
        self.redis.smembers.return_value = {b"ytree:tree"}
        self.redis.delete.return_value = 1

        assert self.backend.invalidate_tags("CommonTag:Category") == 1
        self.redis.smembers.assert_called_once_with("ytree:tag:CommonTag:Category")
        self.redis.delete.assert_any_call(b"ytree:tree")
        self.redis.delete.assert_any_call("ytree:tag:CommonTag:Category")

    def test_invalidate_empty_tag(self):
        self.redis.smembers.return_value = set()

        assert self.backend.invalidate_tags("CommonTag:Category") == 0
        self.redis.delete.assert_called_once_with("ytree:tag:CommonTag:Category")

    def test_clear_scans_prefix(self):
        """测试清空时只删除带前缀的键"""
        self.redis.scan.return_value = (0, [b"ytree:tree", b"ytree:tag:A"])
        self.backend.clear()

        self.redis.scan.assert_called_once_with(0, match="ytree:*", count=100)
        self.redis.delete.assert_called_once_with(b"ytree:tree", b"ytree:tag:A")

    def test_json_serializer(self):
        """测试 JSON 序列化器"""
        backend = RedisBackend(self.redis, serializer=JsonSerializer())
        backend.set("tree", {"1": {"id": 1, "parent": "#"}})

        stored = self.redis.setex.call_args[0][2]
        assert JsonSerializer().loads(stored) == {"1": {"id": 1, "parent": "#"}}


class TestSerializers:
    """序列化器测试"""

    def test_pickle(self):
        serializer = PickleSerializer()
        assert serializer.loads(serializer.dumps({"a": [1, 2]})) == {"a": [1, 2]}

    def test_json_keys_are_strings(self):
        serializer = JsonSerializer()
        assert serializer.loads(serializer.dumps({1: "a"})) == {"1": "a"}


class TestCreateCacheBackend:
    """create_cache_backend 测试"""

    def test_memory(self):
        backend = create_cache_backend(CacheSettings(backend="memory", maxsize=10, ttl=60))

        assert isinstance(backend, MemoryBackend)
        assert backend.get_stats()["ttl"] == 60

    def test_redis_with_client(self):
        client = MagicMock()
        backend = create_cache_backend(
            CacheSettings(backend="redis", redis_prefix="app:"), redis_client=client
        )

        assert isinstance(backend, RedisBackend)
        assert backend.get_stats()["prefix"] == "app:"

    def test_redis_from_url(self):
        """测试按 URL 创建客户端（不会立即连接）"""
        backend = create_cache_backend(
            CacheSettings(backend="redis", redis_url="redis://localhost:6379/0")
        )
        assert isinstance(backend, RedisBackend)

    def test_redis_without_url(self):
        with pytest.raises(TreeConfigException) as exc_info:
            create_cache_backend(CacheSettings(backend="redis"))

        assert exc_info.value.code == ErrorCode.CACHE_ERROR

    def test_unknown_backend(self):
        with pytest.raises(TreeConfigException) as exc_info:
            create_cache_backend(CacheSettings(backend="memcached"))

        assert "memcached" in exc_info.value.message
