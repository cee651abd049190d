"""
Tests for the key-value storage backends.

Failure policy under test:
- reads never raise; absent, unreadable and corrupt values read as None
- writes raise StorageUnavailableError
"""

import asyncio

import pytest
import redis

from spendwise.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    RedisKeyValueStore,
    StorageUnavailableError,
)


class TestInMemoryStore:
    """Tests for the in-memory backend."""

    def test_missing_key_reads_none(self):
        store = InMemoryKeyValueStore()
        assert asyncio.run(store.read("nope")) is None

    def test_write_then_read(self):
        store = InMemoryKeyValueStore()

        async def scenario():
            await store.write("k", [{"a": 1}])
            return await store.read("k")

        assert asyncio.run(scenario()) == [{"a": 1}]
        assert store.keys() == ["k"]

    def test_values_are_copied(self):
        store = InMemoryKeyValueStore()
        payload = {"items": [1]}

        async def scenario():
            await store.write("k", payload)
            payload["items"].append(2)
            return await store.read("k")

        assert asyncio.run(scenario()) == {"items": [1]}

    def test_unserializable_value_fails_as_storage_error(self):
        store = InMemoryKeyValueStore()
        with pytest.raises(StorageUnavailableError) as exc_info:
            asyncio.run(store.write("k", {"bad": object()}))
        assert exc_info.value.key == "k"

    def test_delete(self):
        store = InMemoryKeyValueStore()

        async def scenario():
            await store.write("k", 1)
            return await store.delete("k"), await store.delete("k")

        assert asyncio.run(scenario()) == (True, False)


class TestJsonFileStore:
    """Tests for the JSON file backend."""

    def test_roundtrip_survives_new_instance(self, tmp_path):
        asyncio.run(JsonFileKeyValueStore(tmp_path).write("spendwise-budgets-alice", [1, 2]))
        reopened = JsonFileKeyValueStore(tmp_path)
        assert asyncio.run(reopened.read("spendwise-budgets-alice")) == [1, 2]

    def test_missing_key_reads_none(self, tmp_path):
        assert asyncio.run(JsonFileKeyValueStore(tmp_path).read("nope")) is None

    def test_corrupt_file_reads_none(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path)
        store.path_for("k").write_text("{not json", encoding="utf-8")
        assert asyncio.run(store.read("k")) is None

    def test_key_cannot_escape_data_dir(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "data")
        path = store.path_for("../../etc/passwd")
        assert path.parent == tmp_path / "data"

    def test_write_failure_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("I am a file", encoding="utf-8")
        store = JsonFileKeyValueStore(blocker, write_attempts=1)

        with pytest.raises(StorageUnavailableError) as exc_info:
            asyncio.run(store.write("k", [1]))
        assert exc_info.value.key == "k"

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path)

        async def scenario():
            await store.write("k", 1)
            await store.write("k", 2)
            return await store.read("k")

        assert asyncio.run(scenario()) == 2
        assert [p.name for p in tmp_path.iterdir()] == [store.path_for("k").name]

    def test_delete(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path)

        async def scenario():
            await store.write("k", 1)
            removed = await store.delete("k")
            return removed, await store.read("k")

        assert asyncio.run(scenario()) == (True, None)


class StubRedis:
    """Minimal async stand-in for a redis.asyncio client."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.fail = fail
        self.set_calls = 0

    async def get(self, key):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        return self.data.get(key)

    async def set(self, key, value):
        self.set_calls += 1
        if self.fail:
            raise redis.ConnectionError("connection refused")
        self.data[key] = value

    async def delete(self, key):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        return 1 if self.data.pop(key, None) is not None else 0


class TestRedisStore:
    """Tests for the Redis backend against a stub client."""

    def test_write_then_read(self):
        client = StubRedis()
        store = RedisKeyValueStore(client=client)

        async def scenario():
            await store.write("k", {"identity": "alice"})
            return await store.read("k")

        assert asyncio.run(scenario()) == {"identity": "alice"}
        assert client.data["k"] == '{"identity":"alice"}'

    def test_unreachable_read_is_none(self):
        store = RedisKeyValueStore(client=StubRedis(fail=True))
        assert asyncio.run(store.read("k")) is None

    def test_unreachable_write_raises_after_attempts(self):
        client = StubRedis(fail=True)
        store = RedisKeyValueStore(client=client, write_attempts=2)

        with pytest.raises(StorageUnavailableError):
            asyncio.run(store.write("k", 1))
        assert client.set_calls == 2

    def test_undecodable_bytes_read_none(self):
        client = StubRedis()
        client.data["k"] = b"\xff\xfe{}"
        store = RedisKeyValueStore(client=client)
        assert asyncio.run(store.read("k")) is None

    def test_corrupt_value_reads_none(self):
        client = StubRedis()
        client.data["k"] = "{oops"
        store = RedisKeyValueStore(client=client)
        assert asyncio.run(store.read("k")) is None
