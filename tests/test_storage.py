"""
Tests for persistence gateways
"""

import json
import pytest
from unittest.mock import AsyncMock

from storecart.cart import FileGateway, MemoryGateway, RedisGateway, StorageKeys, create_gateway
from storecart.config import Settings


def _settings(backend: str, tmp_path) -> Settings:
    return Settings(
        storage_backend=backend,
        storage_dir=str(tmp_path),
        redis_url="https://test.upstash.io",
        redis_token="test_token",
        redis_prefix="storecart:",
        redis_ttl=0,
    )


class TestGatewayLoad:
    """Tests for load error recovery."""

    @pytest.mark.asyncio
    async def test_missing_key_loads_empty(self):
        assert await MemoryGateway().load(StorageKeys.CART) == []

    @pytest.mark.asyncio
    async def test_corrupt_json_loads_empty(self):
        gateway = MemoryGateway({StorageKeys.CART: "{not json"})

        assert await gateway.load(StorageKeys.CART) == []

    @pytest.mark.asyncio
    async def test_non_list_loads_empty(self):
        gateway = MemoryGateway({StorageKeys.CART: json.dumps({"id": "x"})})

        assert await gateway.load(StorageKeys.CART) == []

    @pytest.mark.asyncio
    async def test_non_dict_entries_dropped(self):
        gateway = MemoryGateway({StorageKeys.CART: json.dumps([{"id": "a"}, 3, "b"])})

        assert await gateway.load(StorageKeys.CART) == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_read_error_loads_empty(self):
        gateway = MemoryGateway()
        gateway.read = AsyncMock(side_effect=ConnectionError("offline"))

        assert await gateway.load(StorageKeys.SAVED_ITEMS) == []


class TestGatewaySave:
    """Tests for save error handling."""

    @pytest.mark.asyncio
    async def test_save_round_trip(self):
        gateway = MemoryGateway()

        assert await gateway.save(StorageKeys.CART, [{"id": "a"}]) is True
        assert await gateway.load(StorageKeys.CART) == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_write_error_is_swallowed(self):
        gateway = MemoryGateway()
        gateway.write = AsyncMock(side_effect=OSError("disk full"))

        assert await gateway.save(StorageKeys.CART, [{"id": "a"}]) is False


class TestFileGateway:
    """Tests for JSON file storage."""

    @pytest.mark.asyncio
    async def test_writes_one_file_per_key(self, tmp_path):
        gateway = FileGateway(tmp_path / "state")

        await gateway.save(StorageKeys.CART, [{"id": "a"}])
        await gateway.save(StorageKeys.SAVED_ITEMS, [])

        assert json.loads((tmp_path / "state" / "cart.json").read_text()) == [{"id": "a"}]
        assert (tmp_path / "state" / "savedItems.json").read_text() == "[]"
        assert not list((tmp_path / "state").glob("*.tmp"))

    @pytest.mark.asyncio
    async def test_survives_new_instance(self, tmp_path):
        await FileGateway(tmp_path).save(StorageKeys.CART, [{"id": "a"}])

        assert await FileGateway(tmp_path).load(StorageKeys.CART) == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_missing_file_loads_empty(self, tmp_path):
        assert await FileGateway(tmp_path / "absent").load(StorageKeys.CART) == []


class TestRedisGateway:
    """Tests for Upstash Redis storage."""

    @pytest.mark.asyncio
    async def test_prefixed_keys(self, mock_redis_client):
        gateway = RedisGateway(prefix="storecart:", client=mock_redis_client)
        mock_redis_client.get.return_value = json.dumps([{"id": "a"}])

        assert await gateway.load(StorageKeys.CART) == [{"id": "a"}]
        mock_redis_client.get.assert_awaited_once_with("storecart:cart")

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, mock_redis_client):
        gateway = RedisGateway(prefix="p:", ttl=3600, client=mock_redis_client)

        await gateway.save(StorageKeys.SAVED_ITEMS, [])

        mock_redis_client.set.assert_awaited_once_with("p:savedItems", "[]", ex=3600)

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, mock_redis_client):
        gateway = RedisGateway(client=mock_redis_client)

        await gateway.save(StorageKeys.CART, [])

        mock_redis_client.set.assert_awaited_once_with("cart", "[]")

    @pytest.mark.asyncio
    async def test_missing_credentials_recovered(self):
        gateway = RedisGateway()

        assert await gateway.load(StorageKeys.CART) == []
        assert await gateway.save(StorageKeys.CART, []) is False


class TestCreateGateway:
    """Tests for backend selection."""

    def test_backends(self, tmp_path):
        assert isinstance(create_gateway(_settings("memory", tmp_path)), MemoryGateway)
        assert isinstance(create_gateway(_settings("redis", tmp_path)), RedisGateway)

        file_gateway = create_gateway(_settings("file", tmp_path))
        assert isinstance(file_gateway, FileGateway)
        assert file_gateway.directory == tmp_path
