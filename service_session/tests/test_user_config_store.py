"""
Unit tests for the file-backed session store.
"""

import asyncio
import json
import os
import stat

import pytest

from service_session.app.storage.user_config import UserConfigStore


class TestUserConfigStore:
    """Test cases for UserConfigStore."""

    @pytest.fixture
    def store_path(self, tmp_path):
        return tmp_path / "nested" / "user-config.json"

    @pytest.mark.asyncio
    async def test_load_missing_file_returns_empty_record(self, store_path):
        store = UserConfigStore(store_path)

        assert await store.load() == {}

    @pytest.mark.asyncio
    async def test_update_preserves_other_fields(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps({"accessToken": "old", "email": "user@example.com"}))
        store = UserConfigStore(store_path)

        def mutator(config):
            config["accessToken"] = "new"
            return config

        result = await store.update(mutator)

        assert result == {"accessToken": "new", "email": "user@example.com"}
        assert json.loads(store_path.read_text()) == result

    @pytest.mark.asyncio
    async def test_update_creates_file_with_private_permissions(self, store_path):
        store = UserConfigStore(store_path)

        await store.update(lambda config: {**config, "accessToken": "token"})

        assert store_path.exists()
        assert stat.S_IMODE(os.stat(store_path).st_mode) == 0o600
        assert list(store_path.parent.glob(".user-config.*")) == []

    @pytest.mark.asyncio
    async def test_in_place_mutator_returning_none(self, store_path):
        store = UserConfigStore(store_path)
        await store.update(lambda config: {"accessToken": "old"})

        result = await store.update(lambda config: config.update(accessToken="new"))

        assert result == {"accessToken": "new"}
        assert (await store.load()) == {"accessToken": "new"}

    @pytest.mark.asyncio
    async def test_failing_mutator_leaves_file_untouched(self, store_path):
        store = UserConfigStore(store_path)
        await store.update(lambda config: {"accessToken": "kept"})

        def mutator(config):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await store.update(mutator)

        assert json.loads(store_path.read_text()) == {"accessToken": "kept"}

    @pytest.mark.asyncio
    async def test_non_dict_record_is_rejected(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("[]")
        store = UserConfigStore(store_path)

        with pytest.raises(ValueError):
            await store.load()

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_serialised(self, store_path):
        store = UserConfigStore(store_path)
        await store.update(lambda config: {"count": 0})

        def increment(config):
            config["count"] += 1
            return config

        await asyncio.gather(*(store.update(increment) for _ in range(10)))

        assert (await store.load())["count"] == 10

    def test_store_survives_across_event_loops(self, store_path):
        store = UserConfigStore(store_path)

        def increment(config):
            config["count"] = config.get("count", 0) + 1
            return config

        async def contend():
            await asyncio.gather(*(store.update(increment) for _ in range(5)))

        asyncio.run(contend())
        asyncio.run(contend())

        assert json.loads(store_path.read_text())["count"] == 10

    def test_expands_user_home(self):
        store = UserConfigStore("~/session/user-config.json")

        assert "~" not in str(store.path)
