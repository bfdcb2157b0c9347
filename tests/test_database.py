"""Tests for core/database.py and core/supabase_store.py

- MemoryStore CRUD, replace and compare-and-set
- JsonFileStore persistence across instances
- SupabaseStore two-phase replace and error mapping (mocked client)
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from core.database import JsonFileStore, MemoryStore, StoreUnavailableError, create_store
from core.supabase_store import SupabaseStore

class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_insert_assigns_ids_and_select_orders(self):
        store = MemoryStore()
        await store.insert("tasks", [{"user_id": 1, "position": 2}, {"user_id": 1, "position": 1}])

        rows = await store.select("tasks", {"user_id": 1}, order_by="position")

        assert [row["position"] for row in rows] == [1, 2]
        assert all(row["id"] for row in rows)

    @pytest.mark.asyncio
    async def test_select_returns_copies(self):
        store = MemoryStore()
        await store.insert("users", [{"user_id": 1, "level": 1}])

        row = await store.select_one("users", {"user_id": 1})
        row["level"] = 99

        assert (await store.select_one("users", {"user_id": 1}))["level"] == 1

    @pytest.mark.asyncio
    async def test_replace_only_touches_filtered_rows(self):
        store = MemoryStore()
        await store.insert("tasks", [
            {"user_id": 1, "date": "2025-06-10", "task_text": "old"},
            {"user_id": 1, "date": "2025-06-09", "task_text": "yesterday"},
            {"user_id": 2, "date": "2025-06-10", "task_text": "other user"},
        ])

        await store.replace("tasks", {"user_id": 1, "date": "2025-06-10"}, [
            {"user_id": 1, "date": "2025-06-10", "task_text": "new 1"},
            {"user_id": 1, "date": "2025-06-10", "task_text": "new 2"},
        ])

        texts = sorted(row["task_text"] for row in await store.select("tasks"))
        assert texts == ["new 1", "new 2", "other user", "yesterday"]

    @pytest.mark.asyncio
    async def test_compare_and_set_bumps_version(self):
        store = MemoryStore()
        await store.insert("daily_stats", [{"user_id": 1, "date": "d", "version": 0, "completed_tasks": 0}])

        updated = await store.compare_and_set("daily_stats", {"user_id": 1, "date": "d"}, "version", 0,
                                              {"completed_tasks": 1})
        stale = await store.compare_and_set("daily_stats", {"user_id": 1, "date": "d"}, "version", 0,
                                            {"completed_tasks": 5})

        assert updated["version"] == 1
        assert stale is None
        assert (await store.select_one("daily_stats", {"user_id": 1}))["completed_tasks"] == 1

    @pytest.mark.asyncio
    async def test_delete_returns_count(self):
        store = MemoryStore()
        await store.insert("tasks", [{"user_id": 1}, {"user_id": 1}, {"user_id": 2}])

        assert await store.delete("tasks", {"user_id": 1}) == 2
        assert store.count("tasks") == 1

    @pytest.mark.asyncio
    async def test_insert_into_untouched_table(self):
        store = MemoryStore()

        rows = await store.insert("custom_tasks", [{"user_id": 1, "title": "Первая"}])

        assert rows[0]["id"] == 1
        assert store.count("custom_tasks") == 1

class TestJsonFileStore:
    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / "data" / "flowbot.json"
        store = JsonFileStore(path)
        await store.insert("users", [{"user_id": 7, "first_name": "Аня"}])

        reopened = JsonFileStore(path)
        row = await reopened.select_one("users", {"user_id": 7})

        assert row["first_name"] == "Аня"
        assert "Аня" in path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_ids_continue_after_reopen(self, tmp_path):
        path = tmp_path / "flowbot.json"
        store = JsonFileStore(path)
        await store.insert("tasks", [{"user_id": 1}, {"user_id": 1}])

        reopened = JsonFileStore(path)
        rows = await reopened.insert("tasks", [{"user_id": 1}])

        assert rows[0]["id"] == 3

    @pytest.mark.asyncio
    async def test_failed_write_leaves_state_unchanged(self, tmp_path, monkeypatch):
        path = tmp_path / "flowbot.json"
        store = JsonFileStore(path)
        await store.insert("users", [{"user_id": 1, "level": 1}])
        saved = path.read_text(encoding="utf-8")

        def broken_write(tables):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_write_file", broken_write)

        with pytest.raises(StoreUnavailableError):
            await store.update("users", {"user_id": 1}, {"level": 5})
        with pytest.raises(StoreUnavailableError):
            await store.insert("users", [{"user_id": 2, "level": 1}])

        assert (await store.select_one("users", {"user_id": 1}))["level"] == 1
        assert store.count("users") == 1
        assert path.read_text(encoding="utf-8") == saved

    def test_corrupt_file_raises_store_unavailable(self, tmp_path):
        path = tmp_path / "flowbot.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreUnavailableError):
            JsonFileStore(path)

    def test_non_object_file_rejected(self, tmp_path):
        path = tmp_path / "flowbot.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")

        with pytest.raises(StoreUnavailableError):
            JsonFileStore(path)

class TestCreateStore:
    def test_memory(self):
        assert isinstance(create_store("memory"), MemoryStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_store("mongo")

    def test_supabase_requires_credentials(self):
        with pytest.raises(ValueError):
            create_store("supabase", supabase_url="https://x.supabase.co")

# ─────────────────────────────────────────────────────────────────────────────
# Supabase (mocked client)
# ─────────────────────────────────────────────────────────────────────────────

def make_client(data=None):
    """MagicMock whose query builder chain returns itself and executes to `data`."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "is_", "order", "or_"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data or [])
    client.table.return_value = query
    return client, query

class TestSupabaseStore:
    @pytest.mark.asyncio
    async def test_select_applies_filters(self):
        client, query = make_client([{"id": 1}])
        store = SupabaseStore(client)

        rows = await store.select("tasks", {"user_id": 1, "custom_task_id": None}, order_by="position")

        assert rows == [{"id": 1}]
        query.eq.assert_called_once_with("user_id", 1)
        query.is_.assert_called_once_with("custom_task_id", "null")
        query.order.assert_called_once_with("position")

    @pytest.mark.asyncio
    async def test_replace_inserts_before_deleting_old_batch(self):
        client, query = make_client([{"id": 10}])
        store = SupabaseStore(client)

        await store.replace("tasks", {"user_id": 1, "date": "2025-06-10"}, [{"user_id": 1, "task_text": "a"}])

        calls = [name for name, _, _ in query.mock_calls if name in ("insert", "delete")]
        assert calls == ["insert", "delete"]

        inserted = query.insert.call_args.args[0]
        batch_id = inserted[0]["batch_id"]
        query.or_.assert_called_once_with(f"batch_id.neq.{batch_id},batch_id.is.null")

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_old_batch(self):
        client, query = make_client()
        query.execute.side_effect = httpx.ConnectError("down")
        store = SupabaseStore(client)

        with pytest.raises(StoreUnavailableError):
            await store.replace("tasks", {"user_id": 1}, [{"user_id": 1}])

        query.delete.assert_not_called()
