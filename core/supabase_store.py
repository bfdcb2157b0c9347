# core/supabase_store.py
"""
Хранилище на Supabase (PostgREST).

Клиент supabase-py синхронный, поэтому каждый запрос выполняется в отдельном
потоке через asyncio.to_thread. Любая ошибка клиента превращается в
StoreUnavailableError.
"""

import uuid
import asyncio
import logging
from typing import List, Optional, Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from core.database import BaseStore, StoreUnavailableError, Filters, Row

logger = logging.getLogger(__name__)

class SupabaseStore(BaseStore):
    """BaseStore поверх таблиц Supabase"""

    BATCH_FIELD = "batch_id"

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_credentials(cls, url: Optional[str], key: Optional[str]) -> "SupabaseStore":
        if not url or not key:
            raise ValueError("Для STORE_BACKEND=supabase нужны SUPABASE_URL и SUPABASE_KEY")
        return cls(create_client(url.strip(), key.strip()))

    @staticmethod
    def _apply_filters(query, filters: Optional[Filters]):
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            else:
                query = query.eq(column, value)
        return query

    async def _execute(self, action: str, build: Callable[[], Any]) -> List[Row]:
        def run():
            return build().execute()

        try:
            response = await asyncio.to_thread(run)
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"❌ Supabase {action}: {e}")
            raise StoreUnavailableError(f"Supabase {action} failed: {e}") from e

        return list(response.data or [])

    async def select(self, table: str, filters: Optional[Filters] = None,
                     order_by: Optional[str] = None) -> List[Row]:
        def build():
            query = self._apply_filters(self.client.table(table).select("*"), filters)
            if order_by:
                query = query.order(order_by)
            return query

        return await self._execute(f"select {table}", build)

    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        if not rows:
            return []
        payload = [{k: v for k, v in row.items() if not (k == "id" and v is None)} for row in rows]
        return await self._execute(f"insert {table}", lambda: self.client.table(table).insert(payload))

    async def update(self, table: str, filters: Filters, values: Row) -> List[Row]:
        return await self._execute(
            f"update {table}",
            lambda: self._apply_filters(self.client.table(table).update(values), filters),
        )

    async def delete(self, table: str, filters: Filters) -> int:
        deleted = await self._execute(
            f"delete {table}",
            lambda: self._apply_filters(self.client.table(table).delete(), filters),
        )
        return len(deleted)

    async def replace(self, table: str, filters: Filters, rows: List[Row]) -> List[Row]:
        """
        Двухфазная замена: сначала вставка новых строк с новым batch_id,
        затем удаление старых. Если вставка упала, старый набор остаётся.
        """
        batch_id = uuid.uuid4().hex
        tagged = [dict(row, **{self.BATCH_FIELD: batch_id}) for row in rows]
        inserted = await self.insert(table, tagged)

        def build_cleanup():
            query = self._apply_filters(self.client.table(table).delete(), filters)
            return query.or_(f"{self.BATCH_FIELD}.neq.{batch_id},{self.BATCH_FIELD}.is.null")

        await self._execute(f"replace-cleanup {table}", build_cleanup)
        return inserted

    async def close(self) -> None:
        logger.info("🛑 Supabase клиент закрыт")
