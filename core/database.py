#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FlowBot - Database Layer
Универсальное асинхронное хранилище строк (users, tasks, daily_stats, streaks, custom_tasks)

Бэкенды:
- MemoryStore - в памяти процесса (тесты, разработка)
- JsonFileStore - MemoryStore с сохранением в JSON файл после каждой записи
- SupabaseStore - см. core/supabase_store.py
"""

import os
import copy
import json
import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Any, Iterable

from core.models import FlowBotError

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class DatabaseError(FlowBotError):
    """Базовое исключение для ошибок базы данных"""
    pass

class StoreUnavailableError(DatabaseError):
    """Хранилище недоступно или вернуло ошибку"""
    pass

class NotFoundError(DatabaseError):
    """Пользователь, задача или запись дня не найдены"""
    pass

class ConcurrentMutationError(DatabaseError):
    """Запись изменена параллельно, повторные попытки исчерпаны"""
    pass

Filters = Dict[str, Any]
Row = Dict[str, Any]

def _matches(row: Row, filters: Optional[Filters]) -> bool:
    if not filters:
        return True
    return all(row.get(key) == value for key, value in filters.items())

# ===== BASE STORE =====

class BaseStore(ABC):
    """
    Контракт хранилища.

    Все фильтры - словари равенства {колонка: значение}.
    Все методы могут выбросить StoreUnavailableError.
    """

    @abstractmethod
    async def select(self, table: str, filters: Optional[Filters] = None,
                     order_by: Optional[str] = None) -> List[Row]:
        """Выборка строк, опционально отсортированных по колонке"""

    async def select_one(self, table: str, filters: Filters) -> Optional[Row]:
        rows = await self.select(table, filters)
        return rows[0] if rows else None

    @abstractmethod
    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        """Вставка строк, возвращает строки с присвоенными id"""

    @abstractmethod
    async def update(self, table: str, filters: Filters, values: Row) -> List[Row]:
        """Обновление строк, возвращает обновлённые строки"""

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> int:
        """Удаление строк, возвращает количество удалённых"""

    @abstractmethod
    async def replace(self, table: str, filters: Filters, rows: List[Row]) -> List[Row]:
        """Заменить все строки под фильтром новыми (без окна 'ничего нет')"""

    async def compare_and_set(self, table: str, filters: Filters, version_field: str,
                              expected: int, values: Row) -> Optional[Row]:
        """
        Обновить строку, только если её версия всё ещё равна expected.

        Возвращает обновлённую строку или None, если версия уже другая.
        """
        guarded = dict(filters)
        guarded[version_field] = expected
        new_values = dict(values)
        new_values[version_field] = expected + 1

        updated = await self.update(table, guarded, new_values)
        return updated[0] if updated else None

    async def close(self) -> None:
        pass

# ===== MEMORY STORE =====

class MemoryStore(BaseStore):
    """Хранилище в памяти процесса. Все записи атомарны относительно друг друга."""

    def __init__(self, initial: Optional[Dict[str, List[Row]]] = None):
        self._tables: Dict[str, List[Row]] = {}
        self._counters: Dict[str, "itertools.count"] = {}
        self._lock = asyncio.Lock()

        if initial:
            self._load_tables(initial)

    def _load_tables(self, data: Dict[str, List[Row]]) -> None:
        self._tables = {name: [dict(row) for row in rows] for name, rows in data.items()}
        for name, rows in self._tables.items():
            max_id = max((row.get("id", 0) or 0 for row in rows), default=0)
            self._counters[name] = itertools.count(max_id + 1)

    def _table(self, name: str) -> List[Row]:
        if name not in self._tables:
            self._tables[name] = []
            self._counters[name] = itertools.count(1)
        return self._tables[name]

    def _with_id(self, table: str, row: Row) -> Row:
        stored = dict(row)
        if stored.get("id") is None:
            stored["id"] = next(self._counters[table])
        return stored

    async def _after_write(self) -> None:
        """Хук для наследников (сохранение на диск)"""

    async def select(self, table: str, filters: Optional[Filters] = None,
                     order_by: Optional[str] = None) -> List[Row]:
        rows = [copy.deepcopy(row) for row in self._table(table) if _matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by)))
        return rows

    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        async with self._lock:
            target = self._table(table)
            stored = [self._with_id(table, row) for row in rows]
            target.extend(stored)
            await self._after_write()
        return copy.deepcopy(stored)

    async def update(self, table: str, filters: Filters, values: Row) -> List[Row]:
        async with self._lock:
            updated = []
            for row in self._table(table):
                if _matches(row, filters):
                    row.update(values)
                    updated.append(copy.deepcopy(row))
            if updated:
                await self._after_write()
        return updated

    async def delete(self, table: str, filters: Filters) -> int:
        async with self._lock:
            rows = self._table(table)
            kept = [row for row in rows if not _matches(row, filters)]
            removed = len(rows) - len(kept)
            self._tables[table] = kept
            if removed:
                await self._after_write()
        return removed

    async def replace(self, table: str, filters: Filters, rows: List[Row]) -> List[Row]:
        async with self._lock:
            kept = [row for row in self._table(table) if not _matches(row, filters)]
            stored = [self._with_id(table, row) for row in rows]
            self._tables[table] = kept + stored
            await self._after_write()
        return copy.deepcopy(stored)

    def count(self, table: str, filters: Optional[Filters] = None) -> int:
        return sum(1 for row in self._table(table) if _matches(row, filters))

# ===== JSON FILE STORE =====

class JsonFileStore(MemoryStore):
    """MemoryStore, сохраняемый в JSON файл после каждой записи"""

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)
        super().__init__(self._read_file())
        # Последнее состояние, успешно записанное на диск
        self._committed = copy.deepcopy(self._tables)
        logger.info(f"📂 JsonFileStore: {self.data_file} ({sum(len(r) for r in self._tables.values())} строк)")

    def _read_file(self) -> Dict[str, List[Row]]:
        if not self.data_file.exists():
            logger.info("📂 Файл данных не найден, начинаем с пустой базы")
            return {}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreUnavailableError(f"Не удалось прочитать {self.data_file}: {e}") from e

        if not isinstance(data, dict):
            raise StoreUnavailableError(f"Неверный формат файла данных: {self.data_file}")
        return data

    async def _after_write(self) -> None:
        try:
            self._write_file(self._tables)
        except OSError as e:
            # Изменение не сохранено - в памяти остаётся то же, что на диске
            self._tables = copy.deepcopy(self._committed)
            logger.error(f"❌ Ошибка сохранения данных: {e}")
            raise StoreUnavailableError(f"Не удалось сохранить {self.data_file}: {e}") from e
        self._committed = copy.deepcopy(self._tables)

    def _write_file(self, tables: Dict[str, Iterable[Row]]) -> None:
        """Атомарная запись: временный файл + rename"""
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.data_file.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump({name: list(rows) for name, rows in tables.items()}, f,
                      ensure_ascii=False, indent=2, default=str)
        os.replace(temp_file, self.data_file)

def create_store(backend: str, data_file: Optional[Path] = None,
                 supabase_url: Optional[str] = None, supabase_key: Optional[str] = None) -> BaseStore:
    """Фабрика хранилища по названию бэкенда"""
    if backend == "memory":
        return MemoryStore()
    if backend == "json":
        return JsonFileStore(data_file or Path("data") / "flowbot_data.json")
    if backend == "supabase":
        from core.supabase_store import SupabaseStore
        return SupabaseStore.from_credentials(supabase_url, supabase_key)
    raise ValueError(f"Неизвестный бэкенд хранилища: {backend}")
