"""
Table-oriented persistence for reservations, blocked days, tastings and prices.

Two backends share the same async interface:

* ``LocalStore`` keeps every table in one JSON document on disk (or only in
  memory when no path is given). It is the server-side counterpart of the
  browser local storage the website started with.
* ``SupabaseStore`` talks to the hosted Postgres through the Supabase async
  client.

Neither backend enforces uniqueness of (date, slot); that check lives in
the booking service.
"""
import json
import os
import threading
from typing import Any, Dict, List, Optional

from supabase import create_async_client, AsyncClient

from dobao.core.config import settings
from dobao.core.errors import StoreUnavailable
from dobao.core.logger import logger
from dobao.models.db_models import new_id

RESERVATIONS = "reservations"
BLOCKED_DAYS = "blocked_days"
WINE_TASTINGS = "wine_tastings"
TASTING_ATTENDEES = "tasting_attendees"
WEEKLY_PRICES = "weekly_prices"
SPECIAL_PRICES = "special_prices"

TABLES = (RESERVATIONS, BLOCKED_DAYS, WINE_TASTINGS, TASTING_ATTENDEES, WEEKLY_PRICES, SPECIAL_PRICES)


def _sort_key(value):
    # None sorts last
    return (value is None, value if value is not None else 0)


class BaseStore:
    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        gte: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> List[dict]:
        raise NotImplementedError

    async def insert(self, table: str, row: dict) -> dict:
        raise NotImplementedError

    async def update(self, table: str, row_id: str, fields: dict) -> Optional[dict]:
        raise NotImplementedError

    async def upsert(self, table: str, row: dict, on_conflict: str) -> dict:
        raise NotImplementedError

    async def delete(self, table: str, row_id: str) -> bool:
        raise NotImplementedError


class LocalStore(BaseStore):
    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.Lock()
        self._tables: Dict[str, List[dict]] = {name: [] for name in TABLES}
        if path and os.path.exists(path):
            self._load()

    def _load(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Cannot read local store {self.path}: {e}")
            raise StoreUnavailable(f"Local store is unreadable: {e}")

        for name in TABLES:
            self._tables[name] = list(data.get(name, []))
        logger.info(f"📂 Local store loaded from {self.path} ({len(self._tables[RESERVATIONS])} reservations)")

    def _save(self, tables: Dict[str, List[dict]]):
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(tables, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"❌ Cannot write local store {self.path}: {e}")
            raise StoreUnavailable(f"Local store is not writable: {e}")

    def _commit(self, table: str, rows: List[dict]):
        # Memory only changes once the file is written
        tables = dict(self._tables)
        tables[table] = rows
        self._save(tables)
        self._tables = tables

    def _rows(self, table: str) -> List[dict]:
        if table not in self._tables:
            raise StoreUnavailable(f"Unknown table '{table}'")
        return self._tables[table]

    async def select(self, table, filters=None, gte=None, order_by=None, desc=False):
        with self._lock:
            rows = [dict(r) for r in self._rows(table)]

        for key, value in (filters or {}).items():
            rows = [r for r in rows if r.get(key) == value]
        for key, value in (gte or {}).items():
            rows = [r for r in rows if r.get(key) is not None and r[key] >= value]
        if order_by:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=desc)
        return rows

    async def insert(self, table, row):
        new_row = dict(row)
        new_row.setdefault("id", new_id())
        with self._lock:
            self._commit(table, self._rows(table) + [new_row])
        return dict(new_row)

    async def update(self, table, row_id, fields):
        with self._lock:
            rows = self._rows(table)
            for index, row in enumerate(rows):
                if row.get("id") == row_id:
                    updated = {**row, **fields}
                    self._commit(table, rows[:index] + [updated] + rows[index + 1:])
                    return dict(updated)
        return None

    async def upsert(self, table, row, on_conflict):
        with self._lock:
            rows = self._rows(table)
            for index, existing in enumerate(rows):
                if existing.get(on_conflict) == row.get(on_conflict):
                    merged = {**existing, **row}
                    self._commit(table, rows[:index] + [merged] + rows[index + 1:])
                    return dict(merged)
            new_row = dict(row)
            self._commit(table, rows + [new_row])
            return dict(new_row)

    async def delete(self, table, row_id):
        with self._lock:
            rows = self._rows(table)
            remaining = [r for r in rows if r.get("id") != row_id]
            if len(remaining) == len(rows):
                return False
            self._commit(table, remaining)
        logger.info(f"🗑️ Row {row_id} deleted from {table}.")
        return True


class SupabaseStore(BaseStore):
    def __init__(self, url: str = "", key: str = ""):
        self.url = url or settings.SUPABASE_URL
        self.key = key or settings.SUPABASE_KEY
        self._client: Optional[AsyncClient] = None

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (self.url and self.key):
                logger.warning("⚠️ Supabase credentials missing")
                raise StoreUnavailable("Supabase credentials are not configured")
            try:
                self._client = await create_async_client(self.url, self.key)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise StoreUnavailable(f"Cannot connect to Supabase: {e}")
        return self._client

    async def _execute(self, operation: str, table: str, query) -> List[dict]:
        try:
            response = await query.execute()
        except Exception as e:
            logger.error(f"❌ DB Error ({operation} {table}): {e}")
            raise StoreUnavailable(f"Database error while trying to {operation} {table}")
        return response.data or []

    async def select(self, table, filters=None, gte=None, order_by=None, desc=False):
        client = await self.get_client()
        query = client.table(table).select("*")
        for key, value in (filters or {}).items():
            query = query.eq(key, value)
        for key, value in (gte or {}).items():
            query = query.gte(key, value)
        if order_by:
            query = query.order(order_by, desc=desc)
        return await self._execute("select", table, query)

    async def insert(self, table, row):
        client = await self.get_client()
        data = await self._execute("insert", table, client.table(table).insert(row))
        if not data:
            raise StoreUnavailable(f"Insert into {table} returned no row")
        return data[0]

    async def update(self, table, row_id, fields):
        client = await self.get_client()
        data = await self._execute("update", table, client.table(table).update(fields).eq('id', row_id))
        return data[0] if data else None

    async def upsert(self, table, row, on_conflict):
        client = await self.get_client()
        data = await self._execute("upsert", table, client.table(table).upsert(row, on_conflict=on_conflict))
        if not data:
            raise StoreUnavailable(f"Upsert into {table} returned no row")
        return data[0]

    async def delete(self, table, row_id):
        client = await self.get_client()
        data = await self._execute("delete", table, client.table(table).delete().eq('id', row_id))
        if data:
            logger.info(f"🗑️ Row {row_id} deleted from {table}.")
        return bool(data)


_store: Optional[BaseStore] = None


def get_store() -> BaseStore:
    """The process-wide store selected by STORAGE_BACKEND."""
    global _store
    if _store is None:
        backend = settings.STORAGE_BACKEND.lower()
        if backend == "supabase":
            _store = SupabaseStore()
        elif backend == "local":
            _store = LocalStore(settings.LOCAL_STORE_PATH or None)
        else:
            raise StoreUnavailable(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}'")
        logger.info(f"🗄️ Using {type(_store).__name__}")
    return _store
