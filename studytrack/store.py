"""Per-user key-value state storage.

Each (user id, domain) pair maps to one JSON blob. Supports Supabase
(primary) with SQLite fallback, plus an in-memory store for development
and tests.
"""
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from . import config

COURSES = "courses"
GOALS = "goals"
ACHIEVEMENTS = "achievements"
STREAK = "streak"

DOMAINS = (COURSES, GOALS, ACHIEVEMENTS, STREAK)


class KeyValueStore:
    """Interface every backend implements."""

    def load(self, user_id: str, domain: str) -> Optional[Any]:
        raise NotImplementedError

    def save(self, user_id: str, domain: str, value: Any) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Keeps blobs in a dict. Values are stored serialized so callers never share references."""

    def __init__(self):
        self._data: Dict[Tuple[str, str], str] = {}

    def load(self, user_id: str, domain: str) -> Optional[Any]:
        raw = self._data.get((user_id, domain))
        return json.loads(raw) if raw is not None else None

    def save(self, user_id: str, domain: str, value: Any) -> None:
        self._data[(user_id, domain)] = json.dumps(value)


class SQLiteStore(KeyValueStore):
    def __init__(self, db_path: Path = config.DB_PATH):
        self.db_path = db_path
        self.init_db()

    def get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_state (
                    user_id TEXT NOT NULL,
                    domain TEXT NOT NULL,
                    data TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(user_id, domain)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_user_state_user ON user_state(user_id)")
            conn.commit()
        finally:
            conn.close()

    def load(self, user_id: str, domain: str) -> Optional[Any]:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT data FROM user_state WHERE user_id = ? AND domain = ?",
                (user_id, domain),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        try:
            return json.loads(row["data"])
        except json.JSONDecodeError:
            print(f"[Store] Corrupt {domain} blob for user={user_id}, treating as empty")
            return None

    def save(self, user_id: str, domain: str, value: Any) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO user_state (user_id, domain, data, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, domain, json.dumps(value), datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()


class SupabaseStore(KeyValueStore):
    """Stores blobs in the `user_state` table; falls back to SQLite when Supabase fails."""

    table = "user_state"

    def __init__(self, client=None, fallback: Optional[KeyValueStore] = None):
        if client is None:
            from .supabase_client import get_supabase
            client = get_supabase()
        self.client = client
        self.fallback = fallback or SQLiteStore()

    def load(self, user_id: str, domain: str) -> Optional[Any]:
        try:
            result = (
                self.client.table(self.table)
                .select("data")
                .eq("user_id", user_id)
                .eq("domain", domain)
                .execute()
            )
            if not result.data:
                return None
            return result.data[0]["data"]
        except Exception as e:
            print(f"[Store] Supabase load failed: {e}. Falling back to SQLite")

        return self.fallback.load(user_id, domain)

    def save(self, user_id: str, domain: str, value: Any) -> None:
        try:
            data = {
                "user_id": user_id,
                "domain": domain,
                "data": value,
                "updated_at": datetime.now().isoformat(),
            }
            self.client.table(self.table).upsert(data, on_conflict="user_id,domain").execute()
            return
        except Exception as e:
            print(f"[Store] Supabase save failed: {e}. Falling back to SQLite")

        self.fallback.save(user_id, domain, value)


_store: Optional[KeyValueStore] = None


def create_store(backend: Optional[str] = None) -> KeyValueStore:
    backend = backend or config.store_backend()
    if backend == "memory":
        print("[Store] Using in-memory store (state is lost on restart)")
        return MemoryStore()
    if backend == "supabase":
        try:
            store = SupabaseStore()
            print("[Store] Using Supabase store")
            return store
        except Exception as e:
            print(f"[Store] Supabase init failed: {e}. Falling back to SQLite")
    print(f"[Store] Using SQLite store at {config.DB_PATH}")
    return SQLiteStore()


def get_store() -> KeyValueStore:
    """FastAPI dependency returning the process-wide store."""
    global _store
    if _store is None:
        _store = create_store()
    return _store
