from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol

from . import config
from .errors import PersistenceReadError, PersistenceWriteError

logger = logging.getLogger(__name__)


class PersistenceStore(Protocol):
    def load(self) -> List[Any]:
        """Raw stored id list; raises PersistenceReadError when missing or malformed."""
        ...

    def save(self, ids: Iterable[int]) -> None:
        """Overwrite the stored snapshot; raises PersistenceWriteError."""
        ...


def encode_ids(ids: Iterable[int]) -> str:
    return json.dumps(sorted(set(ids)))


def decode_ids(raw: str | None) -> List[Any]:
    if raw is None:
        raise PersistenceReadError("nothing stored")
    try:
        value = json.loads(raw)
    except ValueError as e:
        raise PersistenceReadError(f"stored value is not JSON: {e}") from e
    if not isinstance(value, list):
        raise PersistenceReadError(f"stored value is {type(value).__name__}, expected list")
    return value


class SQLiteStore:
    """
    Key-value table in a local SQLite file; the visited set lives under a
    single key as a JSON array.
    """

    def __init__(self, db_path: Path = config.VISITS_DB_PATH, key: str = config.VISITS_STORAGE_KEY) -> None:
        self.db_path = Path(db_path)
        self.key = key

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT,
                updated_at TEXT DEFAULT (datetime('now'))
            )
            """
        )
        return conn

    def load(self) -> List[Any]:
        try:
            conn = self._connect()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceReadError(f"cannot open {self.db_path}: {e}") from e
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceReadError(str(e)) from e
        finally:
            conn.close()

        return decode_ids(row[0] if row else None)

    def save(self, ids: Iterable[int]) -> None:
        try:
            conn = self._connect()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceWriteError(f"cannot open {self.db_path}: {e}") from e
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                """,
                (self.key, encode_ids(ids)),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceWriteError(str(e)) from e
        finally:
            conn.close()


class JsonFileStore:
    """Visited ids as a JSON object {key: [ids]} in a plain file."""

    def __init__(self, path: Path, key: str = config.VISITS_STORAGE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def load(self) -> List[Any]:
        try:
            data = self._read_all()
        except (OSError, ValueError) as e:
            raise PersistenceReadError(f"cannot read {self.path}: {e}") from e

        value = data.get(self.key)
        if value is None:
            raise PersistenceReadError("nothing stored")
        if not isinstance(value, list):
            raise PersistenceReadError(f"stored value is {type(value).__name__}, expected list")
        return value

    def save(self, ids: Iterable[int]) -> None:
        try:
            try:
                data = self._read_all()
            except ValueError:
                data = {}
            data[self.key] = sorted(set(ids))
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise PersistenceWriteError(f"cannot write {self.path}: {e}") from e


class MemoryStore:
    """In-process store holding the serialized string, like browser localStorage."""

    def __init__(self, raw: str | None = None) -> None:
        self.raw = raw
        self.writes = 0

    def load(self) -> List[Any]:
        return decode_ids(self.raw)

    def save(self, ids: Iterable[int]) -> None:
        self.raw = encode_ids(ids)
        self.writes += 1
