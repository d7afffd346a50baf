"""Durable per-installation client identifier.

The service rate-limits by the ``X-Client-Id`` header, so the identifier must
survive restarts. It lives in a small SQLite key/value table under a fixed
key, is read on first use and only generated when nothing is stored yet.
"""

from __future__ import annotations

import logging
import secrets
import sqlite3
import string
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)

CLIENT_ID_KEY = "clientId"

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def generate_client_id() -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"client-{int(time.time() * 1000)}-{suffix}"


class LocalStorage:
    """String key/value storage backed by SQLite."""

    def __init__(self, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()
        self._closed = False
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS local_storage ("
            "key TEXT PRIMARY KEY, value TEXT NOT NULL)"
        )
        self._conn.commit()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM local_storage WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO local_storage (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True


class ClientIdStore:
    """Lazily loads, and on first run creates, the stable client identifier."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage
        self._client_id: str | None = None

    def get(self) -> str:
        if self._client_id is not None:
            return self._client_id

        stored = self._storage.get_item(CLIENT_ID_KEY)
        if not stored:
            stored = generate_client_id()
            self._storage.set_item(CLIENT_ID_KEY, stored)
            logger.info("Generated new client identifier %s", stored)
        self._client_id = stored
        return stored
