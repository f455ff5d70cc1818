"""Persistence ports that save and load whole-hotel JSON documents.

A document is the dict produced by ``HotelRepository.to_document``. Stores are
keyed so one database or remote table can hold several hotels or devices.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

import requests

from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)

Document = dict[str, Any]


class SnapshotStoreError(Exception):
    """Base failure for snapshot persistence."""


class SnapshotNotFoundError(SnapshotStoreError):
    """Raised when no snapshot exists for the requested key."""


class RemoteStoreError(SnapshotStoreError):
    """Raised when the remote key-value store cannot be reached or rejects a call."""


class SnapshotStore(Protocol):
    def save(self, key: str, document: Document) -> None: ...

    def load(self, key: str) -> Document: ...


class SqliteSnapshotStore:
    """Local autosave store backed by a single SQLite table."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.snapshot_database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        return connection

    def initialize_database(self) -> None:
        """Create the snapshot table before the first save."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Snapshots (
                        snapshot_key TEXT PRIMARY KEY,
                        document TEXT NOT NULL,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                conn.commit()
            logger.info("Snapshot database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise SnapshotStoreError(f"Snapshot database initialization failed: {exc}") from exc

    def save(self, key: str, document: Document) -> None:
        payload = json.dumps(document, ensure_ascii=False)
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO Snapshots (snapshot_key, document, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(snapshot_key) DO UPDATE SET
                        document = excluded.document,
                        updated_at = excluded.updated_at;
                    """,
                    (key, payload, datetime.now(timezone.utc).isoformat()),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise SnapshotStoreError(f"Snapshot save failed: {exc}") from exc

    def load(self, key: str) -> Document:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT document FROM Snapshots WHERE snapshot_key = ?;",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise SnapshotStoreError(f"Snapshot load failed: {exc}") from exc
        if row is None:
            raise SnapshotNotFoundError(f"No snapshot stored for key {key!r}")
        return json.loads(row["document"])

    def list_keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT snapshot_key FROM Snapshots ORDER BY snapshot_key ASC;"
            ).fetchall()
        return [str(row["snapshot_key"]) for row in rows]


class JsonFileSnapshotStore:
    """Offline backups as ``<key>.json`` files in one directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        safe_key = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self._directory / f"{safe_key}.json"

    def save(self, key: str, document: Document) -> None:
        path = self.path_for(key)
        path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
        log_event(logger, "Offline backup written", key=key, path=path)

    def load(self, key: str) -> Document:
        path = self.path_for(key)
        if not path.exists():
            raise SnapshotNotFoundError(f"No backup file for key {key!r}")
        return json.loads(path.read_text(encoding="utf-8"))


class RemoteSnapshotStore:
    """Key-value table on a PostgREST-compatible endpoint.

    Rows have the shape ``{"id": key, "data": document, "updated_at": iso}``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self._settings.remote_sync_url and self._settings.remote_sync_api_key)

    def _endpoint(self) -> str:
        if not self.configured:
            raise RemoteStoreError(
                "Remote sync is not configured. Set REMOTE_SYNC_URL and REMOTE_SYNC_API_KEY."
            )
        base = str(self._settings.remote_sync_url).rstrip("/")
        return f"{base}/rest/v1/{self._settings.remote_sync_table}"

    def _headers(self) -> dict[str, str]:
        api_key = str(self._settings.remote_sync_api_key)
        return {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def save(self, key: str, document: Document) -> None:
        endpoint = self._endpoint()
        headers = self._headers()
        headers["Prefer"] = "resolution=merge-duplicates"
        try:
            response = self._session.post(
                endpoint,
                json={
                    "id": key,
                    "data": document,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                headers=headers,
                timeout=self._settings.remote_sync_timeout_seconds,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise RemoteStoreError(f"Remote sync upload failed: {exc}") from exc
        log_event(logger, "Remote snapshot saved", key=key)

    def load(self, key: str) -> Document:
        endpoint = self._endpoint()
        try:
            response = self._session.get(
                endpoint,
                params={"id": f"eq.{key}", "select": "data"},
                headers=self._headers(),
                timeout=self._settings.remote_sync_timeout_seconds,
            )
            response.raise_for_status()
            rows = response.json()
        except requests.exceptions.RequestException as exc:
            raise RemoteStoreError(f"Remote sync download failed: {exc}") from exc
        except ValueError as exc:
            raise RemoteStoreError("Remote sync returned a non-JSON response") from exc
        if not rows or not rows[0].get("data"):
            raise SnapshotNotFoundError(f"No remote backup for sync key {key!r}")
        log_event(logger, "Remote snapshot loaded", key=key)
        return rows[0]["data"]
