"""Backup export/import and push/pull against the remote key-value store."""

from __future__ import annotations

import json
from typing import Any, Optional

from pethotel.domain.errors import ValidationFailedError
from pethotel.repository.hotel_repository import HotelRepository, state_from_document
from pethotel.repository.snapshot_store import Document, RemoteSnapshotStore, SnapshotStore
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)


def _validated_sync_key(sync_key: str) -> str:
    key = (sync_key or "").strip()
    if not key:
        raise ValidationFailedError("sync_key must not be empty")
    return key


class SyncService:
    """Moves the whole hotel state between the repository and external copies."""

    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
        remote_store: Optional[SnapshotStore] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)
        self._remote_store = remote_store or RemoteSnapshotStore(self._settings)

    def export_document(self) -> Document:
        return self._repository.to_document()

    def export_json(self) -> str:
        return json.dumps(self.export_document(), ensure_ascii=False, indent=2)

    def import_document(self, document: Any) -> Document:
        """Replace the local state with ``document``; invalid input changes nothing."""
        state = state_from_document(document)
        self._repository.restore(state)
        return self.export_document()

    def import_json(self, text: str) -> Document:
        try:
            document = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValidationFailedError(f"Backup is not valid JSON: {exc}") from exc
        return self.import_document(document)

    def push(self, sync_key: str) -> Document:
        key = _validated_sync_key(sync_key)
        document = self.export_document()
        self._remote_store.save(key, document)
        log_event(logger, "Remote push completed", key=key, bookings=len(document["bookings"]))
        return document

    def pull(self, sync_key: str) -> Document:
        """Download the remote backup for ``sync_key`` and restore it locally."""
        key = _validated_sync_key(sync_key)
        document = self._remote_store.load(key)
        restored = self.import_document(document)
        log_event(logger, "Remote pull completed", key=key, bookings=len(restored["bookings"]))
        return restored
