"""Front-desk login: one admin password exchanged for a session bearer token."""

from __future__ import annotations

import secrets
from threading import RLock
from typing import Optional

from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminPasswordNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_PASSWORD is missing."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when a password or bearer token does not match."""


class AuthService:
    """Without ADMIN_PASSWORD the API stays open, matching a single-desk install."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._sessions: set[str] = set()
        self._lock = RLock()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_password)

    def _expected_password(self) -> str:
        if not self._settings.admin_password:
            raise AdminPasswordNotConfiguredError(
                "ADMIN_PASSWORD is not configured. Set ADMIN_PASSWORD in environment variables."
            )
        return self._settings.admin_password

    def login(self, password: str) -> str:
        expected = self._expected_password()
        if not secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
            logger.warning("Rejected login attempt")
            raise InvalidCredentialsError("Invalid admin password")
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions.add(token)
        logger.info("Admin session opened")
        return token

    def logout(self, bearer_token: str) -> None:
        with self._lock:
            self._sessions.discard(bearer_token)

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        with self._lock:
            sessions = list(self._sessions)
        if not sessions:
            raise InvalidCredentialsError("No active session. Login first.")
        provided = bearer_token.encode("utf-8")
        if not any(secrets.compare_digest(provided, token.encode("utf-8")) for token in sessions):
            raise InvalidCredentialsError("Invalid bearer token")
