""" Session store interface shared by the in-memory and Redis backends. """

import uuid
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional

from .models import DraftSession, DraftSummary, SessionStatus, utcnow

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_RETENTION_SECONDS = 24 * 60 * 60


class SessionStore(ABC):
    """Persist draft sessions by id.

    Writes are whole-record and last-writer-wins. `get` on a session past its
    expiry returns it labelled EXPIRED (until the backend drops it for good),
    so the caller can decide what to do with it.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS,
                 retention_seconds: int = DEFAULT_RETENTION_SECONDS):
        self.ttl_seconds = ttl_seconds
        self.retention_seconds = retention_seconds

    @staticmethod
    def generate_session_id() -> str:
        return f"builder-{uuid.uuid4().hex[:8]}"

    def new_expiry(self):
        return utcnow() + timedelta(seconds=self.ttl_seconds)

    def touch(self, session: DraftSession) -> None:
        """Refresh updated_at and slide expires_at forward."""
        session.updated_at = utcnow()
        session.expires_at = session.updated_at + timedelta(seconds=self.ttl_seconds)

    @staticmethod
    def label_expired(session: DraftSession) -> DraftSession:
        if session.status == SessionStatus.ACTIVE and session.is_past_expiry():
            session.status = SessionStatus.EXPIRED
        return session

    @staticmethod
    def _visible(summary: DraftSummary, include_expired: bool) -> bool:
        if summary.status == SessionStatus.COMMITTED:
            return False
        if summary.status == SessionStatus.EXPIRED and not include_expired:
            return False
        return True

    @abstractmethod
    def create(self, session: DraftSession) -> None:
        ...

    @abstractmethod
    def get(self, session_id: str) -> Optional[DraftSession]:
        ...

    @abstractmethod
    def update(self, session: DraftSession) -> None:
        ...

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Remove the session; returns whether it existed. Missing ids are not an error."""

    @abstractmethod
    def list(self, include_expired: bool = False) -> List[DraftSummary]:
        ...

    @abstractmethod
    def cleanup(self) -> int:
        """Expire/purge stale sessions now; returns how many records changed."""

    def close(self) -> None:
        pass
