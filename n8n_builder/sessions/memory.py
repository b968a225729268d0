""" In-process session store with a periodic expiry sweep. """

import logging
import threading
from datetime import timedelta
from typing import Dict, List, Optional

from .base import DEFAULT_RETENTION_SECONDS, DEFAULT_TTL_SECONDS, SessionStore
from .models import DraftSession, DraftSummary, SessionStatus, utcnow

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Dict-backed store. Records are copied in and out, so callers never share state."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS,
                 retention_seconds: int = DEFAULT_RETENTION_SECONDS,
                 cleanup_interval_seconds: float = 5 * 60):
        super().__init__(ttl_seconds, retention_seconds)
        self._sessions: Dict[str, DraftSession] = {}
        self._lock = threading.Lock()
        self._interval = cleanup_interval_seconds
        self._timer: Optional[threading.Timer] = None
        self._closed = False
        if self._interval and self._interval > 0:
            self._schedule_sweep()

    def create(self, session: DraftSession) -> None:
        stored = session.model_copy(deep=True)
        with self._lock:
            self._sessions[stored.session_id] = stored
        logger.debug("session %s created", stored.session_id)

    def get(self, session_id: str) -> Optional[DraftSession]:
        with self._lock:
            stored = self._sessions.get(session_id)
            if stored is None:
                return None
            self.label_expired(stored)
            return stored.model_copy(deep=True)

    def update(self, session: DraftSession) -> None:
        self.touch(session)
        stored = session.model_copy(deep=True)
        with self._lock:
            self._sessions[stored.session_id] = stored

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def list(self, include_expired: bool = False) -> List[DraftSummary]:
        with self._lock:
            summaries = [self.label_expired(s).summary() for s in self._sessions.values()]
        summaries = [s for s in summaries if self._visible(s, include_expired)]
        return sorted(summaries, key=lambda s: s.updated_at, reverse=True)

    def cleanup(self) -> int:
        """Label sessions past expiry as expired; drop expired ones past retention."""
        now = utcnow()
        retention = timedelta(seconds=self.retention_seconds)
        changed = 0
        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if session.status == SessionStatus.ACTIVE and session.is_past_expiry(now):
                    session.status = SessionStatus.EXPIRED
                    changed += 1
                elif session.status != SessionStatus.ACTIVE and now >= session.expires_at + retention:
                    del self._sessions[session_id]
                    changed += 1
        if changed:
            logger.info("session sweep: %d session(s) expired or purged", changed)
        return changed

    def _schedule_sweep(self) -> None:
        self._timer = threading.Timer(self._interval, self._sweep)
        self._timer.daemon = True
        self._timer.start()

    def _sweep(self) -> None:
        try:
            self.cleanup()
        except Exception:
            logger.exception("session sweep failed")
        if not self._closed:
            self._schedule_sweep()

    def close(self) -> None:
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
