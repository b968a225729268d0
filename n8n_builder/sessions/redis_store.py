""" Redis-backed session store: one JSON record per session, expiry enforced by Redis TTL. """

import logging
from typing import List, Optional

import redis

from .base import DEFAULT_RETENTION_SECONDS, DEFAULT_TTL_SECONDS, SessionStore
from .models import DraftSession, DraftSummary, utcnow

logger = logging.getLogger(__name__)

KEY_PREFIX = "n8n_builder:session:"
INDEX_KEY = "n8n_builder:sessions"


class RedisSessionStore(SessionStore):
    """Shared store for multi-process deployments.

    A record lives in Redis for the session's remaining lifetime plus the
    retention window; within that window `get` returns it labelled expired,
    afterwards Redis has dropped it and `get` returns None.
    """

    def __init__(self, client: Optional["redis.Redis"] = None, url: str = "redis://localhost:6379/0",
                 ttl_seconds: int = DEFAULT_TTL_SECONDS,
                 retention_seconds: int = DEFAULT_RETENTION_SECONDS):
        super().__init__(ttl_seconds, retention_seconds)
        self.redis = client if client is not None else redis.from_url(url, decode_responses=True)

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    def _record_ttl(self, session: DraftSession) -> int:
        remaining = int((session.expires_at - utcnow()).total_seconds())
        return max(1, remaining + self.retention_seconds)

    def _write(self, session: DraftSession) -> None:
        pipe = self.redis.pipeline()
        pipe.set(self._key(session.session_id), session.model_dump_json(), ex=self._record_ttl(session))
        pipe.sadd(INDEX_KEY, session.session_id)
        pipe.execute()

    def create(self, session: DraftSession) -> None:
        self._write(session)
        logger.debug("session %s created in redis", session.session_id)

    def get(self, session_id: str) -> Optional[DraftSession]:
        raw = self.redis.get(self._key(session_id))
        if raw is None:
            return None
        return self.label_expired(DraftSession.model_validate_json(raw))

    def update(self, session: DraftSession) -> None:
        self.touch(session)
        self._write(session)

    def delete(self, session_id: str) -> bool:
        pipe = self.redis.pipeline()
        pipe.delete(self._key(session_id))
        pipe.srem(INDEX_KEY, session_id)
        deleted, _ = pipe.execute()
        return bool(deleted)

    def list(self, include_expired: bool = False) -> List[DraftSummary]:
        summaries = []
        for session_id in sorted(self.redis.smembers(INDEX_KEY)):
            session = self.get(session_id)
            if session is None:
                continue
            summary = session.summary()
            if self._visible(summary, include_expired):
                summaries.append(summary)
        return sorted(summaries, key=lambda s: s.updated_at, reverse=True)

    def cleanup(self) -> int:
        """Drop index entries whose records Redis has already expired."""
        stale = [sid for sid in self.redis.smembers(INDEX_KEY) if not self.redis.exists(self._key(sid))]
        if stale:
            self.redis.srem(INDEX_KEY, *stale)
            logger.info("pruned %d expired session(s) from the redis index", len(stale))
        return len(stale)

    def close(self) -> None:
        self.redis.close()
