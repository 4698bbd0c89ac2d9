from __future__ import annotations

import asyncio
import itertools
import logging
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, NamedTuple

__all__ = [
    "Bound",
    "PromotionResult",
    "Session",
    "SessionRegistry",
    "SessionState",
    "Temporary",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Temporary:
    """Stream opened but not yet matched to a client-chosen id."""

    created_at: float
    sequence: int = 0


@dataclass(frozen=True)
class Bound:
    session_id: str


SessionState = Temporary | Bound


@dataclass(eq=False)
class Session:
    """One push stream and the protocol handler serving it.

    Sessions compare by identity: the registry only acts on the exact object
    it holds under ``key``.
    """

    state: SessionState
    outbox: asyncio.Queue[dict[str, Any]] = field(default_factory=asyncio.Queue)
    handler: Any = None
    key: str = ""
    created_at: float | None = None
    last_seen_at: float | None = None

    @property
    def is_temporary(self) -> bool:
        return isinstance(self.state, Temporary)


class PromotionResult(NamedTuple):
    session: Session | None
    promoted: bool
    previous_key: str | None


_NO_PROMOTION = PromotionResult(None, False, None)


def _pending_key() -> str:
    return f"pending-{secrets.token_hex(8)}"


class SessionRegistry:
    """In-memory map of live sessions keyed by correlation id."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._sessions: dict[str, Session] = {}
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._sessions

    def get(self, key: str | None) -> Session | None:
        if not key:
            return None
        with self._lock:
            return self._sessions.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def temporary_keys(self) -> list[str]:
        with self._lock:
            return [key for key, session in self._sessions.items() if session.is_temporary]

    def add_session(self, key: str, session: Session) -> Session:
        now = self.clock()
        with self._lock:
            session.key = key
            if session.created_at is None:
                session.created_at = now
            if session.last_seen_at is None:
                session.last_seen_at = session.created_at
            self._sessions[key] = session
        return session

    def open_temporary(self) -> Session:
        now = self.clock()
        session = Session(
            state=Temporary(created_at=now, sequence=next(self._sequence)),
            created_at=now,
            last_seen_at=now,
        )
        return self.add_session(_pending_key(), session)

    def promote_session(self, target_id: str | None) -> PromotionResult:
        """Bind the newest temporary session to ``target_id``.

        An id that already has an entry is returned as-is; a bound key is
        never re-promoted. Among several pending streams the most recently
        created one wins.
        """

        if not target_id:
            return _NO_PROMOTION
        with self._lock:
            existing = self._sessions.get(target_id)
            if existing is not None:
                return PromotionResult(existing, False, None)

            pending = [
                (key, session)
                for key, session in self._sessions.items()
                if isinstance(session.state, Temporary)
            ]
            if not pending:
                return _NO_PROMOTION
            previous_key, session = max(
                pending,
                key=lambda item: (item[1].state.created_at, item[1].state.sequence),
            )
            del self._sessions[previous_key]
            session.state = Bound(session_id=target_id)
            session.key = target_id
            session.last_seen_at = self.clock()
            self._sessions[target_id] = session

        logger.info("promoted pending session", extra={"previous_key": previous_key, "session_id": target_id})
        return PromotionResult(session, True, previous_key)

    def touch_session(self, session: Session) -> bool:
        with self._lock:
            if not session.key or self._sessions.get(session.key) is not session:
                return False
            session.last_seen_at = self.clock()
            return True

    def remove_session(self, session: Session) -> bool:
        with self._lock:
            if not session.key or self._sessions.get(session.key) is not session:
                return False
            del self._sessions[session.key]
        logger.debug("removed session", extra={"session_id": session.key})
        return True

    def cleanup_stale(self, max_age: float) -> int:
        now = self.clock()
        with self._lock:
            stale = [
                key
                for key, session in self._sessions.items()
                if now - (session.last_seen_at if session.last_seen_at is not None else now) > max_age
            ]
            for key in stale:
                del self._sessions[key]
        for key in stale:
            logger.info("evicted stale session", extra={"session_id": key})
        return len(stale)
