"""Thread-safe in-memory stores for challenges and sessions.

Both stores are process-local and share one implementation: a dict guarded by
a lock, where every entry carries an ``expires_at`` timestamp. Expired entries
are evicted lazily on read and in bulk by ``sweep_expired``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Generic, Protocol, TypeVar

from lorecraft_auth.core.time import Clock, utcnow
from lorecraft_auth.models import Challenge, Session

logger = logging.getLogger(__name__)


class _Expiring(Protocol):
    @property
    def expires_at(self) -> datetime: ...


EntryT = TypeVar("EntryT", bound=_Expiring)


def _short(key: str) -> str:
    return key[:8]


class TTLStore(Generic[EntryT]):
    """Keyed storage with expiry semantics.

    An entry is live while ``now < expires_at``. All operations take the
    store lock, so compound operations such as ``pop`` are atomic.
    """

    kind = "entry"

    def __init__(self, clock: Clock = utcnow) -> None:
        self._entries: dict[str, EntryT] = {}
        self._lock = Lock()
        self._clock = clock

    @contextmanager
    def _locked(self) -> Iterator[dict[str, EntryT]]:
        with self._lock:
            yield self._entries

    def _is_expired(self, entry: EntryT, now: datetime) -> bool:
        return now >= entry.expires_at

    def _live(self, entries: dict[str, EntryT], key: str, now: datetime) -> EntryT | None:
        # Caller holds the lock.
        entry = entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, now):
            del entries[key]
            logger.info("Removed expired %s %s", self.kind, _short(key))
            return None
        return entry

    def get(self, key: str) -> EntryT | None:
        """Return the live entry for ``key``, evicting it if it has expired."""
        with self._locked() as entries:
            return self._live(entries, key, self._clock())

    def put(self, key: str, entry: EntryT) -> None:
        """Insert or overwrite ``key`` unconditionally."""
        with self._locked() as entries:
            entries[key] = entry

    def delete(self, key: str) -> bool:
        """Remove ``key``; return True if it was present."""
        with self._locked() as entries:
            return entries.pop(key, None) is not None

    def pop(self, key: str) -> EntryT | None:
        """Atomically fetch and remove a live entry."""
        with self._locked() as entries:
            entry = self._live(entries, key, self._clock())
            if entry is not None:
                del entries[key]
            return entry

    def delete_where(self, predicate: Callable[[EntryT], bool]) -> int:
        """Remove every entry matching ``predicate`` and return how many were removed."""
        with self._locked() as entries:
            doomed = [key for key, entry in entries.items() if predicate(entry)]
            for key in doomed:
                del entries[key]
        return len(doomed)

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Remove all entries whose expiry has passed."""
        moment = now or self._clock()
        removed = self.delete_where(lambda entry: self._is_expired(entry, moment))
        if removed:
            logger.info("Cleaned up %d expired %ss", removed, self.kind)
        return removed

    def values(self) -> list[EntryT]:
        """Return a snapshot of live entries."""
        now = self._clock()
        with self._locked() as entries:
            return [entry for entry in entries.values() if not self._is_expired(entry, now)]

    def __len__(self) -> int:
        with self._locked() as entries:
            return len(entries)


class ChallengeStore(TTLStore[Challenge]):
    """Outstanding challenges keyed by challenge id."""

    kind = "challenge"

    def consume(self, challenge_id: str) -> Challenge | None:
        """Return and delete the challenge in one step; None if absent or expired."""
        challenge = self.pop(challenge_id)
        if challenge is not None:
            logger.info("Consumed challenge %s", _short(challenge_id))
        return challenge


class SessionStore(TTLStore[Session]):
    """Authenticated sessions keyed by session id."""

    kind = "session"

    def touch(self, session_id: str) -> Session | None:
        """Record activity on a live session and return a snapshot of it."""
        with self._locked() as entries:
            now = self._clock()
            session = self._live(entries, session_id, now)
            if session is None:
                return None
            session.last_activity = now
            return replace(session)

    def extend(self, session_id: str, expires_at: datetime) -> Session | None:
        """Move a live session's expiry to ``expires_at`` and return a snapshot."""
        with self._locked() as entries:
            now = self._clock()
            session = self._live(entries, session_id, now)
            if session is None:
                return None
            session.expires_at = expires_at
            session.last_activity = now
            return replace(session)

    def delete_for_wallet(self, wallet_address: str) -> int:
        """Remove every session belonging to ``wallet_address``."""
        normalized = wallet_address.lower()
        return self.delete_where(lambda session: session.wallet_address == normalized)
