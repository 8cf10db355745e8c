"""Background expiry sweeps for the challenge and session stores.

Lazy eviction on read only removes entries somebody asks for again; the
sweeper bounds memory held by abandoned challenges and sessions.
"""

from __future__ import annotations

import asyncio
import logging

from lorecraft_auth.storage import ChallengeStore, SessionStore, TTLStore

logger = logging.getLogger(__name__)


class StoreSweeper:
    """Run two independent periodic sweeps, one per store.

    Sweeps execute in a worker thread so the store lock is never taken on the
    event loop.
    """

    def __init__(
        self,
        challenges: ChallengeStore,
        sessions: SessionStore,
        *,
        challenge_interval: float,
        session_interval: float,
    ) -> None:
        self.challenges = challenges
        self.sessions = sessions
        self.challenge_interval = max(0.01, float(challenge_interval))
        self.session_interval = max(0.01, float(session_interval))
        self._tasks: list[asyncio.Task[None]] = []
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Start both sweep loops; a no-op if they are already running."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._run(self.challenges, self.challenge_interval)),
            asyncio.create_task(self._run(self.sessions, self.session_interval)),
        ]
        logger.info(
            "Store sweeps started: challenges every %.0fs, sessions every %.0fs",
            self.challenge_interval,
            self.session_interval,
        )

    async def stop(self) -> None:
        """Signal both loops to exit and wait for them."""
        if not self._tasks:
            return
        self._stopping.set()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def sweep_once(self) -> tuple[int, int]:
        """Sweep both stores immediately; returns (challenges, sessions) removed."""
        challenges = await asyncio.to_thread(self.challenges.sweep_expired)
        sessions = await asyncio.to_thread(self.sessions.sweep_expired)
        return challenges, sessions

    async def _run(self, store: TTLStore, interval: float) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except TimeoutError:
                pass
            else:
                return
            try:
                await asyncio.to_thread(store.sweep_expired)
            except Exception as e:
                logger.error("%s sweep failed: %s", store.kind, e, exc_info=True)
