"""Bounded polling of a remote run until it reaches a terminal status."""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable

from .assistant_client import AssistantClient
from .errors import RunTimedOutError
from .models import RunSnapshot, parse_run

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    """Poller state."""
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class RunPoller:
    """
    Drives one run from its start snapshot to a terminal snapshot.

    Each step waits ``interval`` seconds and re-fetches the run. The
    poller gives up once ``max_attempts`` fetches have been made or
    ``timeout`` seconds have elapsed, whichever comes first, and moves
    to TIMED_OUT.
    """

    def __init__(
        self,
        client: AssistantClient,
        thread_id: str,
        run: RunSnapshot,
        interval: float = 1.0,
        timeout: float = 120.0,
        max_attempts: int = 120,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.thread_id = thread_id
        self.run = run
        self.interval = interval
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.attempts = 0
        self._sleep = sleep
        self._clock = clock
        self._started = clock()
        self.state = self._classify(run)

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    @property
    def done(self) -> bool:
        return self.state != PollState.POLLING

    async def step(self) -> PollState:
        """Advance by one poll. No-op once terminal."""
        if self.done:
            return self.state

        if self.attempts >= self.max_attempts or self.elapsed >= self.timeout:
            self.state = PollState.TIMED_OUT
            logger.warning(
                f"Run {self.run.id} timed out after {self.attempts} polls "
                f"({self.elapsed:.1f}s), last status {self.run.status}"
            )
            return self.state

        await self._sleep(self.interval)
        payload = await self.client.get_run(self.thread_id, self.run.id)
        self.attempts += 1
        self.run = parse_run(payload)
        self.state = self._classify(self.run)

        logger.debug(f"Run {self.run.id} poll {self.attempts}: {self.run.status}")
        return self.state

    async def wait(self) -> RunSnapshot:
        """Poll until terminal. Returns the terminal snapshot."""
        while not self.done:
            await self.step()

        if self.state == PollState.TIMED_OUT:
            raise RunTimedOutError(self.run.id, self.attempts, self.elapsed)

        return self.run

    @staticmethod
    def _classify(run: RunSnapshot) -> PollState:
        if run.is_active:
            return PollState.POLLING
        if run.is_completed:
            return PollState.COMPLETED
        return PollState.FAILED
