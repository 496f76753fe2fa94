"""Periodic reclamation of idle sessions."""

import asyncio
import logging
from typing import Optional

from partyline.config.settings import StorageConfig

from .store import SessionStore

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Runs ``store.sweep_idle`` on a fixed interval in a background task."""

    def __init__(
        self,
        store: SessionStore,
        max_age_ms: int,
        interval_seconds: float,
    ):
        self.store = store
        self.max_age_ms = max_age_ms
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, store: SessionStore, config: StorageConfig) -> "SessionSweeper":
        return cls(store, config.session_max_age_ms, config.sweep_interval_seconds)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        removed = await self.store.sweep_idle(self.max_age_ms)
        if removed:
            logger.debug(f"Sweeper removed {removed} session(s)")
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    def start(self) -> None:
        """Start sweeping; must be called from a running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Session sweeper started (every {self.interval_seconds:.0f}s)")

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Session sweeper stopped")
