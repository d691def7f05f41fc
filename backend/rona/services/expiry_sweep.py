"""Expiry Sweep — periodic, caller-independent batch expiry.

Invariants:
    - At most one sweep task per ExpirySweep instance
    - A failing pass is logged and the loop keeps its schedule
    - stop() cancels the task and waits for it; the in-flight unit of work rolls back
      and its connection returns to the pool
    - Counts are logged after each pass (no registrant data)
"""

import asyncio
import logging
from datetime import timedelta

from rona.services.quicktest_service import QuickTestService

logger = logging.getLogger(__name__)


class ExpirySweep:
    """Runs expire_outdated_quicktests every `interval` until stopped."""

    def __init__(
        self,
        service: QuickTestService,
        validity: timedelta,
        interval: timedelta,
    ):
        if interval <= timedelta(0):
            raise ValueError("Sweep interval must be positive")
        self.service = service
        self.validity = validity
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """One pass. Returns rows scrubbed, 0 when the expiry itself failed."""
        try:
            affected = await self.service.expire_outdated_quicktests(self.validity)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "Expiry sweep failed: %s", e,
                extra={"operation": "expire_outdated"}, exc_info=True,
            )
            return 0
        try:
            counts = await self.service.count_quicktests()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                "Expiry sweep counts unavailable: %s", e,
                extra={"operation": "count", "affected": affected},
            )
            return affected
        logger.debug(
            "Expiry sweep: total=%d available=%d registered=%d expired=%d",
            counts.total, counts.available, counts.registered, counts.expired,
            extra={"operation": "expire_outdated", "affected": affected},
        )
        return affected

    async def _loop(self) -> None:
        seconds = self.interval.total_seconds()
        try:
            while True:
                await asyncio.sleep(seconds)
                await self.run_once()
        except asyncio.CancelledError:
            logger.info("Expiry sweep stopped")
            raise

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="expiry-sweep")
        logger.info(
            f"Expiry sweep started (every {self.interval.total_seconds():g}s)",
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
