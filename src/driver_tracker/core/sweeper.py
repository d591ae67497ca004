"""Background task that deactivates expired tracking links on a fixed interval."""

import asyncio
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..db.models import utc_now
from ..repositories.sqlalchemy_impl import SQLAlchemyTrackingLinkRepository
from ..utils.logging_config import get_logger, log_exception
from .link_lifecycle import Clock, LinkLifecycleController

logger = get_logger('sweeper')


class ExpiredLinkSweeper:
    """Runs ``sweep_expired_links`` on a timer.

    There is no persisted "last swept" checkpoint; after a restart the timer
    starts from zero. Sweeping is idempotent, so several instances may run
    their own sweepers against the same store.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_seconds: float = 3600,
        clock: Clock = utc_now,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Run a single sweep in its own database session."""
        session = self.session_factory()
        try:
            controller = LinkLifecycleController(
                links=SQLAlchemyTrackingLinkRepository(session),
                clock=self.clock,
            )
            return controller.sweep_expired_links()
        finally:
            session.close()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(f"Expired link sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _sweep_loop(self):
        """Sleep, sweep, repeat; a failed cycle does not end the loop."""
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                try:
                    count = await asyncio.to_thread(self.run_once)
                    logger.debug(f"Sweep cycle deactivated {count} link(s)")
                except Exception as e:
                    log_exception('sweeper', e)
        except asyncio.CancelledError:
            logger.info("Expired link sweeper cancelled")
            raise
