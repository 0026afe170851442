"""
Periodic background tasks.

A PeriodicTask runs a blocking callable on a fixed interval from the event
loop, off-loading each run to a worker thread. The application lifespan
starts the tasks and stops them on shutdown; nothing runs at import time.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Run ``func`` every ``interval_seconds`` until stopped.

    A failing run is logged and the loop carries on with the next interval.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], Any],
        interval_seconds: float,
        run_immediately: bool = False,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.func = func
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self.runs = 0
        self.failures = 0
        self.last_result: Any = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info(f"Started periodic task '{self.name}' (every {self.interval_seconds:.0f}s)")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Stopped periodic task '{self.name}'")

    async def run_once(self) -> Any:
        """Run the callable in a worker thread, logging any failure."""
        self.runs += 1
        try:
            self.last_result = await asyncio.to_thread(self.func)
            return self.last_result
        except Exception as e:
            self.failures += 1
            logger.error(f"Periodic task '{self.name}' failed: {e}", exc_info=True)
            return None

    async def _loop(self) -> None:
        if self.run_immediately:
            await self.run_once()
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
