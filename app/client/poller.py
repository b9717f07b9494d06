import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from app.core.config import settings
from app.workflow.errors import TransportError

logger = logging.getLogger(__name__)


class StatusPoller:
    """Re-fetches authoritative state on a fixed interval until stopped.

    Tied to the lifetime of whatever view owns it: `start()` when it opens,
    `stop()` when it closes, or use it as an async context manager. A failed
    fetch is reported to `on_error` and the next tick still runs.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        on_result: Optional[Callable[[Any], Any]] = None,
        on_error: Optional[Callable[[TransportError], Any]] = None,
        interval: Optional[float] = None,
    ):
        self.fetch = fetch
        self.on_result = on_result
        self.on_error = on_error
        self.interval = interval if interval is not None else settings.POLL_INTERVAL_SECONDS
        if self.interval <= 0:
            raise ValueError("Polling interval must be positive")
        self.last_result: Any = None
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "StatusPoller":
        if self.running:
            return self
        self._task = asyncio.create_task(self._loop())
        return self

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def poll_once(self) -> Any:
        self.ticks += 1
        try:
            result = await self.fetch()
        except TransportError as e:
            logger.warning(f"Status poll failed ({e.code}, retry hint {e.retry_hint}): {e.message}")
            if self.on_error:
                await _maybe_await(self.on_error(e))
            return None
        self.last_result = result
        if self.on_result:
            await _maybe_await(self.on_result(result))
        return result

    async def _loop(self):
        while True:
            try:
                await self.poll_once()
            except Exception:
                # a bad payload or a failing callback costs one tick, not the poller
                logger.exception(f"Status poll tick {self.ticks} failed unexpectedly")
            await asyncio.sleep(self.interval)

    async def __aenter__(self):
        return self.start()

    async def __aexit__(self, *exc):
        await self.stop()


async def _maybe_await(value):
    if asyncio.iscoroutine(value):
        return await value
    return value
