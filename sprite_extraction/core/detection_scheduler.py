"""
Detection Scheduler Component
Debounces preview detection requests on the host asyncio loop.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Set

from ..models import AutoSettings, SpriteRect
from .image_buffer import ImageBuffer
from .sprite_detector import SpriteDetector

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, List[SpriteRect]], None]


class DetectionScheduler:
    """
    Runs SpriteDetector.detect() after a quiet period.

    A new request cancels a request that is still debouncing. A detection
    that has already started is never cancelled; its result is delivered
    even if a newer request exists, unless discard_stale is set.
    Every request gets a monotonic id so consumers can tell results apart.
    """

    def __init__(self, detector: SpriteDetector, on_result: ResultCallback,
                 debounce_ms: int = 300, discard_stale: bool = False):
        """
        Args:
            detector: Detection engine
            on_result: Called on the loop thread with (request_id, candidates)
            debounce_ms: Quiet period before a request runs
            discard_stale: Drop results whose request is no longer the latest
        """
        self.detector = detector
        self.on_result = on_result
        self.debounce_seconds = debounce_ms / 1000.0
        self.discard_stale = discard_stale

        self._request_counter = 0
        self._pending: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self.last_applied_request: Optional[int] = None

    @property
    def latest_request(self) -> int:
        return self._request_counter

    def request(self, image: ImageBuffer, settings: AutoSettings) -> int:
        """
        Schedule a detection; must be called from within the running loop.

        Returns:
            The request id
        """
        self._request_counter += 1
        request_id = self._request_counter

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug("Superseded pending detection request")

        task = asyncio.get_running_loop().create_task(self._run(request_id, image, settings))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return request_id

    def cancel_pending(self):
        """Cancel a request that has not started detecting yet."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def wait_idle(self):
        """Wait until every started or pending request has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, request_id: int, image: ImageBuffer, settings: AutoSettings):
        await asyncio.sleep(self.debounce_seconds)

        # From here on the request is in flight and is no longer cancellable.
        if self._pending is asyncio.current_task():
            self._pending = None

        loop = asyncio.get_running_loop()
        candidates = await asyncio.shield(
            loop.run_in_executor(None, self.detector.detect, image, settings)
        )

        if self.discard_stale and request_id != self._request_counter:
            logger.debug(f"Discarded stale detection result {request_id} (latest {self._request_counter})")
            return

        self.last_applied_request = request_id
        self.on_result(request_id, candidates)
