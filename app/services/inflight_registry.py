"""Registry of in-progress upstream calls used to coalesce identical requests."""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Tuple

from app.utils.logging import get_logger

logger = get_logger(__name__)


class InflightRegistry:
    """Tracks one pending task per cache key.

    Concurrent callers asking for the same key share a single task, so N
    simultaneous identical searches produce one upstream call. The task removes
    itself from the registry as soon as it settles, before any awaiter sees the
    result. All access happens on the event loop thread, which makes the
    check-then-insert in get_or_create atomic.
    """

    def __init__(self):
        self._pending: Dict[str, "asyncio.Task[Any]"] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        """Check whether an upstream call for key is still running."""
        return key in self._pending

    def get_or_create(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
    ) -> Tuple["asyncio.Task[Any]", bool]:
        """
        Return the pending task for key, starting producer() if there is none.

        Returns:
            tuple: (task, joined) where joined is True when an existing task was reused

        Await the task through asyncio.shield() so a cancelled caller does not
        cancel the shared call for everyone else.
        """
        task = self._pending.get(key)
        if task is not None:
            return task, True

        async def run() -> Any:
            try:
                return await producer()
            finally:
                self._pending.pop(key, None)

        task = asyncio.ensure_future(run())
        self._pending[key] = task
        task.add_done_callback(self._consume_unobserved)
        return task, False

    @staticmethod
    def _consume_unobserved(task: "asyncio.Task[Any]") -> None:
        # Mark the exception retrieved; awaiters still receive it
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Inflight call failed: {task.exception()!r}")
