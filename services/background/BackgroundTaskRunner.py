"""Fire-and-forget execution of background protocols.

Request handlers answer immediately and hand the protocol coroutine to the
runner. The runner keeps a reference to every pending task so it is not
garbage collected mid-flight, and reports each outcome to the log, which is
the only place a background failure ever shows up.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from shared.helper.HelperConfig import HelperConfig


class BackgroundTaskRunner:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Schedule a coroutine on the running loop and detach from it.

        Args:
            name (str): Task name used in log lines.
            coro (Coroutine): The protocol to run.

        Returns:
            asyncio.Task: The scheduled task. Awaiting it is optional.
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        self.logging.debug("Background task '%s' started (%d pending).", name, len(self._tasks))
        return task

    def get_pending_count(self) -> int:
        return len(self._tasks)

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Wait for pending tasks, cancelling whatever is still running after the timeout."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        self.logging.info("Waiting up to %.1fs for %d background task(s)...", timeout, len(pending))
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        name = task.get_name()
        if task.cancelled():
            self.logging.warning("Background task '%s' was cancelled.", name)
            return
        exc = task.exception()
        if exc is not None:
            self.logging.error("Background task '%s' failed: %s", name, exc, exc_info=exc)
            return
        self.logging.info("Background task '%s' finished: %r", name, task.result())
