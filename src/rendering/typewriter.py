"""Character-by-character reveal loop for the animating message."""

from __future__ import annotations

import asyncio

from collections.abc import Callable

from core.constants import TYPING_INTERVAL_SECONDS
from utils.logger import logger

ProgressCallback = Callable[[str], None]
CompleteCallback = Callable[[int], None]


class TypewriterAnimation:
    """Reveals text one character per tick on the running event loop.

    At most one run is active; starting a new run cancels the previous one.
    Once ``cancel()`` returns, no callback of the cancelled run fires.
    """

    def __init__(
        self,
        on_progress: ProgressCallback,
        on_complete: CompleteCallback | None = None,
        *,
        interval: float = TYPING_INTERVAL_SECONDS,
    ):
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.interval = interval
        self._task: asyncio.Task[None] | None = None
        self._message_id: int | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def message_id(self) -> int | None:
        """Id of the message being revealed, ``None`` when idle."""
        return self._message_id if self.is_running else None

    def start(self, message_id: int, text: str) -> asyncio.Task[None]:
        """Begin revealing ``text``; requires a running event loop."""
        self.cancel()
        self._message_id = message_id
        self._task = asyncio.get_running_loop().create_task(self._run(message_id, text))
        self._task.add_done_callback(self._on_task_done)
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug(f"Typing animation cancelled for message {self._message_id}")
        self._task = None
        self._message_id = None

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        # Surface callback errors instead of leaving them unretrieved on the task
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Typing animation failed: {exc}", exc_info=exc)

    async def _run(self, message_id: int, text: str) -> None:
        self.on_progress("")
        for i in range(1, len(text) + 1):
            await asyncio.sleep(self.interval)
            self.on_progress(text[:i])

        # Detach before notifying so the callback may start the next run
        self._task = None
        self._message_id = None
        if self.on_complete is not None:
            self.on_complete(message_id)
