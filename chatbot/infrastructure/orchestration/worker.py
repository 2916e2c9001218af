"""Per-destination message queue.

Each destination gets one worker: one asyncio task draining one queue, so
messages of a destination are processed strictly in arrival order while
destinations never wait on each other.
"""

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional, Tuple

from chatbot.infrastructure.logging import get_module_logger
from chatbot.infrastructure.platforms.models import Message

logger = get_module_logger()

WorkerKey = Tuple[str, str]
MessageProcessor = Callable[[Message], Awaitable[None]]
IdleCallback = Callable[[WorkerKey], bool]


class DestinationWorker:
    """Serializes processing of the messages of one destination.

    A processor exception is logged and the worker moves on to the next
    message. Whenever the queue runs empty ``on_idle`` is asked whether the
    worker may finish; a True answer ends its task.
    """

    def __init__(
        self,
        key: WorkerKey,
        processor: MessageProcessor,
        on_idle: Optional[IdleCallback] = None,
    ):
        self.key = key
        self._processor = processor
        self._on_idle = on_idle
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._busy = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def idle(self) -> bool:
        return self._queue.empty() and not self._busy

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"destination-worker:{self.key[0]}:{self.key[1]}"
        )

    def submit(self, message: Message) -> None:
        self._queue.put_nowait(message)
        self.start()

    async def join(self) -> None:
        """Wait until every submitted message has been processed."""
        await self._queue.join()

    def close(self) -> None:
        """Cancel the task of an idle worker without waiting for it."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            self._busy = True
            try:
                await self._processor(message)
            except Exception as exc:
                logger.exception(
                    "destination_message_failed",
                    user_id=self.key[0],
                    channel_id=self.key[1],
                    error=str(exc),
                )
            finally:
                self._busy = False
                self._queue.task_done()
            if self._queue.empty() and self._on_idle and self._on_idle(self.key):
                logger.debug(
                    "destination_worker_released",
                    user_id=self.key[0],
                    channel_id=self.key[1],
                )
                return
