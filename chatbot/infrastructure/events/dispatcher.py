"""Event dispatcher for the lifecycle event system.

An in-process publish/subscribe hub. Each dispatcher owns its handler
registry and its background executor, so independent bots (and tests) never
share subscribers.
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from chatbot.infrastructure.events.models import Event
from chatbot.infrastructure.logging import get_module_logger

logger = get_module_logger()

EventHandler = Callable[[Event], Any]


class EventDispatcher:
    """Publish/subscribe hub for lifecycle events.

    Example:
        ```python
        events = EventDispatcher()

        @events.register_handler("chatbot.ready")
        def on_ready(event: Event) -> None:
            ...

        events.dispatch(Event(event_type="chatbot.ready"))
        ```
    """

    def __init__(self, max_workers: int = 4):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = Lock()
        self._executor_shutdown = False

    def register_handler(self, event_type: str):
        """Decorator registering a handler for ``event_type``."""

        def decorator(handler_func: EventHandler) -> EventHandler:
            self.subscribe(event_type, handler_func)
            return handler_func

        return decorator

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type``."""
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)
        logger.debug(
            "registered_event_handler",
            handler=getattr(handler, "__name__", "unknown"),
            event_type=event_type,
            total_handlers=len(handlers),
        )

    def dispatch(self, event: Event) -> List[Any]:
        """Dispatch event synchronously to all registered handlers.

        Handlers are called in registration order. A handler raising an
        exception is logged and skipped; the remaining handlers still run.

        Returns:
            List of return values from the handlers that succeeded.
        """
        results = []
        handlers = list(self._handlers.get(event.event_type, []))

        logger.debug(
            "dispatching_event",
            event_type=event.event_type,
            handler_count=len(handlers),
            correlation_id=event.correlation_id,
        )

        for handler in handlers:
            try:
                results.append(handler(event))
            except Exception as e:
                logger.error(
                    "event_handler_failed",
                    handler=getattr(handler, "__name__", "unknown"),
                    event_type=event.event_type,
                    error=str(e),
                    correlation_id=event.correlation_id,
                )

        return results

    def publish(
        self,
        event_type: str,
        correlation_id: Optional[str] = None,
        user_id: str = "",
        **metadata: Any,
    ) -> Event:
        """Build an Event and dispatch it synchronously.

        Returns:
            The dispatched event.
        """
        event = Event(event_type=event_type, user_id=user_id, metadata=metadata)
        if correlation_id:
            event.correlation_id = correlation_id
        self.dispatch(event)
        return event

    def _get_or_create_executor(self) -> Optional[ThreadPoolExecutor]:
        with self._executor_lock:
            if self._executor_shutdown:
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers)
                logger.debug(
                    "created_background_event_executor",
                    max_workers=self._max_workers,
                )
            return self._executor

    def start_executor(self) -> None:
        """Explicitly start the background executor."""
        self._get_or_create_executor()

    def shutdown_executor(self, wait: bool = True) -> None:
        """Shut down the background executor; idempotent."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
            self._executor_shutdown = True
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.debug("background_event_executor_shut_down", wait=wait)

    def _background_worker(self, event: Event) -> None:
        try:
            self.dispatch(event)
        except Exception as e:
            logger.exception(
                "background_event_dispatch_failed",
                event_type=event.event_type,
                error=str(e),
                correlation_id=event.correlation_id,
            )

    def dispatch_background(self, event: Event) -> None:
        """Fire-and-forget dispatch on the background executor.

        Submissions after ``shutdown_executor`` are dropped and logged.
        """
        executor = self._get_or_create_executor()
        if executor is None:
            logger.error(
                "event_executor_unavailable",
                event_type=event.event_type,
                correlation_id=event.correlation_id,
            )
            return
        executor.submit(self._background_worker, event)

    def get_registered_events(self) -> List[str]:
        return list(self._handlers.keys())

    def get_handlers_for_event(self, event_type: str) -> List[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def clear_handlers(self) -> None:
        self._handlers.clear()
        logger.debug("cleared_all_event_handlers")
