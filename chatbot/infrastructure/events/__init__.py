"""Lifecycle event system.

Usage:

    from chatbot.infrastructure.events import Event, EventDispatcher, names

    events = EventDispatcher()

    @events.register_handler(names.CHATBOT_READY)
    def load_addons(event: Event) -> None:
        ...

    events.publish(names.CHATBOT_READY)
"""

from chatbot.infrastructure.events import names
from chatbot.infrastructure.events.dispatcher import EventDispatcher, EventHandler
from chatbot.infrastructure.events.models import Event

__all__ = ["Event", "EventDispatcher", "EventHandler", "names"]
