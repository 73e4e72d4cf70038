"""
Message Bus

In-process event dispatch. Apps subscribe handlers in their
AppConfig.ready(); the unit of work publishes after commit.
"""

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Type

import structlog

from shared.domain.base import DomainEvent

logger = structlog.get_logger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Events fan out to every subscribed handler (1:N)

    A failing handler is logged and skipped; the booking it describes
    is already committed and other handlers must still run.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler):
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        return list(self._handlers.get(event_type, ()))

    def publish_events(self, events: Iterable[DomainEvent]):
        for event in events:
            event_type = type(event)
            for handler in self.handlers_for(event_type):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "message_bus.handler_failed",
                        event=event_type.__name__,
                        event_id=str(event.event_id),
                        handler=getattr(handler, '__name__', repr(handler)),
                    )


message_bus = MessageBus()
