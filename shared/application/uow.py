"""
Unit of Work

Wraps one database transaction and holds the domain events raised
inside it. Events are handed to the message bus only after the
transaction commits, so subscribers never see a booking that was
rolled back.
"""

from typing import List

import structlog
from django.db import transaction

from shared.domain.base import Aggregate, DomainEvent

logger = structlog.get_logger(__name__)


class DjangoUnitOfWork:
    """
    Transaction boundary with deferred event publishing

    Usage:
        with DjangoUnitOfWork() as uow:
            checkout.mark_committed(booking.pk)
            uow.collect_events(checkout)
        # events are published after commit

    Nested use joins the outer transaction; events then go out when the
    outermost block commits.
    """

    def __init__(self, bus=None):
        self._events: List[DomainEvent] = []
        self._atomic = None
        self._bus = bus

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            else:
                self._discard(exc_type)
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
        return False

    def collect_events(self, aggregate: Aggregate):
        """Move pending events off the aggregate into this unit of work"""
        pending = aggregate.events
        if pending:
            self._events.extend(pending)
            aggregate.clear_events()

    def record(self, event: DomainEvent):
        """Queue an event that is not raised by an aggregate"""
        self._events.append(event)

    def _schedule_publish(self):
        events = list(self._events)
        self._events.clear()
        if events:
            transaction.on_commit(lambda: self._publish(events))

    def _discard(self, exc_type):
        if self._events:
            logger.info(
                "uow.events_discarded",
                count=len(self._events),
                error=exc_type.__name__,
            )
        self._events.clear()

    def _publish(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        bus = self._bus or message_bus
        bus.publish_events(events)
