"""Post-commit dispatch of aggregate domain events.

Handlers are registered per event type and run synchronously, in
registration order, after the store has committed the change that raised
the events. The built-in handlers only log.
"""

import logging
from collections import defaultdict
from typing import Callable, Iterable

from petcare.domain import events

logger = logging.getLogger(__name__)

Handler = Callable[[events.DomainEvent], None]

_handlers: dict[type, list[Handler]] = defaultdict(list)


def register(event_type: type, handler: Handler) -> None:
    _handlers[event_type].append(handler)


def unregister(event_type: type, handler: Handler) -> None:
    """Remove a handler added with ``register``; unknown handlers are ignored."""
    registered = _handlers.get(event_type, [])
    if handler in registered:
        registered.remove(handler)


def dispatch(pending: Iterable[events.DomainEvent]) -> None:
    """Run every handler registered for each event's type or a base type."""
    for event in pending:
        for event_type in type(event).__mro__:
            for handler in _handlers.get(event_type, ()):
                handler(event)


def _log_event(event: events.DomainEvent) -> None:
    logger.debug("%s on animal %s", type(event).__name__, event.animal_id)


def _log_status_change(event: events.AnimalStatusChanged) -> None:
    logger.info(
        "Animal %s status %s -> %s", event.animal_id, event.old_status, event.new_status
    )


register(events.DomainEvent, _log_event)
register(events.AnimalStatusChanged, _log_status_change)
