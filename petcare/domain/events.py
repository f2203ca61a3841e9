"""Domain events raised by the animal aggregate.

Events are collected on the aggregate while it is mutated and dispatched
after the store has committed the change.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    animal_id: str
    occurred_at: datetime = field(default_factory=_now, kw_only=True)


@dataclass(frozen=True)
class AnimalCreated(DomainEvent):
    shelter_id: str


@dataclass(frozen=True)
class AnimalUpdated(DomainEvent):
    fields: tuple[str, ...]


@dataclass(frozen=True)
class AnimalStatusChanged(DomainEvent):
    old_status: str
    new_status: str


@dataclass(frozen=True)
class AnimalPhotoAdded(DomainEvent):
    url: str


@dataclass(frozen=True)
class AnimalPhotoRemoved(DomainEvent):
    url: str


@dataclass(frozen=True)
class AnimalSubscribed(DomainEvent):
    user_id: str


@dataclass(frozen=True)
class AnimalUnsubscribed(DomainEvent):
    user_id: str
