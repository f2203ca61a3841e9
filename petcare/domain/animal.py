"""The Animal aggregate and its subscription records.

The aggregate is the only place where animal state changes. Every method
validates its input first and only then mutates, so a failed call leaves the
aggregate untouched. Nothing here talks to a store; persistence is the job of
``petcare.db.animal_store``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable

from petcare.domain import events
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
    AnimalTemperament,
)
from petcare.domain.value_objects import Birthday, Name, Slug
from petcare.errors import ConflictError, ValidationError


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique(values: Iterable[str] | None) -> list[str]:
    """Deduplicate *values* keeping first-seen order; blanks are dropped."""
    seen: dict[str, None] = {}
    for value in values or ():
        if value is None:
            continue
        stripped = str(value).strip()
        if stripped:
            seen.setdefault(stripped, None)
    return list(seen)


def _unique_temperaments(values: Iterable[AnimalTemperament | str] | None) -> list[AnimalTemperament]:
    seen: dict[AnimalTemperament, None] = {}
    for value in values or ():
        try:
            seen.setdefault(AnimalTemperament(value), None)
        except ValueError:
            raise ValidationError(f"Unknown temperament '{value}'", code="invalid_temperament") from None
    return list(seen)


def _enum(enum_cls, value, label: str):
    if value is None:
        raise ValidationError(f"Animal {label} is required", code="missing_field")
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label} '{value}'", code="invalid_enum") from None


def _require_id(value: str | None, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required", code=f"invalid_{label.lower().replace(' ', '_')}")
    return str(value).strip()


def _positive(value: float | None, label: str) -> float | None:
    if value is None:
        return None
    if value <= 0:
        raise ValidationError(f"{label} must be positive", code=f"invalid_{label.lower()}")
    return float(value)


def _birthday(value: Birthday | date | None) -> Birthday | None:
    if value is None or isinstance(value, Birthday):
        return value
    return Birthday(value)


def normalize_user_id(user_id: str | None) -> str:
    """Return the canonical form of a user id used as a subscription key."""
    return str(user_id).strip() if user_id is not None else ""


def _media_url(url: str) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("Media URL must not be empty", code="invalid_media_url")
    return url.strip()


@dataclass
class AnimalSubscription:
    """A user's watch relationship to one animal."""

    id: str
    animal_id: str
    user_id: str
    created_at: datetime


@dataclass
class Animal:
    id: str
    name: Name
    slug: Slug
    breed_id: str
    shelter_id: str
    gender: AnimalGender
    size: AnimalSize
    status: AnimalStatus
    care_cost: AnimalCareCost = AnimalCareCost.SIX_HUNDRED
    birthday: Birthday | None = None
    is_sterilized: bool = False
    is_under_care: bool = False
    have_documents: bool = False
    weight: float | None = None
    height: float | None = None
    color: str | None = None
    description: str | None = None
    microchip_id: str | None = None
    adoption_requirements: str | None = None
    photos: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)
    health_conditions: list[str] = field(default_factory=list)
    special_needs: list[str] = field(default_factory=list)
    temperaments: list[AnimalTemperament] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    subscribers: dict[str, AnimalSubscription] = field(default_factory=dict)
    pending_events: list[events.DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        name: str,
        breed_id: str,
        shelter_id: str,
        gender: AnimalGender,
        size: AnimalSize,
        status: AnimalStatus,
        care_cost: AnimalCareCost = AnimalCareCost.SIX_HUNDRED,
        birthday: Birthday | date | None = None,
        description: str | None = None,
        health_conditions: Iterable[str] | None = None,
        special_needs: Iterable[str] | None = None,
        temperaments: Iterable[AnimalTemperament | str] | None = None,
        photos: Iterable[str] | None = None,
        videos: Iterable[str] | None = None,
        adoption_requirements: str | None = None,
        microchip_id: str | None = None,
        weight: float | None = None,
        height: float | None = None,
        color: str | None = None,
        is_sterilized: bool = False,
        is_under_care: bool = False,
        have_documents: bool = False,
    ) -> Animal:
        """Build a new animal from the full field set.

        Raises ``ValidationError`` when a required field is missing or a
        value is out of range. Nothing is constructed on failure.
        """
        valid_name = Name(name)
        valid_breed = _require_id(breed_id, "Breed id")
        valid_shelter = _require_id(shelter_id, "Shelter id")
        valid_birthday = _birthday(birthday)
        valid_weight = _positive(weight, "Weight")
        valid_height = _positive(height, "Height")
        valid_temperaments = _unique_temperaments(temperaments)
        gender = _enum(AnimalGender, gender, "gender")
        size = _enum(AnimalSize, size, "size")
        status = _enum(AnimalStatus, status, "status")
        care_cost = _enum(AnimalCareCost, care_cost, "care cost")

        animal_id = str(uuid.uuid4())
        now = _now()
        animal = cls(
            id=animal_id,
            name=valid_name,
            slug=Slug.generate(valid_name.value, animal_id),
            breed_id=valid_breed,
            shelter_id=valid_shelter,
            gender=gender,
            size=size,
            status=status,
            care_cost=care_cost,
            birthday=valid_birthday,
            is_sterilized=bool(is_sterilized),
            is_under_care=bool(is_under_care),
            have_documents=bool(have_documents),
            weight=valid_weight,
            height=valid_height,
            color=color,
            description=description,
            microchip_id=microchip_id,
            adoption_requirements=adoption_requirements,
            photos=_unique(photos),
            videos=_unique(videos),
            health_conditions=_unique(health_conditions),
            special_needs=_unique(special_needs),
            temperaments=valid_temperaments,
            created_at=now,
            updated_at=now,
        )
        animal.pending_events.append(events.AnimalCreated(animal_id, shelter_id=valid_shelter))
        return animal

    # ------------------------------------------------------------------
    # Core fields
    # ------------------------------------------------------------------

    def update_core(
        self,
        name: str | None = None,
        birthday: Birthday | date | None = None,
        gender: AnimalGender | None = None,
        description: str | None = None,
        status: AnimalStatus | None = None,
        adoption_requirements: str | None = None,
        microchip_id: str | None = None,
        weight: float | None = None,
        height: float | None = None,
        color: str | None = None,
        is_sterilized: bool | None = None,
        have_documents: bool | None = None,
    ) -> list[str]:
        """Partially update core fields; ``None`` means "leave as is".

        All supplied values are validated before anything is assigned.
        Returns the names of the fields that were supplied.
        """
        changes: dict[str, object] = {}
        if name is not None:
            changes["name"] = Name(name)
        if birthday is not None:
            changes["birthday"] = _birthday(birthday)
        if gender is not None:
            changes["gender"] = _enum(AnimalGender, gender, "gender")
        if description is not None:
            changes["description"] = description
        if status is not None:
            changes["status"] = _enum(AnimalStatus, status, "status")
        if adoption_requirements is not None:
            changes["adoption_requirements"] = adoption_requirements
        if microchip_id is not None:
            changes["microchip_id"] = microchip_id
        if weight is not None:
            changes["weight"] = _positive(weight, "Weight")
        if height is not None:
            changes["height"] = _positive(height, "Height")
        if color is not None:
            changes["color"] = color
        if is_sterilized is not None:
            changes["is_sterilized"] = bool(is_sterilized)
        if have_documents is not None:
            changes["have_documents"] = bool(have_documents)

        if not changes:
            return []

        old_status = self.status
        for attr, value in changes.items():
            setattr(self, attr, value)
        self._touch(events.AnimalUpdated(self.id, fields=tuple(changes)))
        if "status" in changes and self.status != old_status:
            self.pending_events.append(
                events.AnimalStatusChanged(self.id, old_status=old_status.value, new_status=self.status.value)
            )
        return list(changes)

    def update_size(self, size: AnimalSize) -> None:
        self.size = _enum(AnimalSize, size, "size")
        self._touch(events.AnimalUpdated(self.id, fields=("size",)))

    def update_care_cost(self, care_cost: AnimalCareCost) -> None:
        self.care_cost = _enum(AnimalCareCost, care_cost, "care cost")
        self._touch(events.AnimalUpdated(self.id, fields=("care_cost",)))

    def update_under_care(self, is_under_care: bool) -> None:
        self.is_under_care = bool(is_under_care)
        self._touch(events.AnimalUpdated(self.id, fields=("is_under_care",)))

    def change_breed(self, breed_id: str) -> None:
        self.breed_id = _require_id(breed_id, "Breed id")
        self._touch(events.AnimalUpdated(self.id, fields=("breed_id",)))

    # ------------------------------------------------------------------
    # Tag collections (wholesale replacement)
    # ------------------------------------------------------------------

    def replace_health_conditions(self, tags: Iterable[str] | None) -> None:
        self.health_conditions = _unique(tags)
        self._touch(events.AnimalUpdated(self.id, fields=("health_conditions",)))

    def replace_special_needs(self, tags: Iterable[str] | None) -> None:
        self.special_needs = _unique(tags)
        self._touch(events.AnimalUpdated(self.id, fields=("special_needs",)))

    def replace_temperaments(self, tags: Iterable[AnimalTemperament | str] | None) -> None:
        self.temperaments = _unique_temperaments(tags)
        self._touch(events.AnimalUpdated(self.id, fields=("temperaments",)))

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def add_photo(self, url: str) -> bool:
        """Append *url* unless already present. Returns True when appended."""
        url = _media_url(url)
        if url in self.photos:
            return False
        self.photos.append(url)
        self._touch(events.AnimalPhotoAdded(self.id, url=url))
        return True

    def remove_photo(self, url: str) -> bool:
        """Remove *url*; False when the animal never referenced it."""
        if not isinstance(url, str) or url.strip() not in self.photos:
            return False
        url = url.strip()
        self.photos.remove(url)
        self._touch(events.AnimalPhotoRemoved(self.id, url=url))
        return True

    def add_video(self, url: str) -> bool:
        url = _media_url(url)
        if url in self.videos:
            return False
        self.videos.append(url)
        self._touch(events.AnimalUpdated(self.id, fields=("videos",)))
        return True

    def remove_video(self, url: str) -> bool:
        if not isinstance(url, str) or url.strip() not in self.videos:
            return False
        self.videos.remove(url.strip())
        self._touch(events.AnimalUpdated(self.id, fields=("videos",)))
        return True

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def is_subscribed(self, user_id: str) -> bool:
        return normalize_user_id(user_id) in self.subscribers

    def subscribe(self, user_id: str) -> AnimalSubscription:
        """Create a subscription for *user_id*.

        Raises ``ConflictError`` when the user already watches this animal.
        """
        user_id = _require_id(user_id, "User id")
        if user_id in self.subscribers:
            raise ConflictError(
                f"User '{user_id}' is already subscribed to animal '{self.id}'",
                code="already_subscribed",
            )
        subscription = AnimalSubscription(
            id=str(uuid.uuid4()),
            animal_id=self.id,
            user_id=user_id,
            created_at=_now(),
        )
        self.subscribers[user_id] = subscription
        self.pending_events.append(events.AnimalSubscribed(self.id, user_id=user_id))
        return subscription

    def unsubscribe(self, user_id: str) -> AnimalSubscription | None:
        """Remove and return the user's subscription, or None if there was none."""
        subscription = self.subscribers.pop(normalize_user_id(user_id), None)
        if subscription is not None:
            self.pending_events.append(events.AnimalUnsubscribed(self.id, user_id=subscription.user_id))
        return subscription

    # ------------------------------------------------------------------

    def age_in_years(self, today: date | None = None) -> int | None:
        return self.birthday.age_in_years(today) if self.birthday else None

    def drain_events(self) -> list[events.DomainEvent]:
        drained, self.pending_events = self.pending_events, []
        return drained

    def _touch(self, event: events.DomainEvent) -> None:
        self.updated_at = _now()
        self.pending_events.append(event)
