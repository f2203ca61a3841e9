"""Shared fixtures.

Tests run in mock mode (no FIREBASE_CREDENTIALS): every store is in-memory
and any non-empty Bearer token is accepted as the user id.
"""

from datetime import datetime, timezone

import pytest

from petcare.api.v1.endpoints.animals import limiter as animals_limiter
from petcare.api.v1.endpoints.auth import limiter as auth_limiter
from petcare.api.v1.endpoints.media import limiter as media_limiter
from petcare.api.v1.endpoints.users import limiter as users_limiter
from petcare.db.animal_store import InMemoryAnimalStore
from petcare.db.user_store import InMemoryUserStore
from petcare.domain.animal import Animal
from petcare.domain.enums import AnimalGender, AnimalSize, AnimalStatus

BREEDS = (
    {"id": "breed-lab", "name": "Labrador", "species_id": "species-dog"},
    {"id": "breed-beagle", "name": "Beagle", "species_id": "species-dog"},
    {"id": "breed-siamese", "name": "Siamese", "species_id": "species-cat"},
)


@pytest.fixture(autouse=True)
def _reset_rate_limiters() -> None:
    """Reset SlowAPI in-memory counters to avoid cross-test leakage."""
    for limiter in (animals_limiter, auth_limiter, media_limiter, users_limiter):
        storage = getattr(limiter, "_storage", None)
        if storage is not None and hasattr(storage, "reset"):
            storage.reset()


@pytest.fixture
def store() -> InMemoryAnimalStore:
    return InMemoryAnimalStore(BREEDS)


@pytest.fixture
def users() -> InMemoryUserStore:
    return InMemoryUserStore()


def day(n: int) -> datetime:
    """Return a UTC timestamp on day *n* of January 2024."""
    return datetime(2024, 1, n, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_animal():
    """Factory building a valid animal; ``created_at`` may be overridden."""

    def _make(**overrides) -> Animal:
        created_at = overrides.pop("created_at", None)
        fields = {
            "name": "Rex",
            "breed_id": "breed-lab",
            "shelter_id": "shelter-1",
            "gender": AnimalGender.MALE,
            "size": AnimalSize.MEDIUM,
            "status": AnimalStatus.AVAILABLE,
        }
        fields.update(overrides)
        animal = Animal.create(**fields)
        if created_at is not None:
            animal.created_at = animal.updated_at = created_at
        return animal

    return _make
