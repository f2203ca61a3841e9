"""Animal lifecycle operations.

Each mutation runs as a single ``AnimalStore.mutate`` call: the aggregate is
loaded fresh, changed and written back together, so a failed validation or a
cancelled request never leaves a half-applied update. Domain events are
dispatched only after the store has committed.

Storage cleanup for removed media happens after the commit and is best
effort: a failed delete is logged and never rolls the aggregate back.
"""

import logging
from datetime import date
from typing import Any, Iterable

from starlette.concurrency import run_in_threadpool

from petcare.db.animal_store import AnimalStore, get_animal_store
from petcare.domain.animal import Animal
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
    AnimalTemperament,
)
from petcare.domain.value_objects import Slug
from petcare.errors import NotFoundError
from petcare.services import event_dispatcher
from petcare.services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

CORE_FIELDS = (
    "name",
    "birthday",
    "gender",
    "description",
    "status",
    "adoption_requirements",
    "microchip_id",
    "weight",
    "height",
    "color",
    "is_sterilized",
    "have_documents",
)


def _commit(animal: Animal) -> Animal:
    event_dispatcher.dispatch(animal.drain_events())
    return animal


async def _ensure_breed(store: AnimalStore, breed_id: str) -> None:
    if await run_in_threadpool(store.get_breed, breed_id) is None:
        raise NotFoundError(f"Breed '{breed_id}' not found", code="breed_not_found")


async def _cleanup_media(storage: StorageService, urls: Iterable[str]) -> None:
    for url in urls:
        try:
            await run_in_threadpool(storage.delete_file, url)
        except Exception as e:
            logger.warning("Could not delete stored media %s: %s", url, e)


# ---------------------------------------------------------------------------
# Create / read / delete
# ---------------------------------------------------------------------------

async def create_animal(
    *,
    name: str,
    breed_id: str,
    shelter_id: str,
    gender: AnimalGender,
    size: AnimalSize,
    status: AnimalStatus,
    care_cost: AnimalCareCost = AnimalCareCost.SIX_HUNDRED,
    birthday: date | None = None,
    store: AnimalStore | None = None,
    **details: Any,
) -> Animal:
    """Validate, build and persist a new animal.

    *details* carries the optional fields accepted by ``Animal.create``.
    Raises ``NotFoundError`` when *breed_id* is not a known breed.
    """
    store = store or get_animal_store()
    animal = Animal.create(
        name=name,
        breed_id=breed_id,
        shelter_id=shelter_id,
        gender=gender,
        size=size,
        status=status,
        care_cost=care_cost,
        birthday=birthday,
        **details,
    )
    await _ensure_breed(store, animal.breed_id)
    await run_in_threadpool(store.add, animal)
    logger.info("Created animal %s in shelter %s", animal.id, animal.shelter_id)
    return _commit(animal)


async def get_animal(animal_id: str, *, store: AnimalStore | None = None) -> Animal:
    store = store or get_animal_store()
    return await run_in_threadpool(store.get, animal_id)


async def get_animal_by_slug(slug: str, *, store: AnimalStore | None = None) -> Animal:
    """Look up an animal by slug; case and surrounding blanks are ignored."""
    store = store or get_animal_store()
    return await run_in_threadpool(store.get_by_slug, Slug.from_existing(slug).value)


async def delete_animal(
    animal_id: str,
    *,
    store: AnimalStore | None = None,
    storage: StorageService | None = None,
) -> None:
    """Delete the animal, its subscriptions and (best effort) its media."""
    store = store or get_animal_store()
    animal = await run_in_threadpool(store.get, animal_id)
    await run_in_threadpool(store.delete, animal_id)
    logger.info("Deleted animal %s", animal_id)
    await _cleanup_media(storage or get_storage_service(), animal.photos + animal.videos)


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

async def update_animal(
    animal_id: str,
    *,
    core: dict[str, Any] | None = None,
    size: AnimalSize | None = None,
    care_cost: AnimalCareCost | None = None,
    is_under_care: bool | None = None,
    breed_id: str | None = None,
    health_conditions: list[str] | None = None,
    special_needs: list[str] | None = None,
    temperaments: list[AnimalTemperament] | None = None,
    store: AnimalStore | None = None,
) -> Animal:
    """Apply a partial update in one store transaction.

    ``None`` leaves a field untouched; an empty list clears a tag collection.
    Any validation failure aborts the whole update.
    """
    store = store or get_animal_store()
    core = {k: v for k, v in (core or {}).items() if k in CORE_FIELDS and v is not None}
    if breed_id is not None:
        await _ensure_breed(store, breed_id)

    def _apply(animal: Animal) -> None:
        if core:
            animal.update_core(**core)
        if size is not None:
            animal.update_size(size)
        if care_cost is not None:
            animal.update_care_cost(care_cost)
        if is_under_care is not None:
            animal.update_under_care(is_under_care)
        if breed_id is not None and breed_id != animal.breed_id:
            animal.change_breed(breed_id)
        if health_conditions is not None:
            animal.replace_health_conditions(health_conditions)
        if special_needs is not None:
            animal.replace_special_needs(special_needs)
        if temperaments is not None:
            animal.replace_temperaments(temperaments)

    animal, _ = await run_in_threadpool(store.mutate, animal_id, _apply)
    logger.info("Updated animal %s", animal_id)
    return _commit(animal)


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

async def add_photo(animal_id: str, url: str, *, store: AnimalStore | None = None) -> tuple[Animal, bool]:
    """Append *url*; returns ``(animal, added)`` where *added* is False for a duplicate."""
    store = store or get_animal_store()
    animal, added = await run_in_threadpool(store.mutate, animal_id, lambda a: a.add_photo(url))
    return _commit(animal), added


async def add_video(animal_id: str, url: str, *, store: AnimalStore | None = None) -> tuple[Animal, bool]:
    store = store or get_animal_store()
    animal, added = await run_in_threadpool(store.mutate, animal_id, lambda a: a.add_video(url))
    return _commit(animal), added


def _remover(kind: str, url: str):
    def _remove(animal: Animal) -> None:
        removed = animal.remove_photo(url) if kind == "photo" else animal.remove_video(url)
        if not removed:
            raise NotFoundError(
                f"Animal '{animal.id}' has no {kind} '{url}'", code=f"{kind}_not_found"
            )
    return _remove


async def remove_photo(
    animal_id: str,
    url: str,
    *,
    store: AnimalStore | None = None,
    storage: StorageService | None = None,
) -> Animal:
    """Remove *url* from the animal, then delete the stored file.

    Raises ``NotFoundError`` when the animal does not reference *url*.
    """
    store = store or get_animal_store()
    animal, _ = await run_in_threadpool(store.mutate, animal_id, _remover("photo", url))
    _commit(animal)
    await _cleanup_media(storage or get_storage_service(), [url])
    return animal


async def remove_video(
    animal_id: str,
    url: str,
    *,
    store: AnimalStore | None = None,
    storage: StorageService | None = None,
) -> Animal:
    store = store or get_animal_store()
    animal, _ = await run_in_threadpool(store.mutate, animal_id, _remover("video", url))
    _commit(animal)
    await _cleanup_media(storage or get_storage_service(), [url])
    return animal
