"""Catalog listing: store-side filtering, in-memory residual filtering, sort, page.

The listing runs in two explicit phases. ``build_store_predicate`` turns
every filter the store can evaluate natively into a ``StorePredicate`` and
the store returns *every* match, unpaginated. Age (derived from birthday)
and free-text search are then applied in memory, followed by the
dead-last / newest-first sort and the page slice.

Large unfiltered result sets are therefore materialised in memory before
pagination.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from starlette.concurrency import run_in_threadpool

from petcare.db.animal_store import AnimalStore, get_animal_store
from petcare.db.query import EQ, IN, FieldCondition, StorePredicate
from petcare.domain.animal import Animal
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
)
from petcare.domain.value_objects import utc_today, years_before
from petcare.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogFilters:
    """Optional listing constraints; an empty set or ``None`` means no constraint."""

    sizes: frozenset[AnimalSize] = field(default_factory=frozenset)
    genders: frozenset[AnimalGender] = field(default_factory=frozenset)
    statuses: frozenset[AnimalStatus] = field(default_factory=frozenset)
    care_costs: frozenset[AnimalCareCost] = field(default_factory=frozenset)
    min_age: int | None = None
    max_age: int | None = None
    is_sterilized: bool | None = None
    is_under_care: bool | None = None
    shelter_id: str | None = None
    species_id: str | None = None
    breed_id: str | None = None
    search: str | None = None

    def __post_init__(self) -> None:
        for attr in ("min_age", "max_age"):
            value = getattr(self, attr)
            if value is not None and value < 0:
                raise ValidationError(f"{attr} must not be negative", code="invalid_age")


# ---------------------------------------------------------------------------
# Phase 1: store-side predicate
# ---------------------------------------------------------------------------

def _sorted_values(values) -> list:
    return sorted(v.value for v in values)


def build_store_predicate(filters: CatalogFilters) -> StorePredicate:
    """Return the predicate for every natively evaluable filter field."""
    predicate = StorePredicate()
    set_filters = (
        ("size", filters.sizes),
        ("gender", filters.genders),
        ("care_cost", filters.care_costs),
        ("status", filters.statuses),
    )
    for field_name, values in set_filters:
        if values:
            predicate = predicate.and_(FieldCondition(field_name, IN, _sorted_values(values)))

    if filters.is_sterilized is not None:
        predicate = predicate.and_(FieldCondition("is_sterilized", EQ, filters.is_sterilized))
    if filters.is_under_care is not None:
        predicate = predicate.and_(FieldCondition("is_under_care", EQ, filters.is_under_care))
    if filters.shelter_id:
        predicate = predicate.and_(FieldCondition("shelter_id", EQ, filters.shelter_id))
    if filters.breed_id:
        predicate = predicate.and_(FieldCondition("breed_id", EQ, filters.breed_id))
    if filters.species_id:
        predicate = predicate.with_species(filters.species_id)
    return predicate


# ---------------------------------------------------------------------------
# Phase 2: residual filters, sort, page
# ---------------------------------------------------------------------------

def _matches_age(animal: Animal, filters: CatalogFilters, today: date) -> bool:
    if filters.min_age is None and filters.max_age is None:
        return True
    if animal.birthday is None:
        return False
    born = animal.birthday.value
    if filters.min_age is not None and born > years_before(today, filters.min_age):
        return False
    if filters.max_age is not None and born < years_before(today, filters.max_age):
        return False
    return True


def _matches_search(animal: Animal, needle: str) -> bool:
    if needle in animal.name.value.lower():
        return True
    return bool(animal.description) and needle in animal.description.lower()


def apply_residual_filters(
    animals: list[Animal],
    filters: CatalogFilters,
    today: date,
) -> list[Animal]:
    """Apply the age and free-text filters the store cannot evaluate."""
    needle = (filters.search or "").strip().lower()
    result = []
    for animal in animals:
        if not _matches_age(animal, filters, today):
            continue
        if needle and not _matches_search(animal, needle):
            continue
        result.append(animal)
    return result


def sort_catalog(animals: list[Animal]) -> list[Animal]:
    """Non-dead before dead, then newest first."""
    return sorted(
        animals,
        key=lambda a: (a.status == AnimalStatus.DEAD, -a.created_at.timestamp()),
    )


def validate_page(page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError("page must be >= 1", code="invalid_page")
    if page_size < 1:
        raise ValidationError("pageSize must be >= 1", code="invalid_page_size")


def paginate(animals: list[Animal], page: int, page_size: int) -> list[Animal]:
    """Return the 1-based *page* of *animals*."""
    validate_page(page, page_size)
    start = (page - 1) * page_size
    return animals[start:start + page_size]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def list_animals(
    page: int,
    page_size: int,
    filters: CatalogFilters | None = None,
    *,
    store: AnimalStore | None = None,
    today: date | None = None,
) -> tuple[list[Animal], int]:
    """Return ``(page_items, total_count)``.

    ``total_count`` is the size of the full filtered set, not of the page.
    """
    validate_page(page, page_size)
    filters = filters or CatalogFilters()
    store = store or get_animal_store()
    today = today or utc_today()

    predicate = build_store_predicate(filters)
    candidates = await run_in_threadpool(store.find, predicate)
    filtered = sort_catalog(apply_residual_filters(candidates, filters, today))
    items = paginate(filtered, page, page_size)
    logger.info(
        "Catalog page %d/%d: %d of %d animals (store matched %d)",
        page, page_size, len(items), len(filtered), len(candidates),
    )
    return items, len(filtered)
