"""Animal catalog, lifecycle, media and subscription endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from petcare.config import settings
from petcare.dependencies import get_current_user_id, get_pagination
from petcare.domain.enums import AnimalCareCost, AnimalGender, AnimalSize, AnimalStatus
from petcare.models.animal import (
    AnimalCreateRequest,
    AnimalListItem,
    AnimalListResponse,
    AnimalResponse,
    AnimalUpdateRequest,
    MediaResponse,
    MediaUrlRequest,
    SubscriptionResponse,
    UnsubscribeResponse,
)
from petcare.models.errors import ApiErrorResponse
from petcare.services import animal_service, catalog_service, subscription_service
from petcare.services.animal_service import CORE_FIELDS
from petcare.services.catalog_service import CatalogFilters

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Animals"])
limiter = Limiter(key_func=get_remote_address)

_NOT_FOUND = {404: {"model": ApiErrorResponse}}


def _set(values) -> frozenset:
    return frozenset(values or ())


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@router.get(
    "/animals",
    response_model=AnimalListResponse,
    responses={400: {"model": ApiErrorResponse}},
    summary="List animals",
    description="Filter, sort (dead last, newest first) and paginate the animal catalog.",
)
@limiter.limit(settings.RATE_LIMIT)
async def list_animals(
    request: Request,
    pagination: tuple[int, int] = Depends(get_pagination),
    sizes: list[AnimalSize] | None = Query(None),
    genders: list[AnimalGender] | None = Query(None),
    statuses: list[AnimalStatus] | None = Query(None),
    care_costs: list[AnimalCareCost] | None = Query(None, alias="careCosts"),
    min_age: int | None = Query(None, alias="minAge", ge=0),
    max_age: int | None = Query(None, alias="maxAge", ge=0),
    is_sterilized: bool | None = Query(None, alias="isSterilized"),
    is_under_care: bool | None = Query(None, alias="isUnderCare"),
    shelter_id: str | None = Query(None, alias="shelterId"),
    species_id: str | None = Query(None, alias="specieId"),
    breed_id: str | None = Query(None, alias="breedId"),
    search: str | None = Query(None, max_length=200),
) -> AnimalListResponse:
    """Return one page of animals plus the total number of matches."""
    page, page_size = pagination
    filters = CatalogFilters(
        sizes=_set(sizes),
        genders=_set(genders),
        statuses=_set(statuses),
        care_costs=_set(care_costs),
        min_age=min_age,
        max_age=max_age,
        is_sterilized=is_sterilized,
        is_under_care=is_under_care,
        shelter_id=shelter_id,
        species_id=species_id,
        breed_id=breed_id,
        search=search,
    )
    items, total = await catalog_service.list_animals(page, page_size, filters)
    return AnimalListResponse(
        items=[AnimalListItem.from_domain(a) for a in items],
        total_count=total,
        page=page,
        page_size=page_size,
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@router.post(
    "/animals",
    response_model=AnimalResponse,
    status_code=201,
    responses={400: {"model": ApiErrorResponse}, **_NOT_FOUND},
    summary="Register an animal",
)
@limiter.limit(settings.RATE_LIMIT)
async def create_animal(request: Request, body: AnimalCreateRequest) -> AnimalResponse:
    animal = await animal_service.create_animal(**body.model_dump())
    return AnimalResponse.from_domain(animal)


@router.get(
    "/animals/slug/{slug}",
    response_model=AnimalResponse,
    responses=_NOT_FOUND,
    summary="Get animal by slug",
)
@limiter.limit(settings.RATE_LIMIT)
async def get_animal_by_slug(request: Request, slug: str) -> AnimalResponse:
    animal = await animal_service.get_animal_by_slug(slug)
    return AnimalResponse.from_domain(animal)


@router.get(
    "/animals/{animal_id}",
    response_model=AnimalResponse,
    responses=_NOT_FOUND,
    summary="Get animal by id",
)
@limiter.limit(settings.RATE_LIMIT)
async def get_animal(request: Request, animal_id: str) -> AnimalResponse:
    animal = await animal_service.get_animal(animal_id)
    return AnimalResponse.from_domain(animal)


@router.patch(
    "/animals/{animal_id}",
    response_model=AnimalResponse,
    responses={400: {"model": ApiErrorResponse}, **_NOT_FOUND},
    summary="Update an animal",
    description="Partial update. Every supplied field is validated before any is applied.",
)
@limiter.limit(settings.RATE_LIMIT)
async def update_animal(
    request: Request,
    animal_id: str,
    body: AnimalUpdateRequest,
) -> AnimalResponse:
    supplied = body.model_dump(exclude_unset=True)
    animal = await animal_service.update_animal(
        animal_id,
        core={k: v for k, v in supplied.items() if k in CORE_FIELDS},
        size=body.size,
        care_cost=body.care_cost,
        is_under_care=body.is_under_care,
        breed_id=body.breed_id,
        health_conditions=body.health_conditions,
        special_needs=body.special_needs,
        temperaments=body.temperaments,
    )
    return AnimalResponse.from_domain(animal)


@router.delete(
    "/animals/{animal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Delete an animal",
)
@limiter.limit(settings.RATE_LIMIT)
async def delete_animal(request: Request, animal_id: str) -> None:
    await animal_service.delete_animal(animal_id)


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

@router.post(
    "/animals/{animal_id}/photos",
    response_model=MediaResponse,
    responses={400: {"model": ApiErrorResponse}, **_NOT_FOUND},
    summary="Attach a photo URL",
)
@limiter.limit(settings.RATE_LIMIT)
async def add_photo(request: Request, animal_id: str, body: MediaUrlRequest) -> MediaResponse:
    animal, added = await animal_service.add_photo(animal_id, body.url)
    return MediaResponse(animal=AnimalResponse.from_domain(animal), added=added)


@router.delete(
    "/animals/{animal_id}/photos",
    response_model=AnimalResponse,
    responses=_NOT_FOUND,
    summary="Detach a photo and delete the stored file",
)
@limiter.limit(settings.RATE_LIMIT)
async def remove_photo(request: Request, animal_id: str, body: MediaUrlRequest) -> AnimalResponse:
    animal = await animal_service.remove_photo(animal_id, body.url)
    return AnimalResponse.from_domain(animal)


@router.post(
    "/animals/{animal_id}/videos",
    response_model=MediaResponse,
    responses={400: {"model": ApiErrorResponse}, **_NOT_FOUND},
    summary="Attach a video URL",
)
@limiter.limit(settings.RATE_LIMIT)
async def add_video(request: Request, animal_id: str, body: MediaUrlRequest) -> MediaResponse:
    animal, added = await animal_service.add_video(animal_id, body.url)
    return MediaResponse(animal=AnimalResponse.from_domain(animal), added=added)


@router.delete(
    "/animals/{animal_id}/videos",
    response_model=AnimalResponse,
    responses=_NOT_FOUND,
    summary="Detach a video and delete the stored file",
)
@limiter.limit(settings.RATE_LIMIT)
async def remove_video(request: Request, animal_id: str, body: MediaUrlRequest) -> AnimalResponse:
    animal = await animal_service.remove_video(animal_id, body.url)
    return AnimalResponse.from_domain(animal)


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

@router.post(
    "/animals/{animal_id}/subscription",
    response_model=SubscriptionResponse,
    status_code=201,
    responses={401: {"model": ApiErrorResponse}, 409: {"model": ApiErrorResponse}, **_NOT_FOUND},
    summary="Watch an animal",
)
@limiter.limit(settings.RATE_LIMIT)
async def subscribe(
    request: Request,
    animal_id: str,
    user_id: str = Depends(get_current_user_id),
) -> SubscriptionResponse:
    subscription = await subscription_service.subscribe(animal_id, user_id)
    return SubscriptionResponse.from_domain(subscription)


@router.delete(
    "/animals/{animal_id}/subscription",
    response_model=UnsubscribeResponse,
    responses={401: {"model": ApiErrorResponse}, **_NOT_FOUND},
    summary="Stop watching an animal",
    description="Removing a subscription that does not exist is a no-op (`unsubscribed: false`).",
)
@limiter.limit(settings.RATE_LIMIT)
async def unsubscribe(
    request: Request,
    animal_id: str,
    user_id: str = Depends(get_current_user_id),
) -> UnsubscribeResponse:
    subscription = await subscription_service.unsubscribe(animal_id, user_id)
    if subscription is None:
        return UnsubscribeResponse(unsubscribed=False)
    return UnsubscribeResponse(
        unsubscribed=True,
        subscription=SubscriptionResponse.from_domain(subscription),
    )


@router.get(
    "/health",
    summary="Health check",
    description="Check that the API is running.",
)
@limiter.limit(settings.RATE_LIMIT)
async def health_check(request: Request) -> dict:
    """Health check endpoint, no auth required."""
    return {"status": "healthy"}
