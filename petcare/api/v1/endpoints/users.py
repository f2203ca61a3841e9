"""Adopter profile and favorites endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from petcare.config import settings
from petcare.dependencies import get_current_user_id
from petcare.models.animal import AnimalListItem
from petcare.models.errors import ApiErrorResponse
from petcare.models.profile import AdopterProfile, AdopterProfileUpdate
from petcare.services import profile_service, subscription_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])
limiter = Limiter(key_func=get_remote_address)


@router.patch(
    "/me/profile",
    response_model=AdopterProfile,
    responses={401: {"model": ApiErrorResponse}, 404: {"model": ApiErrorResponse}},
    summary="Update the adopter's username or avatar",
)
@limiter.limit(settings.RATE_LIMIT)
async def update_profile(
    request: Request,
    body: AdopterProfileUpdate,
    user_id: str = Depends(get_current_user_id),
) -> AdopterProfile:
    updates = body.model_dump(exclude_none=True)
    return AdopterProfile(**await profile_service.update_profile(user_id, **updates))


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ApiErrorResponse}, 404: {"model": ApiErrorResponse}},
    summary="Delete the adopter profile and its subscriptions",
)
@limiter.limit(settings.RATE_LIMIT)
async def delete_me(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> None:
    await profile_service.delete_profile(user_id)


@router.get(
    "/me/favorites",
    response_model=list[AnimalListItem],
    responses={401: {"model": ApiErrorResponse}, 404: {"model": ApiErrorResponse}},
    summary="List the animals the current user watches",
)
@limiter.limit(settings.RATE_LIMIT)
async def favorites(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> list[AnimalListItem]:
    animals = await subscription_service.list_user_favorites(user_id)
    return [AnimalListItem.from_domain(a) for a in animals]
