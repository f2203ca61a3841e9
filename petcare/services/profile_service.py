"""Adopter profiles.

An adopter profile is created once per Firebase account and is required
before the account can watch animals. The profile response carries how many
animals the adopter currently watches. Deleting a profile also deletes every
subscription it holds.
"""

import logging

from starlette.concurrency import run_in_threadpool

from petcare.db.animal_store import AnimalStore, get_animal_store
from petcare.db.user_store import UserStore, get_user_store
from petcare.errors import NotFoundError

logger = logging.getLogger(__name__)


def _profile_missing(user_id: str) -> NotFoundError:
    return NotFoundError(
        f"User '{user_id}' has no profile. Call POST /auth/register first.",
        code="user_not_found",
    )


async def _with_favorite_count(profile: dict, store: AnimalStore) -> dict:
    subscriptions = await run_in_threadpool(store.subscriptions_for_user, profile["id"])
    return {**profile, "favorite_count": len(subscriptions)}


async def require_profile(user_id: str, *, users: UserStore | None = None) -> dict:
    """Return the stored profile or raise ``NotFoundError`` (``user_not_found``)."""
    users = users or get_user_store()
    profile = await run_in_threadpool(users.get_user, user_id)
    if profile is None:
        raise _profile_missing(user_id)
    return profile


async def register_adopter(
    user_id: str,
    email: str | None,
    username: str,
    photo_url: str | None = None,
    *,
    users: UserStore | None = None,
) -> dict:
    """Create the profile for a freshly signed-up account.

    Raises ``ConflictError`` when the account already has one.
    """
    users = users or get_user_store()
    profile = await run_in_threadpool(users.create_user, user_id, email, username, photo_url)
    return {**profile, "favorite_count": 0}


async def get_profile(
    user_id: str,
    *,
    users: UserStore | None = None,
    store: AnimalStore | None = None,
) -> dict:
    profile = await require_profile(user_id, users=users)
    return await _with_favorite_count(profile, store or get_animal_store())


async def update_profile(
    user_id: str,
    *,
    users: UserStore | None = None,
    store: AnimalStore | None = None,
    **fields,
) -> dict:
    users = users or get_user_store()
    profile = await run_in_threadpool(users.update_user, user_id, **fields)
    if profile is None:
        raise _profile_missing(user_id)
    return await _with_favorite_count(profile, store or get_animal_store())


async def delete_profile(
    user_id: str,
    *,
    users: UserStore | None = None,
    store: AnimalStore | None = None,
) -> int:
    """Delete the profile and its subscriptions; return how many subscriptions went."""
    users = users or get_user_store()
    store = store or get_animal_store()
    await require_profile(user_id, users=users)
    removed = await run_in_threadpool(store.delete_user_subscriptions, user_id)
    await run_in_threadpool(users.delete_user, user_id)
    logger.info("Deleted profile %s and %d subscriptions", user_id, removed)
    return removed
