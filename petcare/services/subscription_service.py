"""User "watch" subscriptions on animals.

A user may hold at most one subscription per animal. The aggregate decides
whether a subscribe/unsubscribe is allowed; the store persists the single
record that changed in the same transaction that loaded the subscribers.
"""

import logging

from starlette.concurrency import run_in_threadpool

from petcare.db.animal_store import AnimalStore, get_animal_store
from petcare.db.user_store import UserStore
from petcare.domain.animal import Animal, AnimalSubscription
from petcare.errors import NotFoundError
from petcare.services import event_dispatcher, profile_service

logger = logging.getLogger(__name__)


async def subscribe(
    animal_id: str,
    user_id: str,
    *,
    store: AnimalStore | None = None,
    users: UserStore | None = None,
) -> AnimalSubscription:
    """Subscribe *user_id* to *animal_id*.

    Raises ``NotFoundError`` for an unknown animal or user and
    ``ConflictError`` when the subscription already exists.
    """
    store = store or get_animal_store()
    await profile_service.require_profile(user_id, users=users)
    animal, subscription = await run_in_threadpool(store.subscribe, animal_id, user_id)
    event_dispatcher.dispatch(animal.drain_events())
    logger.info("User %s subscribed to animal %s", user_id, animal_id)
    return subscription


async def unsubscribe(
    animal_id: str,
    user_id: str,
    *,
    store: AnimalStore | None = None,
) -> AnimalSubscription | None:
    """Remove the subscription, returning it, or None when there was none."""
    store = store or get_animal_store()
    animal, subscription = await run_in_threadpool(store.unsubscribe, animal_id, user_id)
    event_dispatcher.dispatch(animal.drain_events())
    if subscription is not None:
        logger.info("User %s unsubscribed from animal %s", user_id, animal_id)
    return subscription


async def list_user_favorites(
    user_id: str,
    *,
    store: AnimalStore | None = None,
    users: UserStore | None = None,
) -> list[Animal]:
    """Return the animals *user_id* subscribes to, most recent subscription first."""
    store = store or get_animal_store()
    await profile_service.require_profile(user_id, users=users)
    subscriptions = await run_in_threadpool(store.subscriptions_for_user, user_id)
    subscriptions.sort(key=lambda s: s.created_at, reverse=True)

    animals = []
    for subscription in subscriptions:
        try:
            animals.append(await run_in_threadpool(store.get, subscription.animal_id))
        except NotFoundError:
            logger.warning(
                "Subscription %s points at missing animal %s",
                subscription.id, subscription.animal_id,
            )
    return animals
