"""Pluggable animal persistence: in-memory for dev/test, Firestore for production.

``get_animal_store()`` returns a singleton whose concrete type depends on
whether the app is running in mock mode.

Every mutating method loads a fresh aggregate, applies the change and writes
it back as one unit. If anything raises before the write, nothing is stored.
"""

import abc
import logging
import threading
from datetime import date
from typing import Callable, Iterable, TypeVar

from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore_v1 import Transaction
from google.cloud.firestore_v1.base_query import FieldFilter

from petcare.db.firestore import get_firestore_client, is_mock_mode
from petcare.db.query import IN, StorePredicate
from petcare.db.reference_data import load_breeds
from petcare.domain.animal import Animal, AnimalSubscription, normalize_user_id
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
    AnimalTemperament,
)
from petcare.domain.value_objects import Birthday, Name, Slug
from petcare.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Firestore accepts at most 30 values in a single ``in`` filter.
FIRESTORE_IN_LIMIT = 30


# ---------------------------------------------------------------------------
# Document mapping
# ---------------------------------------------------------------------------

def animal_to_document(animal: Animal) -> dict:
    """Flatten an aggregate into a storable document (subscribers excluded)."""
    return {
        "name": animal.name.value,
        "slug": animal.slug.value,
        "breed_id": animal.breed_id,
        "shelter_id": animal.shelter_id,
        "gender": animal.gender.value,
        "size": animal.size.value,
        "status": animal.status.value,
        "care_cost": animal.care_cost.value,
        "birthday": animal.birthday.value.isoformat() if animal.birthday else None,
        "is_sterilized": animal.is_sterilized,
        "is_under_care": animal.is_under_care,
        "have_documents": animal.have_documents,
        "weight": animal.weight,
        "height": animal.height,
        "color": animal.color,
        "description": animal.description,
        "microchip_id": animal.microchip_id,
        "adoption_requirements": animal.adoption_requirements,
        "photos": list(animal.photos),
        "videos": list(animal.videos),
        "health_conditions": list(animal.health_conditions),
        "special_needs": list(animal.special_needs),
        "temperaments": [t.value for t in animal.temperaments],
        "created_at": animal.created_at,
        "updated_at": animal.updated_at,
    }


def animal_from_document(
    animal_id: str,
    data: dict,
    subscriptions: Iterable[AnimalSubscription] = (),
) -> Animal:
    """Rebuild an aggregate from its stored document."""
    birthday = data.get("birthday")
    return Animal(
        id=animal_id,
        name=Name(data["name"]),
        slug=Slug(data["slug"]),
        breed_id=data["breed_id"],
        shelter_id=data["shelter_id"],
        gender=AnimalGender(data["gender"]),
        size=AnimalSize(data["size"]),
        status=AnimalStatus(data["status"]),
        care_cost=AnimalCareCost(data.get("care_cost", AnimalCareCost.SIX_HUNDRED.value)),
        birthday=Birthday(date.fromisoformat(birthday)) if birthday else None,
        is_sterilized=bool(data.get("is_sterilized", False)),
        is_under_care=bool(data.get("is_under_care", False)),
        have_documents=bool(data.get("have_documents", False)),
        weight=data.get("weight"),
        height=data.get("height"),
        color=data.get("color"),
        description=data.get("description"),
        microchip_id=data.get("microchip_id"),
        adoption_requirements=data.get("adoption_requirements"),
        photos=list(data.get("photos", [])),
        videos=list(data.get("videos", [])),
        health_conditions=list(data.get("health_conditions", [])),
        special_needs=list(data.get("special_needs", [])),
        temperaments=[AnimalTemperament(t) for t in data.get("temperaments", [])],
        created_at=data["created_at"],
        updated_at=data.get("updated_at", data["created_at"]),
        subscribers={s.user_id: s for s in subscriptions},
    )


def subscription_to_document(subscription: AnimalSubscription) -> dict:
    return {
        "id": subscription.id,
        "animal_id": subscription.animal_id,
        "user_id": subscription.user_id,
        "created_at": subscription.created_at,
    }


def subscription_from_document(data: dict) -> AnimalSubscription:
    return AnimalSubscription(
        id=data["id"],
        animal_id=data["animal_id"],
        user_id=data["user_id"],
        created_at=data["created_at"],
    )


def _not_found(animal_id: str) -> NotFoundError:
    return NotFoundError(f"Animal '{animal_id}' not found", code="animal_not_found")


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------

class AnimalStore(abc.ABC):
    """Common interface for animal persistence."""

    @abc.abstractmethod
    def add(self, animal: Animal) -> Animal:
        """Insert a new animal. Raises ``ConflictError`` on a duplicate id or slug."""

    @abc.abstractmethod
    def get(self, animal_id: str) -> Animal:
        """Return the animal with its subscribers. Raises ``NotFoundError``."""

    @abc.abstractmethod
    def get_by_slug(self, slug: str) -> Animal:
        """Return the animal with the given slug. Raises ``NotFoundError``."""

    @abc.abstractmethod
    def delete(self, animal_id: str) -> None:
        """Delete the animal and its subscription records. Raises ``NotFoundError``."""

    @abc.abstractmethod
    def mutate(self, animal_id: str, fn: Callable[[Animal], T]) -> tuple[Animal, T]:
        """Load the animal, apply *fn* and persist the result atomically.

        Returns ``(updated_animal, fn_result)``. If *fn* raises, nothing is
        written and the exception propagates.
        """

    @abc.abstractmethod
    def subscribe(self, animal_id: str, user_id: str) -> tuple[Animal, AnimalSubscription]:
        """Subscribe *user_id* and insert the subscription record in one unit."""

    @abc.abstractmethod
    def unsubscribe(self, animal_id: str, user_id: str) -> tuple[Animal, AnimalSubscription | None]:
        """Unsubscribe *user_id* and delete the record if one existed."""

    @abc.abstractmethod
    def find(self, predicate: StorePredicate) -> list[Animal]:
        """Return every animal matching *predicate* (unpaginated, subscribers not loaded)."""

    @abc.abstractmethod
    def subscriptions_for_user(self, user_id: str) -> list[AnimalSubscription]:
        """Return all subscriptions held by *user_id*."""

    @abc.abstractmethod
    def delete_user_subscriptions(self, user_id: str) -> int:
        """Delete every subscription held by *user_id*; return how many."""

    @abc.abstractmethod
    def get_breed(self, breed_id: str) -> dict | None:
        """Return ``{"id", "name", "species_id"}`` for a breed, or None."""

    @abc.abstractmethod
    def breed_ids_for_species(self, species_id: str) -> list[str]:
        """Return the ids of every breed belonging to *species_id*."""


# ---------------------------------------------------------------------------
# In-memory implementation (mock / test mode)
# ---------------------------------------------------------------------------

class InMemoryAnimalStore(AnimalStore):
    """Dict-backed store holding documents, guarded by a single lock.

    Documents are copied in and out, so callers never share mutable state
    with the store.
    """

    def __init__(self, breeds: Iterable[dict] = ()) -> None:
        self._lock = threading.RLock()
        self._animals: dict[str, dict] = {}
        self._subscriptions: dict[tuple[str, str], dict] = {}
        self._breeds: dict[str, dict] = {}
        for breed in breeds:
            self.add_breed(breed)

    def add_breed(self, breed: dict) -> None:
        self._breeds[breed["id"]] = {
            "id": breed["id"],
            "name": breed.get("name", ""),
            "species_id": breed["species_id"],
        }

    def _subscriptions_of(self, animal_id: str) -> list[AnimalSubscription]:
        return [
            subscription_from_document(doc)
            for (aid, _), doc in self._subscriptions.items()
            if aid == animal_id
        ]

    def _load(self, animal_id: str) -> Animal:
        doc = self._animals.get(animal_id)
        if doc is None:
            raise _not_found(animal_id)
        return animal_from_document(animal_id, dict(doc), self._subscriptions_of(animal_id))

    def add(self, animal: Animal) -> Animal:
        with self._lock:
            if animal.id in self._animals:
                raise ConflictError(f"Animal '{animal.id}' already exists", code="animal_exists")
            if any(doc["slug"] == animal.slug.value for doc in self._animals.values()):
                raise ConflictError(f"Slug '{animal.slug}' is already taken", code="slug_taken")
            self._animals[animal.id] = animal_to_document(animal)
            for subscription in animal.subscribers.values():
                key = (animal.id, subscription.user_id)
                self._subscriptions[key] = subscription_to_document(subscription)
        logger.info("Stored animal %s (%s)", animal.id, animal.slug)
        return animal

    def get(self, animal_id: str) -> Animal:
        with self._lock:
            return self._load(animal_id)

    def get_by_slug(self, slug: str) -> Animal:
        with self._lock:
            for animal_id, doc in self._animals.items():
                if doc["slug"] == slug:
                    return self._load(animal_id)
        raise NotFoundError(f"Animal with slug '{slug}' not found", code="animal_not_found")

    def delete(self, animal_id: str) -> None:
        with self._lock:
            if self._animals.pop(animal_id, None) is None:
                raise _not_found(animal_id)
            for key in [k for k in self._subscriptions if k[0] == animal_id]:
                del self._subscriptions[key]

    def mutate(self, animal_id: str, fn: Callable[[Animal], T]) -> tuple[Animal, T]:
        with self._lock:
            animal = self._load(animal_id)
            result = fn(animal)
            self._animals[animal_id] = animal_to_document(animal)
            return animal, result

    def subscribe(self, animal_id: str, user_id: str) -> tuple[Animal, AnimalSubscription]:
        user_id = normalize_user_id(user_id)
        with self._lock:
            animal = self._load(animal_id)
            subscription = animal.subscribe(user_id)
            self._subscriptions[(animal_id, subscription.user_id)] = subscription_to_document(subscription)
            return animal, subscription

    def unsubscribe(self, animal_id: str, user_id: str) -> tuple[Animal, AnimalSubscription | None]:
        user_id = normalize_user_id(user_id)
        with self._lock:
            animal = self._load(animal_id)
            subscription = animal.unsubscribe(user_id)
            if subscription is not None:
                del self._subscriptions[(animal_id, subscription.user_id)]
            return animal, subscription

    def find(self, predicate: StorePredicate) -> list[Animal]:
        with self._lock:
            if predicate.species_id is not None:
                predicate = predicate.resolve_species(self.breed_ids_for_species(predicate.species_id))
            return [
                animal_from_document(animal_id, dict(doc))
                for animal_id, doc in self._animals.items()
                if predicate.matches(doc)
            ]

    def subscriptions_for_user(self, user_id: str) -> list[AnimalSubscription]:
        user_id = normalize_user_id(user_id)
        with self._lock:
            return [
                subscription_from_document(doc)
                for (_, uid), doc in self._subscriptions.items()
                if uid == user_id
            ]

    def delete_user_subscriptions(self, user_id: str) -> int:
        user_id = normalize_user_id(user_id)
        with self._lock:
            keys = [k for k in self._subscriptions if k[1] == user_id]
            for key in keys:
                del self._subscriptions[key]
            return len(keys)

    def get_breed(self, breed_id: str) -> dict | None:
        breed = self._breeds.get(breed_id)
        return dict(breed) if breed else None

    def breed_ids_for_species(self, species_id: str) -> list[str]:
        return [b["id"] for b in self._breeds.values() if b["species_id"] == species_id]


# ---------------------------------------------------------------------------
# Firestore implementation
# ---------------------------------------------------------------------------

class FirestoreAnimalStore(AnimalStore):
    """Firestore-backed store.

    Animals live in ``animals/{id}``; subscriptions in
    ``animal_subscriptions/{animal_id}_{user_id}`` so that a user can hold at
    most one record per animal even under concurrent writes.
    """

    ANIMALS = "animals"
    SUBSCRIPTIONS = "animal_subscriptions"
    BREEDS = "breeds"

    def _db(self):
        return get_firestore_client()

    def _ref(self, animal_id: str):
        return self._db().collection(self.ANIMALS).document(animal_id)

    def _sub_ref(self, animal_id: str, user_id: str):
        return self._db().collection(self.SUBSCRIPTIONS).document(f"{animal_id}_{user_id}")

    def _load_subscriptions(self, animal_id: str, transaction: Transaction | None = None) -> list[AnimalSubscription]:
        query = self._db().collection(self.SUBSCRIPTIONS).where(
            filter=FieldFilter("animal_id", "==", animal_id)
        )
        return [subscription_from_document(doc.to_dict()) for doc in query.stream(transaction=transaction)]

    def add(self, animal: Animal) -> Animal:
        slug_taken = (
            self._db().collection(self.ANIMALS)
            .where(filter=FieldFilter("slug", "==", animal.slug.value))
            .limit(1)
            .get()
        )
        if slug_taken:
            raise ConflictError(f"Slug '{animal.slug}' is already taken", code="slug_taken")
        try:
            self._ref(animal.id).create(animal_to_document(animal))
        except AlreadyExists:
            raise ConflictError(f"Animal '{animal.id}' already exists", code="animal_exists") from None
        logger.info("Created Firestore animal doc %s (%s)", animal.id, animal.slug)
        return animal

    def get(self, animal_id: str) -> Animal:
        snap = self._ref(animal_id).get()
        if not snap.exists:
            raise _not_found(animal_id)
        return animal_from_document(snap.id, snap.to_dict(), self._load_subscriptions(animal_id))

    def get_by_slug(self, slug: str) -> Animal:
        docs = (
            self._db().collection(self.ANIMALS)
            .where(filter=FieldFilter("slug", "==", slug))
            .limit(1)
            .get()
        )
        if not docs:
            raise NotFoundError(f"Animal with slug '{slug}' not found", code="animal_not_found")
        snap = docs[0]
        return animal_from_document(snap.id, snap.to_dict(), self._load_subscriptions(snap.id))

    def delete(self, animal_id: str) -> None:
        ref = self._ref(animal_id)

        @firestore_transaction
        def _delete(transaction: Transaction) -> None:
            snap = ref.get(transaction=transaction)
            if not snap.exists:
                raise _not_found(animal_id)
            subscriptions = self._load_subscriptions(animal_id, transaction)
            for subscription in subscriptions:
                transaction.delete(self._sub_ref(animal_id, subscription.user_id))
            transaction.delete(ref)

        _delete(self._db().transaction())

    def mutate(self, animal_id: str, fn: Callable[[Animal], T]) -> tuple[Animal, T]:
        ref = self._ref(animal_id)

        @firestore_transaction
        def _apply(transaction: Transaction) -> tuple[Animal, T]:
            snap = ref.get(transaction=transaction)
            if not snap.exists:
                raise _not_found(animal_id)
            animal = animal_from_document(
                snap.id, snap.to_dict(), self._load_subscriptions(animal_id, transaction)
            )
            result = fn(animal)
            transaction.set(ref, animal_to_document(animal))
            return animal, result

        return _apply(self._db().transaction())

    def subscribe(self, animal_id: str, user_id: str) -> tuple[Animal, AnimalSubscription]:
        user_id = normalize_user_id(user_id)
        ref = self._ref(animal_id)

        @firestore_transaction
        def _subscribe(transaction: Transaction) -> tuple[Animal, AnimalSubscription]:
            snap = ref.get(transaction=transaction)
            if not snap.exists:
                raise _not_found(animal_id)
            animal = animal_from_document(
                snap.id, snap.to_dict(), self._load_subscriptions(animal_id, transaction)
            )
            subscription = animal.subscribe(user_id)
            transaction.create(self._sub_ref(animal_id, subscription.user_id), subscription_to_document(subscription))
            return animal, subscription

        return _subscribe(self._db().transaction())

    def unsubscribe(self, animal_id: str, user_id: str) -> tuple[Animal, AnimalSubscription | None]:
        user_id = normalize_user_id(user_id)
        ref = self._ref(animal_id)

        @firestore_transaction
        def _unsubscribe(transaction: Transaction) -> tuple[Animal, AnimalSubscription | None]:
            snap = ref.get(transaction=transaction)
            if not snap.exists:
                raise _not_found(animal_id)
            animal = animal_from_document(
                snap.id, snap.to_dict(), self._load_subscriptions(animal_id, transaction)
            )
            subscription = animal.unsubscribe(user_id)
            if subscription is not None:
                transaction.delete(self._sub_ref(animal_id, subscription.user_id))
            return animal, subscription

        return _unsubscribe(self._db().transaction())

    def find(self, predicate: StorePredicate) -> list[Animal]:
        if predicate.species_id is not None:
            predicate = predicate.resolve_species(self.breed_ids_for_species(predicate.species_id))

        query = self._db().collection(self.ANIMALS)
        pushed_in = False
        for condition in predicate.conditions:
            if condition.op == IN:
                if not condition.value:
                    return []
                # Firestore allows a single bounded ``in`` per query; the
                # remaining set conditions are checked on the returned docs.
                if pushed_in or len(condition.value) > FIRESTORE_IN_LIMIT:
                    continue
                pushed_in = True
                query = query.where(filter=FieldFilter(condition.field, IN, list(condition.value)))
            else:
                query = query.where(filter=FieldFilter(condition.field, condition.op, condition.value))

        animals = []
        for doc in query.stream():
            data = doc.to_dict()
            if predicate.matches(data):
                animals.append(animal_from_document(doc.id, data))
        return animals

    def subscriptions_for_user(self, user_id: str) -> list[AnimalSubscription]:
        user_id = normalize_user_id(user_id)
        query = self._db().collection(self.SUBSCRIPTIONS).where(
            filter=FieldFilter("user_id", "==", user_id)
        )
        return [subscription_from_document(doc.to_dict()) for doc in query.stream()]

    def delete_user_subscriptions(self, user_id: str) -> int:
        user_id = normalize_user_id(user_id)
        db = self._db()
        batch = db.batch()
        count = 0
        query = db.collection(self.SUBSCRIPTIONS).where(filter=FieldFilter("user_id", "==", user_id))
        for doc in query.stream():
            batch.delete(doc.reference)
            count += 1
        if count:
            batch.commit()
        return count

    def get_breed(self, breed_id: str) -> dict | None:
        snap = self._db().collection(self.BREEDS).document(breed_id).get()
        if not snap.exists:
            return None
        data = snap.to_dict()
        return {"id": snap.id, "name": data.get("name", ""), "species_id": data.get("species_id")}

    def breed_ids_for_species(self, species_id: str) -> list[str]:
        query = self._db().collection(self.BREEDS).where(
            filter=FieldFilter("species_id", "==", species_id)
        )
        return [doc.id for doc in query.stream()]


def firestore_transaction(func):
    """Decorator to run *func* inside a Firestore transaction."""
    from google.cloud.firestore_v1 import transactional
    return transactional(func)


# ---------------------------------------------------------------------------
# Singleton factory
# ---------------------------------------------------------------------------
_store: AnimalStore | None = None


def get_animal_store() -> AnimalStore:
    """Return the singleton ``AnimalStore`` instance."""
    global _store
    if _store is None:
        if is_mock_mode():
            logger.info("Using InMemoryAnimalStore (mock mode)")
            _store = InMemoryAnimalStore(load_breeds())
        else:
            logger.info("Using FirestoreAnimalStore")
            _store = FirestoreAnimalStore()
    return _store
