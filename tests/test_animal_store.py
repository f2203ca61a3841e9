"""Tests for the in-memory animal store."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from petcare.db.animal_store import animal_from_document, animal_to_document
from petcare.db.query import EQ, FieldCondition, StorePredicate
from petcare.domain.enums import AnimalStatus, AnimalTemperament
from petcare.errors import ConflictError, NotFoundError, ValidationError


class TestCrud:

    def test_add_and_get(self, store, make_animal):
        animal = store.add(make_animal(name="Luna", temperaments=["calm"]))
        loaded = store.get(animal.id)
        assert loaded.name.value == "Luna"
        assert loaded.temperaments == [AnimalTemperament.CALM]
        assert loaded is not animal

    def test_get_by_slug(self, store, make_animal):
        animal = store.add(make_animal())
        assert store.get_by_slug(animal.slug.value).id == animal.id

    def test_missing(self, store):
        with pytest.raises(NotFoundError):
            store.get("nope")
        with pytest.raises(NotFoundError):
            store.get_by_slug("nope-12345678")
        with pytest.raises(NotFoundError):
            store.delete("nope")

    def test_duplicate_id(self, store, make_animal):
        animal = store.add(make_animal())
        with pytest.raises(ConflictError):
            store.add(animal)

    def test_delete_cascades_subscriptions(self, store, make_animal):
        animal = store.add(make_animal())
        store.subscribe(animal.id, "user-1")
        store.delete(animal.id)
        assert store.subscriptions_for_user("user-1") == []

    def test_document_mapping_preserves_fields(self, make_animal):
        animal = make_animal(weight=4.2, photos=["a.jpg"], health_conditions=["fiv"])
        copy = animal_from_document(animal.id, animal_to_document(animal))
        assert copy.weight == 4.2
        assert copy.photos == ["a.jpg"]
        assert copy.health_conditions == ["fiv"]
        assert copy.created_at == animal.created_at


class TestMutate:

    def test_commits_changes(self, store, make_animal):
        animal = store.add(make_animal())
        updated, added = store.mutate(animal.id, lambda a: a.add_photo("p.jpg"))
        assert added is True
        assert updated.photos == ["p.jpg"]
        assert store.get(animal.id).photos == ["p.jpg"]

    def test_failure_writes_nothing(self, store, make_animal):
        animal = store.add(make_animal(name="Rex"))

        def _apply(a):
            a.update_core(name="Max")
            a.update_core(weight=-5)

        with pytest.raises(ValidationError):
            store.mutate(animal.id, _apply)
        assert store.get(animal.id).name.value == "Rex"

    def test_concurrent_mutations_are_all_kept(self, store, make_animal):
        animal = store.add(make_animal())
        urls = [f"p{i}.jpg" for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda url: store.mutate(animal.id, lambda a: a.add_photo(url)), urls))

        assert sorted(store.get(animal.id).photos) == sorted(urls)

    def test_caller_copy_is_detached(self, store, make_animal):
        animal = store.add(make_animal())
        loaded = store.get(animal.id)
        loaded.photos.append("sneaky.jpg")
        assert store.get(animal.id).photos == []


class TestSubscriptions:

    def test_subscribe_and_unsubscribe(self, store, make_animal):
        animal = store.add(make_animal())
        _, subscription = store.subscribe(animal.id, "user-1")
        assert store.get(animal.id).is_subscribed("user-1")
        assert [s.id for s in store.subscriptions_for_user("user-1")] == [subscription.id]

        _, removed = store.unsubscribe(animal.id, "user-1")
        assert removed.id == subscription.id
        assert store.subscriptions_for_user("user-1") == []

    def test_duplicate_subscription(self, store, make_animal):
        animal = store.add(make_animal())
        store.subscribe(animal.id, "user-1")
        with pytest.raises(ConflictError):
            store.subscribe(animal.id, "user-1")

    def test_unsubscribe_missing_is_noop(self, store, make_animal):
        animal = store.add(make_animal())
        _, removed = store.unsubscribe(animal.id, "user-1")
        assert removed is None

    def test_padded_user_id_round_trip(self, store, make_animal):
        animal = store.add(make_animal())
        store.subscribe(animal.id, " user-1 ")
        assert [s.user_id for s in store.subscriptions_for_user("user-1")] == ["user-1"]

        _, removed = store.unsubscribe(animal.id, " user-1 ")
        assert removed is not None
        assert store.get(animal.id).subscribers == {}
        assert store.subscriptions_for_user("user-1") == []

        _, again = store.unsubscribe(animal.id, "user-1")
        assert again is None

    def test_delete_user_subscriptions(self, store, make_animal):
        first = store.add(make_animal())
        second = store.add(make_animal())
        store.subscribe(first.id, "user-1")
        store.subscribe(second.id, "user-1")
        store.subscribe(second.id, "user-2")
        assert store.delete_user_subscriptions("user-1") == 2
        assert len(store.get(second.id).subscribers) == 1


class TestFind:

    def test_equality(self, store, make_animal):
        dead = store.add(make_animal(status=AnimalStatus.DEAD))
        store.add(make_animal())
        predicate = StorePredicate().and_(FieldCondition("status", EQ, AnimalStatus.DEAD))
        assert [a.id for a in store.find(predicate)] == [dead.id]

    def test_breeds(self, store):
        assert store.get_breed("breed-lab")["species_id"] == "species-dog"
        assert store.get_breed("breed-unknown") is None
        assert sorted(store.breed_ids_for_species("species-dog")) == ["breed-beagle", "breed-lab"]
