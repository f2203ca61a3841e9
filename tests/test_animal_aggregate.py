"""Tests for the Animal aggregate's invariants and mutations."""

from datetime import date, timedelta

import pytest

from petcare.domain import events
from petcare.domain.animal import Animal
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
    AnimalTemperament,
)
from petcare.domain.value_objects import utc_today
from petcare.errors import ConflictError, ValidationError


class TestCreate:

    def test_defaults(self, make_animal):
        animal = make_animal(name="Luna")
        assert animal.id
        assert animal.slug.value == f"luna-{animal.id.replace('-', '')[:8]}"
        assert animal.care_cost is AnimalCareCost.SIX_HUNDRED
        assert animal.created_at == animal.updated_at
        assert animal.photos == []
        assert animal.subscribers == {}
        assert isinstance(animal.pending_events[0], events.AnimalCreated)

    def test_deduplicates_collections(self, make_animal):
        animal = make_animal(
            photos=["a.jpg", "b.jpg", "a.jpg"],
            health_conditions=["asthma", "asthma", " "],
            temperaments=["friendly", AnimalTemperament.FRIENDLY, "calm"],
        )
        assert animal.photos == ["a.jpg", "b.jpg"]
        assert animal.health_conditions == ["asthma"]
        assert animal.temperaments == [AnimalTemperament.FRIENDLY, AnimalTemperament.CALM]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "  "},
            {"breed_id": ""},
            {"shelter_id": None},
            {"weight": 0},
            {"height": -3},
            {"gender": "robot"},
            {"temperaments": ["grumpy"]},
        ],
    )
    def test_rejects_invalid_input(self, make_animal, overrides):
        with pytest.raises(ValidationError):
            make_animal(**overrides)

    def test_rejects_future_birthday(self, make_animal):
        with pytest.raises(ValidationError):
            make_animal(birthday=utc_today() + timedelta(days=2))

    def test_accepts_string_enums(self):
        animal = Animal.create(
            name="Mia", breed_id="b", shelter_id="s",
            gender="female", size="SMALL", status="reserved",
        )
        assert animal.gender is AnimalGender.FEMALE
        assert animal.size is AnimalSize.SMALL
        assert animal.status is AnimalStatus.RESERVED


class TestUpdateCore:

    def test_partial_update(self, make_animal):
        animal = make_animal(description="old")
        before = animal.updated_at
        changed = animal.update_core(name="Max", weight=12.5)
        assert changed == ["name", "weight"]
        assert animal.name.value == "Max"
        assert animal.weight == 12.5
        assert animal.description == "old"
        assert animal.updated_at >= before

    def test_all_or_nothing(self, make_animal):
        animal = make_animal(name="Rex")
        with pytest.raises(ValidationError):
            animal.update_core(name="Max", weight=-1)
        assert animal.name.value == "Rex"
        assert animal.weight is None

    def test_slug_is_stable_on_rename(self, make_animal):
        animal = make_animal(name="Rex")
        slug = animal.slug
        animal.update_core(name="Buddy")
        assert animal.slug == slug

    def test_status_change_raises_event(self, make_animal):
        animal = make_animal()
        animal.drain_events()
        animal.update_core(status=AnimalStatus.ADOPTED)
        kinds = [type(e) for e in animal.drain_events()]
        assert kinds == [events.AnimalUpdated, events.AnimalStatusChanged]

    def test_no_changes(self, make_animal):
        animal = make_animal()
        animal.drain_events()
        assert animal.update_core() == []
        assert animal.pending_events == []

    def test_birthday_update(self, make_animal):
        animal = make_animal()
        animal.update_core(birthday=date(2019, 5, 1))
        assert animal.age_in_years(date(2024, 5, 1)) == 5


class TestCollections:

    def test_replace_tags(self, make_animal):
        animal = make_animal(special_needs=["diet"])
        animal.replace_special_needs(["insulin", "insulin"])
        assert animal.special_needs == ["insulin"]
        animal.replace_special_needs([])
        assert animal.special_needs == []

    def test_update_size_care_cost_and_under_care(self, make_animal):
        animal = make_animal()
        animal.update_size("large")
        animal.update_care_cost(AnimalCareCost.NINE_HUNDRED)
        animal.update_under_care(True)
        assert animal.size is AnimalSize.LARGE
        assert animal.care_cost is AnimalCareCost.NINE_HUNDRED
        assert animal.is_under_care is True

    def test_add_photo_is_idempotent(self, make_animal):
        animal = make_animal()
        assert animal.add_photo("https://cdn/x.jpg") is True
        assert animal.add_photo("https://cdn/x.jpg") is False
        assert animal.photos == ["https://cdn/x.jpg"]

    def test_add_blank_photo(self, make_animal):
        with pytest.raises(ValidationError):
            make_animal().add_photo("   ")

    def test_remove_photo(self, make_animal):
        animal = make_animal(photos=["a.jpg", "b.jpg"])
        assert animal.remove_photo("a.jpg") is True
        assert animal.remove_photo("a.jpg") is False
        assert animal.photos == ["b.jpg"]

    def test_videos(self, make_animal):
        animal = make_animal()
        assert animal.add_video("clip.mp4") is True
        assert animal.add_video("clip.mp4") is False
        assert animal.remove_video("clip.mp4") is True
        assert animal.videos == []


class TestSubscriptions:

    def test_subscribe(self, make_animal):
        animal = make_animal()
        subscription = animal.subscribe("user-1")
        assert subscription.animal_id == animal.id
        assert subscription.user_id == "user-1"
        assert animal.is_subscribed("user-1")

    def test_subscribe_twice_conflicts(self, make_animal):
        animal = make_animal()
        animal.subscribe("user-1")
        with pytest.raises(ConflictError):
            animal.subscribe("user-1")
        assert len(animal.subscribers) == 1

    def test_unsubscribe(self, make_animal):
        animal = make_animal()
        subscription = animal.subscribe("user-1")
        assert animal.unsubscribe("user-1") == subscription
        assert animal.unsubscribe("user-1") is None
        assert not animal.is_subscribed("user-1")

    def test_padded_user_id_matches_stored_subscription(self, make_animal):
        animal = make_animal()
        subscription = animal.subscribe(" user-1 ")
        assert animal.is_subscribed("user-1")
        assert animal.is_subscribed(" user-1 ")
        assert animal.unsubscribe(" user-1 ") == subscription
        assert animal.subscribers == {}
