"""Tests for the catalog listing pipeline."""

import asyncio
from datetime import date

import pytest

from conftest import day
from petcare.db.query import IN
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
)
from petcare.errors import ValidationError
from petcare.services.catalog_service import (
    CatalogFilters,
    apply_residual_filters,
    build_store_predicate,
    list_animals,
    paginate,
    sort_catalog,
)

TODAY = date(2024, 6, 15)


def _list(store, page=1, page_size=10, **filters):
    return asyncio.run(
        list_animals(page, page_size, CatalogFilters(**filters), store=store, today=TODAY)
    )


class TestStorePredicate:

    def test_empty_filters(self):
        assert build_store_predicate(CatalogFilters()).is_empty

    def test_set_and_equality_fields(self):
        predicate = build_store_predicate(
            CatalogFilters(
                sizes=frozenset({AnimalSize.SMALL, AnimalSize.LARGE}),
                is_sterilized=False,
                shelter_id="s-1",
            )
        )
        by_field = {c.field: c for c in predicate.conditions}
        assert by_field["size"].op == IN
        assert set(by_field["size"].value) == {"small", "large"}
        assert by_field["is_sterilized"].value is False
        assert by_field["shelter_id"].value == "s-1"

    def test_residual_fields_are_not_pushed_down(self):
        predicate = build_store_predicate(CatalogFilters(min_age=2, search="rex"))
        assert predicate.is_empty

    def test_species_is_a_join_key(self):
        predicate = build_store_predicate(CatalogFilters(species_id="species-cat"))
        assert predicate.species_id == "species-cat"
        resolved = predicate.resolve_species(["breed-siamese"])
        assert resolved.matches({"breed_id": "breed-siamese"})
        assert not resolved.matches({"breed_id": "breed-lab"})


class TestResidualFilters:

    def test_age_boundaries(self, make_animal):
        exactly_two = make_animal(name="Two", birthday=date(2022, 6, 15))
        almost_two = make_animal(name="AlmostTwo", birthday=date(2022, 6, 16))
        no_birthday = make_animal(name="Unknown")
        animals = [exactly_two, almost_two, no_birthday]

        older = apply_residual_filters(animals, CatalogFilters(min_age=2), TODAY)
        assert older == [exactly_two]

        younger = apply_residual_filters(animals, CatalogFilters(max_age=1), TODAY)
        assert younger == []

        up_to_two = apply_residual_filters(animals, CatalogFilters(max_age=2), TODAY)
        assert up_to_two == [exactly_two, almost_two]

    def test_search_matches_name_or_description(self, make_animal):
        by_name = make_animal(name="Biscuit")
        by_description = make_animal(name="Max", description="Loves BISCUITS and walks")
        neither = make_animal(name="Luna", description=None)
        result = apply_residual_filters(
            [by_name, by_description, neither], CatalogFilters(search="biscuit"), TODAY
        )
        assert result == [by_name, by_description]

    def test_blank_search_is_noop(self, make_animal):
        animals = [make_animal(), make_animal()]
        assert apply_residual_filters(animals, CatalogFilters(search="   "), TODAY) == animals


class TestSortAndPaginate:

    def test_dead_last_then_newest_first(self, make_animal):
        old_alive = make_animal(created_at=day(1))
        new_alive = make_animal(created_at=day(3))
        newest_dead = make_animal(status=AnimalStatus.DEAD, created_at=day(5))
        old_dead = make_animal(status=AnimalStatus.DEAD, created_at=day(2))
        ordered = sort_catalog([old_dead, old_alive, newest_dead, new_alive])
        assert ordered == [new_alive, old_alive, newest_dead, old_dead]

    def test_paginate(self):
        items = list(range(15))
        assert paginate(items, 1, 10) == list(range(10))
        assert paginate(items, 2, 10) == [10, 11, 12, 13, 14]
        assert paginate(items, 3, 10) == []

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (-1, 5)])
    def test_invalid_page(self, page, page_size):
        with pytest.raises(ValidationError):
            paginate([], page, page_size)


class TestListAnimals:

    def test_second_page_of_fifteen(self, store, make_animal):
        for i in range(15):
            store.add(make_animal(name=f"Dog {i}", shelter_id="s-15", created_at=day(i + 1)))
        store.add(make_animal(shelter_id="other"))

        items, total = _list(store, page=2, page_size=10, shelter_id="s-15")
        assert len(items) == 5
        assert total == 15

    def test_dead_sorted_last_despite_being_newer(self, store, make_animal):
        a = store.add(make_animal(name="A", shelter_id="S", created_at=day(1)))
        b = store.add(make_animal(name="B", shelter_id="S", status=AnimalStatus.DEAD, created_at=day(2)))

        items, total = _list(store, shelter_id="S")
        assert [x.id for x in items] == [a.id, b.id]
        assert total == 2

    def test_every_item_satisfies_filters(self, store, make_animal):
        store.add(make_animal(gender=AnimalGender.FEMALE, size=AnimalSize.SMALL, birthday=date(2020, 1, 1)))
        store.add(make_animal(gender=AnimalGender.FEMALE, size=AnimalSize.LARGE, birthday=date(2020, 1, 1)))
        store.add(make_animal(gender=AnimalGender.MALE, size=AnimalSize.SMALL, birthday=date(2020, 1, 1)))
        store.add(make_animal(gender=AnimalGender.FEMALE, size=AnimalSize.SMALL, birthday=date(2023, 1, 1)))
        store.add(
            make_animal(
                gender=AnimalGender.FEMALE,
                size=AnimalSize.SMALL,
                birthday=date(2019, 1, 1),
                care_cost=AnimalCareCost.TWELVE_HUNDRED,
            )
        )

        filters = {
            "genders": frozenset({AnimalGender.FEMALE}),
            "sizes": frozenset({AnimalSize.SMALL}),
            "care_costs": frozenset({AnimalCareCost.SIX_HUNDRED}),
            "min_age": 3,
        }
        items, total = _list(store, **filters)
        assert total == 1
        for animal in items:
            assert animal.gender is AnimalGender.FEMALE
            assert animal.size is AnimalSize.SMALL
            assert animal.care_cost is AnimalCareCost.SIX_HUNDRED
            assert animal.age_in_years(TODAY) >= 3

    def test_no_birthday_never_matches_age(self, store, make_animal):
        store.add(make_animal(shelter_id="ages"))
        items, total = _list(store, shelter_id="ages", max_age=30)
        assert items == []
        assert total == 0

    def test_species_filter(self, store, make_animal):
        cat = store.add(make_animal(name="Tom", breed_id="breed-siamese"))
        store.add(make_animal(name="Rex", breed_id="breed-lab"))
        items, _ = _list(store, species_id="species-cat")
        assert [a.id for a in items] == [cat.id]

    def test_unknown_species_returns_nothing(self, store, make_animal):
        store.add(make_animal())
        items, total = _list(store, species_id="species-dragon")
        assert (items, total) == ([], 0)

    def test_flags(self, store, make_animal):
        cared = store.add(make_animal(is_under_care=True, is_sterilized=True))
        store.add(make_animal(is_under_care=False, is_sterilized=True))
        items, _ = _list(store, is_under_care=True, is_sterilized=True)
        assert [a.id for a in items] == [cared.id]

    def test_invalid_page_raises_before_store_call(self, make_animal):
        class ExplodingStore:
            def find(self, predicate):
                raise AssertionError("store must not be called")

        with pytest.raises(ValidationError):
            asyncio.run(list_animals(0, 10, store=ExplodingStore()))
