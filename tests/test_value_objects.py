"""Tests for value objects and enum parsing."""

from datetime import date, timedelta

import pytest

from petcare.domain.enums import AnimalSize, AnimalStatus
from petcare.domain.value_objects import Birthday, Name, Slug, utc_today, years_before
from petcare.errors import ValidationError


class TestName:

    def test_strips_whitespace(self):
        assert Name("  Luna ").value == "Luna"

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_rejects_blank(self, raw):
        with pytest.raises(ValidationError) as exc:
            Name(raw)
        assert exc.value.code == "invalid_name"

    def test_rejects_too_long(self):
        with pytest.raises(ValidationError):
            Name("x" * 101)

    def test_accepts_max_length(self):
        assert len(Name("x" * 100).value) == 100


class TestBirthday:

    def test_rejects_future(self):
        with pytest.raises(ValidationError):
            Birthday(utc_today() + timedelta(days=1))

    def test_today_is_allowed(self):
        assert Birthday(utc_today()).value == utc_today()

    def test_age_before_and_after_anniversary(self):
        born = Birthday(date(2020, 6, 15))
        assert born.age_in_years(date(2024, 6, 14)) == 3
        assert born.age_in_years(date(2024, 6, 15)) == 4


class TestSlug:

    def test_generate_uses_name_and_id_prefix(self):
        slug = Slug.generate("Mr. Whiskers", "ABCDEF12-3456-7890")
        assert slug.value == "mr-whiskers-abcdef12"

    def test_generate_falls_back_for_symbol_only_name(self):
        assert Slug.generate("!!!", "12345678abc").value == "animal-12345678"

    def test_from_existing_normalises_case(self):
        assert Slug.from_existing(" Rex-1234 ").value == "rex-1234"

    def test_rejects_invalid_characters(self):
        with pytest.raises(ValidationError):
            Slug("rex 1234")


class TestYearsBefore:

    def test_plain_date(self):
        assert years_before(date(2024, 3, 10), 2) == date(2022, 3, 10)

    def test_leap_day_falls_back(self):
        assert years_before(date(2024, 2, 29), 1) == date(2023, 2, 28)


class TestEnums:

    def test_case_insensitive_parse(self):
        assert AnimalStatus("DEAD") is AnimalStatus.DEAD
        assert AnimalSize("Medium-Plus") is AnimalSize.MEDIUM_PLUS

    def test_unknown_value(self):
        with pytest.raises(ValueError):
            AnimalStatus("sleeping")
