"""Immutable, self-validating value objects for the animal aggregate."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from petcare.errors import ValidationError

NAME_MAX_LENGTH = 100

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def years_before(day: date, years: int) -> date:
    """Return *day* shifted back by whole *years* (Feb 29 falls back to Feb 28)."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


@dataclass(frozen=True, slots=True)
class Name:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValidationError("Name must not be empty", code="invalid_name")
        stripped = self.value.strip()
        if len(stripped) > NAME_MAX_LENGTH:
            raise ValidationError(
                f"Name must be at most {NAME_MAX_LENGTH} characters", code="invalid_name",
            )
        object.__setattr__(self, "value", stripped)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Birthday:
    value: date

    def __post_init__(self) -> None:
        if isinstance(self.value, datetime):
            object.__setattr__(self, "value", self.value.date())
        if not isinstance(self.value, date):
            raise ValidationError("Birthday must be a calendar date", code="invalid_birthday")
        if self.value > utc_today():
            raise ValidationError("Birthday cannot be in the future", code="invalid_birthday")

    def age_in_years(self, today: date | None = None) -> int:
        """Whole years elapsed between the birthday and *today*."""
        today = today or utc_today()
        years = today.year - self.value.year
        if (today.month, today.day) < (self.value.month, self.value.day):
            years -= 1
        return max(0, years)

    def __str__(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True, slots=True)
class Slug:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _SLUG_RE.match(self.value):
            raise ValidationError(f"Invalid slug '{self.value}'", code="invalid_slug")

    @classmethod
    def generate(cls, name: str, identity: str) -> Slug:
        """Build ``<slugified-name>-<first 8 chars of id>``."""
        base = _NON_SLUG_CHARS.sub("-", name.lower()).strip("-") or "animal"
        suffix = _NON_SLUG_CHARS.sub("", identity.lower())[:8]
        return cls(f"{base}-{suffix}" if suffix else base)

    @classmethod
    def from_existing(cls, value: str) -> Slug:
        if not value or not value.strip():
            raise ValidationError("Slug must not be empty", code="invalid_slug")
        return cls(value.strip().lower())

    def __str__(self) -> str:
        return self.value
