"""Store-side predicates for the catalog query.

A ``StorePredicate`` only holds conditions a store can evaluate natively:
equality or set membership on a stored field. Species is a join key that
the store resolves through its breed table before evaluating.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

EQ = "=="
IN = "in"


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class FieldCondition:
    """``field == value`` or ``field in values`` on a stored document."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in (EQ, IN):
            raise ValueError(f"Unsupported operator '{self.op}'")
        if self.op == IN:
            object.__setattr__(self, "value", tuple(_plain(v) for v in self.value))
        else:
            object.__setattr__(self, "value", _plain(self.value))

    def matches(self, document: dict) -> bool:
        actual = document.get(self.field)
        if self.op == IN:
            return actual in self.value
        return actual == self.value


@dataclass(frozen=True)
class StorePredicate:
    conditions: tuple[FieldCondition, ...] = ()
    species_id: str | None = None

    def and_(self, condition: FieldCondition) -> "StorePredicate":
        return replace(self, conditions=self.conditions + (condition,))

    def with_species(self, species_id: str | None) -> "StorePredicate":
        return replace(self, species_id=species_id)

    def resolve_species(self, breed_ids: list[str]) -> "StorePredicate":
        """Replace the species join key with a ``breed_id in (...)`` condition."""
        if self.species_id is None:
            return self
        return StorePredicate(
            conditions=self.conditions + (FieldCondition("breed_id", IN, breed_ids),),
        )

    def matches(self, document: dict) -> bool:
        """Evaluate against a stored document. Species must be resolved first."""
        if self.species_id is not None:
            raise ValueError("species join must be resolved before matching")
        return all(condition.matches(document) for condition in self.conditions)

    @property
    def is_empty(self) -> bool:
        return not self.conditions and self.species_id is None
