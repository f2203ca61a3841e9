"""Closed enumerations used by the animal aggregate and catalog filters."""

from enum import Enum


class _CaseInsensitiveEnum(str, Enum):
    """String enum that also accepts differently-cased or dashed input."""

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class AnimalGender(_CaseInsensitiveEnum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class AnimalSize(_CaseInsensitiveEnum):
    SMALL = "small"
    MEDIUM = "medium"
    MEDIUM_PLUS = "medium_plus"
    LARGE = "large"


class AnimalStatus(_CaseInsensitiveEnum):
    AVAILABLE = "available"
    ADOPTED = "adopted"
    RESERVED = "reserved"
    IN_TREATMENT = "in_treatment"
    DEAD = "dead"
    EUTHANIZED = "euthanized"


class AnimalCareCost(_CaseInsensitiveEnum):
    """Expected monthly cost-of-care band."""

    THREE_HUNDRED = "three_hundred"
    SIX_HUNDRED = "six_hundred"
    NINE_HUNDRED = "nine_hundred"
    TWELVE_HUNDRED = "twelve_hundred"
    FIFTEEN_HUNDRED_PLUS = "fifteen_hundred_plus"


class AnimalTemperament(_CaseInsensitiveEnum):
    FRIENDLY = "friendly"
    SHY = "shy"
    NEEDS_SOCIALIZATION = "needs_socialization"
    INDEPENDENT = "independent"
    AFFECTIONATE = "affectionate"
    PROTECTIVE = "protective"
    CURIOUS = "curious"
    PLAYFUL = "playful"
    CALM = "calm"
    ENERGETIC = "energetic"
    GENTLE = "gentle"
    VOCAL = "vocal"
    QUIET = "quiet"
    CUDDLY = "cuddly"
    NERVOUS = "nervous"
    CONFIDENT = "confident"
    FOOD_MOTIVATED = "food_motivated"
    TRAINABLE = "trainable"
    STUBBORN = "stubborn"
    GOOD_WITH_KIDS = "good_with_kids"
    GOOD_WITH_OTHER_ANIMALS = "good_with_other_animals"
    NEEDS_EXPERIENCED_OWNER = "needs_experienced_owner"
    SENIOR_AND_RELAXED = "senior_and_relaxed"
    YOUNG_AND_LEARNING = "young_and_learning"
    SPECIAL_NEEDS = "special_needs"
    BONDED_PAIR = "bonded_pair"
