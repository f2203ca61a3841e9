"""Pydantic models for animal requests and responses."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from petcare.domain.animal import Animal, AnimalSubscription
from petcare.domain.enums import (
    AnimalCareCost,
    AnimalGender,
    AnimalSize,
    AnimalStatus,
    AnimalTemperament,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class AnimalCreateRequest(_CamelModel):
    """Request schema for registering an animal in a shelter."""

    name: str = Field(..., description="Animal name")
    breed_id: str = Field(..., description="Breed id")
    shelter_id: str = Field(..., description="Owning shelter id")
    gender: AnimalGender
    size: AnimalSize
    status: AnimalStatus = AnimalStatus.AVAILABLE
    care_cost: AnimalCareCost = AnimalCareCost.SIX_HUNDRED
    birthday: Optional[date] = None
    description: Optional[str] = None
    adoption_requirements: Optional[str] = None
    microchip_id: Optional[str] = None
    weight: Optional[float] = Field(None, description="Weight in kg")
    height: Optional[float] = Field(None, description="Height in cm")
    color: Optional[str] = None
    is_sterilized: bool = False
    is_under_care: bool = False
    have_documents: bool = False
    photos: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    health_conditions: list[str] = Field(default_factory=list)
    special_needs: list[str] = Field(default_factory=list)
    temperaments: list[AnimalTemperament] = Field(default_factory=list)


class AnimalUpdateRequest(_CamelModel):
    """Partial update; omitted or null fields are left unchanged.

    For the tag collections an empty list clears the collection.
    """

    name: Optional[str] = None
    breed_id: Optional[str] = None
    gender: Optional[AnimalGender] = None
    size: Optional[AnimalSize] = None
    status: Optional[AnimalStatus] = None
    care_cost: Optional[AnimalCareCost] = None
    birthday: Optional[date] = None
    description: Optional[str] = None
    adoption_requirements: Optional[str] = None
    microchip_id: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    color: Optional[str] = None
    is_sterilized: Optional[bool] = None
    is_under_care: Optional[bool] = None
    have_documents: Optional[bool] = None
    health_conditions: Optional[list[str]] = None
    special_needs: Optional[list[str]] = None
    temperaments: Optional[list[AnimalTemperament]] = None


class MediaUrlRequest(_CamelModel):
    """Body for adding or removing a photo/video URL."""

    url: str = Field(..., min_length=1, description="Media URL previously returned by /media")


class AnimalListItem(_CamelModel):
    """Compact schema used in catalog listings."""

    id: str
    name: str
    slug: str
    breed_id: str
    shelter_id: str
    gender: AnimalGender
    size: AnimalSize
    status: AnimalStatus
    care_cost: AnimalCareCost
    age: Optional[int] = Field(None, description="Age in whole years, if the birthday is known")
    is_sterilized: bool
    is_under_care: bool
    photo: Optional[str] = Field(None, description="First photo URL")
    created_at: datetime

    @classmethod
    def from_domain(cls, animal: Animal) -> "AnimalListItem":
        return cls(
            id=animal.id,
            name=animal.name.value,
            slug=animal.slug.value,
            breed_id=animal.breed_id,
            shelter_id=animal.shelter_id,
            gender=animal.gender,
            size=animal.size,
            status=animal.status,
            care_cost=animal.care_cost,
            age=animal.age_in_years(),
            is_sterilized=animal.is_sterilized,
            is_under_care=animal.is_under_care,
            photo=animal.photos[0] if animal.photos else None,
            created_at=animal.created_at,
        )


class AnimalResponse(AnimalListItem):
    """Full animal schema."""

    birthday: Optional[date] = None
    description: Optional[str] = None
    adoption_requirements: Optional[str] = None
    microchip_id: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    color: Optional[str] = None
    have_documents: bool = False
    photos: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    health_conditions: list[str] = Field(default_factory=list)
    special_needs: list[str] = Field(default_factory=list)
    temperaments: list[AnimalTemperament] = Field(default_factory=list)
    subscriber_count: int = 0
    updated_at: datetime

    @classmethod
    def from_domain(cls, animal: Animal) -> "AnimalResponse":
        item = AnimalListItem.from_domain(animal)
        return cls(
            **item.model_dump(),
            birthday=animal.birthday.value if animal.birthday else None,
            description=animal.description,
            adoption_requirements=animal.adoption_requirements,
            microchip_id=animal.microchip_id,
            weight=animal.weight,
            height=animal.height,
            color=animal.color,
            have_documents=animal.have_documents,
            photos=list(animal.photos),
            videos=list(animal.videos),
            health_conditions=list(animal.health_conditions),
            special_needs=list(animal.special_needs),
            temperaments=list(animal.temperaments),
            subscriber_count=len(animal.subscribers),
            updated_at=animal.updated_at,
        )


class AnimalListResponse(_CamelModel):
    """One catalog page plus the size of the full filtered set."""

    items: list[AnimalListItem]
    total_count: int
    page: int
    page_size: int


class MediaResponse(_CamelModel):
    """Result of adding a media URL."""

    animal: AnimalResponse
    added: bool = Field(..., description="False when the URL was already attached")


class MediaUploadResponse(_CamelModel):
    url: str
    kind: str
    content_type: Optional[str] = None
    size: int


class SubscriptionResponse(_CamelModel):
    id: str
    animal_id: str
    user_id: str
    created_at: datetime

    @classmethod
    def from_domain(cls, subscription: AnimalSubscription) -> "SubscriptionResponse":
        return cls(
            id=subscription.id,
            animal_id=subscription.animal_id,
            user_id=subscription.user_id,
            created_at=subscription.created_at,
        )


class UnsubscribeResponse(_CamelModel):
    unsubscribed: bool
    subscription: Optional[SubscriptionResponse] = None
