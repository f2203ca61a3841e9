"""Adopter profile request and response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class AdopterRegistration(_CamelModel):
    """Sent once after Firebase sign-up to create the adopter profile."""

    username: str = Field(..., min_length=2, max_length=30, description="Display name")
    photo_url: Optional[str] = Field(None, description="Avatar URL")


class AdopterProfileUpdate(_CamelModel):
    username: Optional[str] = Field(None, min_length=2, max_length=30)
    photo_url: Optional[str] = None


class AdopterProfile(_CamelModel):
    """An adopter as returned by ``/auth`` and ``/users`` endpoints."""

    id: str = Field(..., description="Firebase UID")
    username: str
    email: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: datetime
    favorite_count: int = Field(0, description="Animals the adopter currently watches")
