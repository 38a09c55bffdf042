from typing import List, Literal, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, EmailStr, Field, field_validator

from talenthr.models.marketplace import Coordinates


class ListingLocationIn(BaseModel):
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    coordinates: Optional[Coordinates] = None

    @field_validator("city", "state", "zip_code")
    @classmethod
    def strip(cls, v):
        return v.strip()


class ListingCreate(BaseModel):
    type: Literal["item", "service"]
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=2000)
    price: float = Field(ge=0)
    category: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list, max_length=10)
    location: ListingLocationIn
    status: Literal["active", "sold", "expired", "draft"] = "active"

    @field_validator("title", "description", "category")
    @classmethod
    def strip(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ListingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = Field(default=None, max_length=10)
    location: Optional[ListingLocationIn] = None
    status: Optional[Literal["active", "sold", "expired", "draft"]] = None


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100)
    icon: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=200)
    parent_category: Optional[PydanticObjectId] = None

    @field_validator("slug")
    @classmethod
    def lower_slug(cls, v):
        return v.strip().lower()


class FeedbackCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    type: Literal["bug", "feature", "improvement", "general", "other"] = "general"
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(min_length=10, max_length=2000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
