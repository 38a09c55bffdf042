from datetime import datetime
from typing import List, Literal, Optional

from beanie import Indexed, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from talenthr.models.base import TimestampedDocument


class Coordinates(BaseModel):
    lat: float
    lng: float


class ListingLocation(BaseModel):
    city: str
    state: str
    zip_code: str
    coordinates: Optional[Coordinates] = None


class Listing(TimestampedDocument):
    user_id: PydanticObjectId
    type: Literal["item", "service"]
    title: str
    description: str
    price: float
    category: str
    images: List[str] = Field(default_factory=list)
    location: ListingLocation
    status: Literal["active", "sold", "expired", "draft"] = "active"
    views: int = 0
    favorites: int = 0

    class Settings:
        name = "listings"
        indexes = [
            IndexModel([("status", ASCENDING), ("created_at", DESCENDING)]),
            IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)]),
            IndexModel([("category", ASCENDING), ("price", ASCENDING)]),
        ]


class Category(TimestampedDocument):
    name: str
    slug: Indexed(str, unique=True)
    icon: Optional[str] = None
    description: Optional[str] = None
    parent_category: Optional[PydanticObjectId] = None
    is_active: bool = True

    class Settings:
        name = "categories"


class Feedback(TimestampedDocument):
    user_id: Optional[PydanticObjectId] = None
    name: str = "Anonymous"
    email: Optional[str] = None
    type: Literal["bug", "feature", "improvement", "general", "other"] = "general"
    subject: Optional[str] = None
    message: str
    rating: Optional[int] = None
    status: Literal["pending", "reviewed", "resolved"] = "pending"

    class Settings:
        name = "feedback"


class ProfileLocation(BaseModel):
    city: str
    state: str


class UserProfile(TimestampedDocument):
    """Public face of a user on the marketplace"""

    user_id: Indexed(PydanticObjectId, unique=True)
    display_name: str = Field(max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar: Optional[str] = None
    location: ProfileLocation
    # never part of the public view
    phone: Optional[str] = None
    verified: bool = False
    rating: float = Field(default=0, ge=0, le=5)
    total_reviews: int = 0
    joined_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "user_profiles"
        indexes = [
            IndexModel([("location.city", ASCENDING), ("location.state", ASCENDING)]),
            IndexModel([("rating", DESCENDING)]),
        ]
