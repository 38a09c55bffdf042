from datetime import datetime
from typing import Literal, Optional

from beanie import Indexed
from pydantic import BaseModel, Field

from talenthr.models.base import TimestampedDocument


class CompanyPreferences(BaseModel):
    timezone: str = "UTC"
    currency: str = "USD"
    date_format: str = "MM/DD/YYYY"


class Subscription(BaseModel):
    plan: Literal["free", "basic", "premium"] = "free"
    expires_at: Optional[datetime] = None


class Company(TimestampedDocument):
    name: Indexed(str, unique=True) = Field(min_length=2, max_length=100)
    slug: Indexed(str, unique=True)
    domain: Optional[str] = None
    status: Literal["active", "pending", "suspended"] = "active"
    preferences: CompanyPreferences = Field(default_factory=CompanyPreferences)
    subscription: Subscription = Field(default_factory=Subscription)

    # editable from the settings page
    industry: Optional[str] = None
    size: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None

    class Settings:
        name = "companies"
