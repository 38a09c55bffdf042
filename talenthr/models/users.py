from datetime import datetime
from typing import Literal, Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from talenthr.models.base import TimestampedDocument

Role = Literal["company_admin", "hr_manager", "recruiter", "manager", "employee"]
OtpPurpose = Literal["company_admin_signup", "invitation_signup", "login", "password_reset"]


class User(TimestampedDocument):
    email: Indexed(str, unique=True)
    hashed_password: str
    name: str
    role: Role = "employee"
    company_id: Optional[PydanticObjectId] = None
    status: Literal["active", "inactive", "pending"] = "active"
    last_login: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    class Settings:
        name = "users"
        indexes = [IndexModel([("company_id", ASCENDING), ("role", ASCENDING)])]


class OtpCode(Document):
    email: str
    code_hash: str
    type: Literal["signup", "login", "password_reset"]
    purpose: OtpPurpose
    expires_at: datetime
    attempts: int = 0
    max_attempts: int = 5
    verified: bool = False
    verified_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_expired(self) -> bool:
        return self.expires_at < datetime.utcnow()

    class Settings:
        name = "otps"
        indexes = [
            IndexModel([("email", ASCENDING), ("purpose", ASCENDING)]),
            # mongod removes expired codes on its own
            IndexModel([("expires_at", ASCENDING)], expireAfterSeconds=0),
        ]
