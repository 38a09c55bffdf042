from datetime import datetime
from typing import Literal, Optional

from beanie import Indexed, PydanticObjectId
from pymongo import ASCENDING, IndexModel

from talenthr.models.base import TimestampedDocument

InvitableRole = Literal["hr_manager", "recruiter", "manager", "employee"]


class Invitation(TimestampedDocument):
    company_id: PydanticObjectId
    email: str
    role: InvitableRole
    invited_by: PydanticObjectId
    # sha256 of the emailed token; the raw token is never stored
    token_hash: Indexed(str, unique=True)
    status: Literal["pending", "accepted", "expired", "cancelled"] = "pending"
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[PydanticObjectId] = None

    def is_expired(self) -> bool:
        return self.expires_at < datetime.utcnow()

    class Settings:
        name = "invitations"
        indexes = [IndexModel([("company_id", ASCENDING), ("email", ASCENDING), ("status", ASCENDING)])]
