from datetime import datetime
from typing import Literal, Optional

from beanie import PydanticObjectId
from pymongo import ASCENDING, IndexModel

from talenthr.models.base import TimestampedDocument


class LeaveType(TimestampedDocument):
    company_id: PydanticObjectId
    name: str
    code: str
    description: Optional[str] = None
    annual_quota: float = 0
    carry_forward: bool = False
    max_carry_forward: float = 0
    requires_approval: bool = True
    color: str = "#667eea"
    status: Literal["active", "inactive"] = "active"

    class Settings:
        name = "leave_types"
        indexes = [IndexModel([("company_id", ASCENDING), ("code", ASCENDING)], unique=True)]


class LeaveBalance(TimestampedDocument):
    user_id: PydanticObjectId
    employee_id: PydanticObjectId
    company_id: PydanticObjectId
    leave_type_id: PydanticObjectId
    year: int
    total_days: float = 0
    used_days: float = 0
    pending_days: float = 0
    carried_forward: float = 0

    @property
    def available_days(self) -> float:
        return self.total_days - self.used_days - self.pending_days

    class Settings:
        name = "leave_balances"
        indexes = [
            IndexModel(
                [("user_id", ASCENDING), ("leave_type_id", ASCENDING), ("year", ASCENDING)],
                unique=True,
            )
        ]


class LeaveRequest(TimestampedDocument):
    user_id: PydanticObjectId
    employee_id: PydanticObjectId
    company_id: PydanticObjectId
    leave_type_id: PydanticObjectId
    start_date: datetime
    end_date: datetime
    total_days: float
    half_day: bool = False
    reason: str
    status: Literal["pending", "approved", "rejected", "cancelled"] = "pending"
    approver_id: Optional[PydanticObjectId] = None
    approver_comments: Optional[str] = None
    approved_at: Optional[datetime] = None

    class Settings:
        name = "leave_requests"
        indexes = [
            IndexModel([("company_id", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("user_id", ASCENDING), ("start_date", ASCENDING)]),
        ]
