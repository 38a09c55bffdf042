from datetime import datetime
from typing import Literal, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, IndexModel

from talenthr.models.base import TimestampedDocument

GoalStatus = Literal["not-started", "in-progress", "completed", "cancelled"]


class Goal(TimestampedDocument):
    user_id: PydanticObjectId
    employee_id: PydanticObjectId
    company_id: PydanticObjectId
    title: str
    description: Optional[str] = None
    category: Literal["individual", "team", "company"] = "individual"
    target_date: Optional[datetime] = None
    status: GoalStatus = "not-started"
    progress: int = 0
    priority: Literal["low", "medium", "high"] = "medium"
    assigned_by: Optional[PydanticObjectId] = None

    class Settings:
        name = "goals"
        indexes = [IndexModel([("user_id", ASCENDING), ("status", ASCENDING)])]


class ReviewPeriod(BaseModel):
    start_date: datetime
    end_date: datetime


class PerformanceReview(TimestampedDocument):
    employee_id: PydanticObjectId
    reviewer_id: PydanticObjectId
    company_id: PydanticObjectId
    review_period: ReviewPeriod
    overall_rating: int
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    goals: Optional[str] = None
    comments: Optional[str] = None
    status: Literal["draft", "submitted", "completed"] = "draft"
    submitted_at: Optional[datetime] = None

    class Settings:
        name = "performance_reviews"
        indexes = [
            IndexModel([("employee_id", ASCENDING)]),
            IndexModel([("reviewer_id", ASCENDING)]),
        ]
