from datetime import datetime
from typing import Literal, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, Field, model_validator

from talenthr.models.performance import GoalStatus, ReviewPeriod


class GoalCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Literal["individual", "team", "company"] = "individual"
    target_date: Optional[datetime] = None
    priority: Literal["low", "medium", "high"] = "medium"
    # a user id; defaults to the caller
    assign_to: Optional[PydanticObjectId] = None


class GoalUpdate(BaseModel):
    action: Optional[str] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[Literal["individual", "team", "company"]] = None
    target_date: Optional[datetime] = None
    status: Optional[GoalStatus] = None
    # clamped rather than rejected
    progress: Optional[float] = None
    priority: Optional[Literal["low", "medium", "high"]] = None


class ReviewCreate(BaseModel):
    employee_id: PydanticObjectId
    review_period: ReviewPeriod
    overall_rating: int = Field(ge=1, le=5)
    strengths: Optional[str] = Field(default=None, max_length=1000)
    areas_for_improvement: Optional[str] = Field(default=None, max_length=1000)
    goals: Optional[str] = Field(default=None, max_length=1000)
    comments: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def period_order(self):
        if self.review_period.end_date < self.review_period.start_date:
            raise ValueError("Review period end must be after its start")
        return self


class ReviewUpdate(BaseModel):
    action: Optional[str] = None
    overall_rating: Optional[int] = Field(default=None, ge=1, le=5)
    strengths: Optional[str] = Field(default=None, max_length=1000)
    areas_for_improvement: Optional[str] = Field(default=None, max_length=1000)
    goals: Optional[str] = Field(default=None, max_length=1000)
    comments: Optional[str] = Field(default=None, max_length=2000)
