from datetime import datetime
from typing import Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, Field, field_validator, model_validator


class LeaveTypeCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    code: str = Field(min_length=1, max_length=10)
    description: Optional[str] = Field(default=None, max_length=500)
    annual_quota: float = Field(default=0, ge=0)
    carry_forward: bool = False
    max_carry_forward: float = Field(default=0, ge=0)
    requires_approval: bool = True
    color: str = Field(default="#667eea", pattern=r"^#[0-9a-fA-F]{6}$")

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper()


class LeaveCreate(BaseModel):
    leave_type_id: PydanticObjectId
    start_date: datetime
    end_date: datetime
    half_day: bool = False
    reason: str = Field(min_length=1, max_length=500)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date.date() < self.start_date.date():
            raise ValueError("End date must be on or after start date")
        return self


class LeaveAction(BaseModel):
    action: str
    comments: Optional[str] = Field(default=None, max_length=500)
