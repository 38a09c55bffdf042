from datetime import datetime
from typing import List, Literal, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from talenthr.models.employee import Address, Certification, EmergencyContact, EmploymentType
from talenthr.models.users import Role

PHONE_PATTERN = r"^\+?[\d\s\-()]+$"


class EmployeeFields(BaseModel):
    department_id: Optional[PydanticObjectId] = None
    position: Optional[str] = Field(default=None, max_length=100)
    hire_date: Optional[datetime] = None
    employment_type: Optional[EmploymentType] = None
    salary: Optional[float] = Field(default=None, ge=0)
    manager_id: Optional[PydanticObjectId] = None
    work_location: Optional[str] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None
    skills: Optional[List[str]] = None
    certifications: Optional[List[Certification]] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class EmployeeCreate(EmployeeFields):
    """
    Either link an existing user (user_id) or create the login user in the
    same step (email, name, password).
    """

    user_id: Optional[PydanticObjectId] = None
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    password: Optional[str] = Field(default=None, min_length=8)
    role: Role = "employee"

    @model_validator(mode="after")
    def user_or_credentials(self):
        if self.user_id is None and not (self.email and self.name and self.password):
            raise ValueError("User ID is required")
        return self


class EmployeeUpdate(EmployeeFields):
    status: Optional[Literal["active", "on-leave", "terminated", "resigned"]] = None


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    code: Optional[str] = Field(default=None, max_length=10)
    description: Optional[str] = Field(default=None, max_length=500)
    parent_department_id: Optional[PydanticObjectId] = None
    manager_id: Optional[PydanticObjectId] = None
    budget: Optional[float] = Field(default=None, ge=0)
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if v else v


class DepartmentUpdate(DepartmentCreate):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v else v


class AttendanceCreate(BaseModel):
    employee_id: PydanticObjectId
    date: datetime
    clock_in: datetime
    clock_out: Optional[datetime] = None
    status: Optional[Literal["present", "absent", "late", "half-day"]] = None
    break_duration: int = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def clock_out_after_in(self):
        if self.clock_out and self.clock_out < self.clock_in:
            raise ValueError("Clock out must be after clock in")
        return self


class ClockRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)
    break_duration: Optional[int] = Field(default=None, ge=0)
