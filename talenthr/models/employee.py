from datetime import datetime
from typing import List, Literal, Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel

from talenthr.models.base import TimestampedDocument

EmploymentType = Literal["full-time", "part-time", "contract", "intern"]


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "USA"


class EmergencyContact(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None


class Certification(BaseModel):
    name: str
    issuer: Optional[str] = None
    issue_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None


class EmployeeDocument(BaseModel):
    name: str
    url: str
    type: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class Employee(TimestampedDocument):
    user_id: Indexed(PydanticObjectId, unique=True)
    company_id: PydanticObjectId
    employee_id: Indexed(str, unique=True)
    department_id: Optional[PydanticObjectId] = None
    position: Optional[str] = None
    hire_date: datetime = Field(default_factory=datetime.utcnow)
    employment_type: EmploymentType = "full-time"
    salary: Optional[float] = None
    # the manager is a User, not an Employee
    manager_id: Optional[PydanticObjectId] = None
    work_location: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None
    skills: List[str] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    documents: List[EmployeeDocument] = Field(default_factory=list)
    status: Literal["active", "on-leave", "terminated", "resigned"] = "active"
    notes: Optional[str] = None

    class Settings:
        name = "employees"
        indexes = [
            IndexModel([("company_id", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("manager_id", ASCENDING)]),
        ]


class EmployeeIdCounter(Document):
    """Per-company sequence behind the generated employee ids"""

    company_id: Indexed(PydanticObjectId, unique=True)
    seq: int = 0

    class Settings:
        name = "employee_id_counters"


class Department(TimestampedDocument):
    company_id: PydanticObjectId
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    parent_department_id: Optional[PydanticObjectId] = None
    manager_id: Optional[PydanticObjectId] = None
    budget: Optional[float] = None
    location: Optional[str] = None
    status: Literal["active", "inactive"] = "active"

    class Settings:
        name = "departments"
        indexes = [IndexModel([("company_id", ASCENDING), ("name", ASCENDING)], unique=True)]


class Attendance(TimestampedDocument):
    employee_id: PydanticObjectId
    user_id: PydanticObjectId
    company_id: PydanticObjectId
    # midnight UTC of the working day
    date: datetime
    clock_in: datetime
    clock_out: Optional[datetime] = None
    status: Literal["present", "absent", "late", "half-day"] = "present"
    work_hours: float = 0
    break_duration: int = 0
    notes: Optional[str] = None

    class Settings:
        name = "attendances"
        indexes = [
            IndexModel([("employee_id", ASCENDING), ("date", ASCENDING)], unique=True),
            IndexModel([("company_id", ASCENDING), ("date", ASCENDING)]),
        ]
