from datetime import datetime
from typing import List, Literal, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, EmailStr, Field, field_validator

from talenthr.models.employee import EmploymentType
from talenthr.models.recruitment import (
    CandidateDocument,
    CandidateStage,
    CandidateStatus,
    InterviewType,
    SalaryRange,
)

JobStatus = Literal["draft", "published", "closed", "cancelled"]
ExperienceLevel = Literal["entry", "mid", "senior", "executive"]


class JobCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=1)
    department_id: Optional[PydanticObjectId] = None
    employment_type: EmploymentType = "full-time"
    location: Optional[str] = None
    remote: bool = False
    salary_range: Optional[SalaryRange] = None
    requirements: List[str] = Field(default_factory=list)
    responsibilities: List[str] = Field(default_factory=list)
    qualifications: List[str] = Field(default_factory=list)
    status: JobStatus = "draft"
    application_deadline: Optional[datetime] = None
    number_of_openings: int = Field(default=1, ge=1)
    experience_level: Optional[ExperienceLevel] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        return v.strip()


class JobUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    department_id: Optional[PydanticObjectId] = None
    employment_type: Optional[EmploymentType] = None
    location: Optional[str] = None
    remote: Optional[bool] = None
    salary_range: Optional[SalaryRange] = None
    requirements: Optional[List[str]] = None
    responsibilities: Optional[List[str]] = None
    qualifications: Optional[List[str]] = None
    status: Optional[JobStatus] = None
    application_deadline: Optional[datetime] = None
    number_of_openings: Optional[int] = Field(default=None, ge=1)
    experience_level: Optional[ExperienceLevel] = None
    tags: Optional[List[str]] = None


class CandidateBase(BaseModel):
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = Field(default=None, max_length=5000)
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    experience: Optional[float] = Field(default=None, ge=0)
    current_position: Optional[str] = Field(default=None, max_length=200)
    current_company: Optional[str] = Field(default=None, max_length=200)
    expected_salary: Optional[SalaryRange] = None
    notice_period: Optional[int] = Field(default=None, ge=0)
    availability: Optional[datetime] = None
    source: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    skills: Optional[List[str]] = None
    documents: Optional[List[CandidateDocument]] = None


class CandidateCreate(CandidateBase):
    job_posting_id: PydanticObjectId
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    status: CandidateStatus = "applied"
    stage: CandidateStage = "application"
    recruiter_id: Optional[PydanticObjectId] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class CandidateUpdate(CandidateBase):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[CandidateStatus] = None
    stage: Optional[CandidateStage] = None
    recruiter_id: Optional[PydanticObjectId] = None


class FeedbackIn(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    recommendation: Optional[Literal["hire", "maybe", "reject"]] = None


class InterviewCreate(BaseModel):
    candidate_id: PydanticObjectId
    job_posting_id: PydanticObjectId
    type: InterviewType
    scheduled_at: datetime
    duration: int = Field(default=60, ge=15)
    location: Optional[str] = None
    is_remote: bool = False
    meeting_link: Optional[str] = None
    interviewers: List[PydanticObjectId] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=2000)


class InterviewUpdate(BaseModel):
    type: Optional[InterviewType] = None
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=15)
    location: Optional[str] = None
    is_remote: Optional[bool] = None
    meeting_link: Optional[str] = None
    interviewers: Optional[List[PydanticObjectId]] = None
    status: Optional[Literal["scheduled", "completed", "cancelled", "rescheduled", "no-show"]] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    reminder_sent: Optional[bool] = None
    feedback: Optional[FeedbackIn] = None
