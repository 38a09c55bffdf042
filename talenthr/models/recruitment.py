from datetime import datetime
from typing import List, Literal, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from talenthr.models.base import TimestampedDocument
from talenthr.models.employee import EmploymentType

CandidateStatus = Literal["applied", "screening", "interview", "offer", "hired", "rejected", "withdrawn"]
CandidateStage = Literal["application", "phone-screen", "technical", "final", "offer"]
InterviewType = Literal["phone-screen", "technical", "behavioral", "final", "panel"]


class SalaryRange(BaseModel):
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)
    currency: str = "USD"


class JobPosting(TimestampedDocument):
    company_id: PydanticObjectId
    title: str
    description: str
    department_id: Optional[PydanticObjectId] = None
    employment_type: EmploymentType = "full-time"
    location: Optional[str] = None
    remote: bool = False
    salary_range: Optional[SalaryRange] = None
    requirements: List[str] = Field(default_factory=list)
    responsibilities: List[str] = Field(default_factory=list)
    qualifications: List[str] = Field(default_factory=list)
    posted_by: PydanticObjectId
    status: Literal["draft", "published", "closed", "cancelled"] = "draft"
    application_deadline: Optional[datetime] = None
    number_of_openings: int = 1
    experience_level: Optional[Literal["entry", "mid", "senior", "executive"]] = None
    tags: List[str] = Field(default_factory=list)
    views: int = 0

    class Settings:
        name = "job_postings"
        indexes = [IndexModel([("company_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)])]


class CandidateDocument(BaseModel):
    name: str
    url: str
    type: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class Candidate(TimestampedDocument):
    job_posting_id: PydanticObjectId
    company_id: PydanticObjectId
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    experience: Optional[float] = None
    current_position: Optional[str] = None
    current_company: Optional[str] = None
    expected_salary: Optional[SalaryRange] = None
    notice_period: Optional[int] = None
    availability: Optional[datetime] = None
    status: CandidateStatus = "applied"
    stage: CandidateStage = "application"
    source: Optional[str] = None
    recruiter_id: Optional[PydanticObjectId] = None
    notes: Optional[str] = None
    rating: Optional[int] = None
    skills: List[str] = Field(default_factory=list)
    documents: List[CandidateDocument] = Field(default_factory=list)
    applied_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "candidates"
        indexes = [
            IndexModel([("job_posting_id", ASCENDING), ("email", ASCENDING)], unique=True),
            IndexModel([("company_id", ASCENDING), ("status", ASCENDING)]),
        ]


class InterviewFeedback(BaseModel):
    interviewer_id: PydanticObjectId
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    notes: Optional[str] = None
    recommendation: Optional[Literal["hire", "maybe", "reject"]] = None
    submitted_at: datetime = Field(default_factory=datetime.utcnow)


class Interview(TimestampedDocument):
    candidate_id: PydanticObjectId
    job_posting_id: PydanticObjectId
    company_id: PydanticObjectId
    type: InterviewType
    scheduled_at: datetime
    duration: int = 60
    location: Optional[str] = None
    is_remote: bool = False
    meeting_link: Optional[str] = None
    interviewers: List[PydanticObjectId] = Field(default_factory=list)
    organizer_id: PydanticObjectId
    status: Literal["scheduled", "completed", "cancelled", "rescheduled", "no-show"] = "scheduled"
    feedback: List[InterviewFeedback] = Field(default_factory=list)
    notes: Optional[str] = None
    reminder_sent: bool = False

    class Settings:
        name = "interviews"
        indexes = [IndexModel([("company_id", ASCENDING), ("scheduled_at", ASCENDING)])]
