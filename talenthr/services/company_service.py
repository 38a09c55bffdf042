import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from beanie import PydanticObjectId
from motor.motor_asyncio import AsyncIOMotorClientSession

from talenthr.models.company import Company
from talenthr.models.employee import Department
from talenthr.models.leave import LeaveType
from talenthr.models.recruitment import Candidate, Interview, InterviewFeedback, JobPosting, SalaryRange
from talenthr.models.users import User

DEFAULT_DEPARTMENTS = [
    ("Engineering", "ENG", "Software development and technical operations"),
    ("Human Resources", "HR", "Recruitment, employee relations and HR operations"),
    ("Sales", "SALES", "Sales and business development"),
    ("Marketing", "MKT", "Marketing, branding and communications"),
    ("Finance", "FIN", "Accounting, budgeting and financial planning"),
    ("Operations", "OPS", "Business operations and logistics"),
    ("Customer Support", "CS", "Customer service and support"),
    ("Product", "PROD", "Product management and design"),
]

# name, code, annual quota, carry forward, max carry forward, color
DEFAULT_LEAVE_TYPES = [
    ("Sick Leave", "SL", 10, False, 0, "#ef4444"),
    ("Vacation Leave", "VL", 15, True, 5, "#3b82f6"),
    ("Personal Leave", "PL", 5, False, 0, "#8b5cf6"),
    ("Casual Leave", "CL", 12, False, 0, "#10b981"),
]


def slugify(name: str) -> str:
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


async def company_name_taken(name: str) -> bool:
    pattern = f"^{re.escape(name.strip())}$"
    return await Company.find_one({"name": {"$regex": pattern, "$options": "i"}}) is not None


async def unique_slug(name: str) -> str:
    base = slugify(name) or "company"
    slug = base
    n = 1
    while await Company.find_one(Company.slug == slug):
        n += 1
        slug = f"{base}-{n}"
    return slug


async def seed_departments(
    company_id: PydanticObjectId, session: Optional[AsyncIOMotorClientSession] = None
) -> List[Department]:
    created = []
    for name, code, description in DEFAULT_DEPARTMENTS:
        dept = Department(company_id=company_id, name=name, code=code, description=description)
        await dept.insert(session=session)
        created.append(dept)
    return created


async def seed_leave_types(
    company_id: PydanticObjectId, session: Optional[AsyncIOMotorClientSession] = None
) -> List[LeaveType]:
    created = []
    for name, code, quota, carry, max_carry, color in DEFAULT_LEAVE_TYPES:
        lt = LeaveType(
            company_id=company_id,
            name=name,
            code=code,
            annual_quota=quota,
            carry_forward=carry,
            max_carry_forward=max_carry,
            color=color,
        )
        await lt.insert(session=session)
        created.append(lt)
    return created


# title, department slot, location, remote, salary, level, status, openings, deadline in days, tags
SAMPLE_JOBS = [
    ("Senior Full Stack Developer", 0, "San Francisco, CA", True, (120000, 180000), "senior", "published", 2, 30,
     ["react", "nodejs", "typescript", "mongodb"]),
    ("Product Manager", 1, "New York, NY", False, (100000, 150000), "mid", "published", 1, 45,
     ["product", "strategy", "saas"]),
    ("UX Designer", 0, "Remote", True, (80000, 120000), "mid", "published", 1, 20, ["ux", "design", "figma"]),
    ("DevOps Engineer", 2, "Austin, TX", True, (110000, 160000), "senior", "draft", 1, 60,
     ["devops", "aws", "kubernetes"]),
]

# job index, first name, last name, years, current position, status, stage, source, rating, applied days ago
SAMPLE_CANDIDATES = [
    (0, "John", "Smith", 6, "Full Stack Developer", "interview", "technical", "LinkedIn", 4, 10),
    (0, "Sarah", "Johnson", 5, "Software Engineer", "screening", "phone-screen", "Company Website", 3, 5),
    (1, "Michael", "Chen", 4, "Product Manager", "offer", "offer", "Referral", 5, 20),
    (1, "Emily", "Davis", 3, "Associate Product Manager", "interview", "final", "LinkedIn", 4, 15),
    (2, "David", "Wilson", 4, "UI/UX Designer", "applied", "application", "Company Website", 3, 2),
    (2, "Lisa", "Anderson", 5, "Senior UX Designer", "screening", "phone-screen", "LinkedIn", 4, 7),
]

# candidate index, type, days from now, duration, remote, status
SAMPLE_INTERVIEWS = [
    (0, "technical", 3, 60, False, "scheduled"),
    (1, "phone-screen", 1, 30, True, "scheduled"),
    (2, "final", -2, 45, False, "completed"),
    (3, "final", 5, 45, True, "scheduled"),
    (4, "behavioral", 4, 45, True, "scheduled"),
]


async def seed_recruitment(
    company_id: PydanticObjectId, recruiter: User
) -> Tuple[List[JobPosting], List[Candidate], List[Interview]]:
    """Demo jobs, candidates and interviews owned by `recruiter`"""
    departments = await Department.find(
        Department.company_id == company_id, Department.status == "active"
    ).limit(3).to_list()
    now = datetime.utcnow()

    jobs = []
    for title, slot, location, remote, (low, high), level, status, openings, deadline, tags in SAMPLE_JOBS:
        job = JobPosting(
            company_id=company_id,
            title=title,
            description=f"We are hiring a {title} to join our team.",
            department_id=departments[slot].id if slot < len(departments) else None,
            location=location,
            remote=remote,
            salary_range=SalaryRange(min=low, max=high),
            posted_by=recruiter.id,
            status=status,
            application_deadline=now + timedelta(days=deadline),
            number_of_openings=openings,
            experience_level=level,
            tags=tags,
        )
        await job.insert()
        jobs.append(job)

    candidates = []
    for job_idx, first, last, years, position, status, stage, source, rating, days_ago in SAMPLE_CANDIDATES:
        candidate = Candidate(
            job_posting_id=jobs[job_idx].id,
            company_id=company_id,
            first_name=first,
            last_name=last,
            email=f"{first}.{last}@example.com".lower(),
            experience=years,
            current_position=position,
            status=status,
            stage=stage,
            source=source,
            recruiter_id=recruiter.id,
            rating=rating,
            applied_at=now - timedelta(days=days_ago),
        )
        await candidate.insert()
        candidates.append(candidate)

    interviews = []
    for cand_idx, kind, offset, duration, remote, status in SAMPLE_INTERVIEWS:
        candidate = candidates[cand_idx]
        interview = Interview(
            candidate_id=candidate.id,
            job_posting_id=candidate.job_posting_id,
            company_id=company_id,
            type=kind,
            scheduled_at=now + timedelta(days=offset),
            duration=duration,
            is_remote=remote,
            interviewers=[recruiter.id],
            organizer_id=recruiter.id,
            status=status,
        )
        if status == "completed":
            interview.feedback.append(
                InterviewFeedback(interviewer_id=recruiter.id, rating=5, recommendation="hire")
            )
        await interview.insert()
        interviews.append(interview)

    return jobs, candidates, interviews


def company_summary(company: Optional[Company]) -> Optional[Dict[str, Any]]:
    if company is None:
        return None
    return {
        "id": str(company.id),
        "name": company.name,
        "slug": company.slug,
        "status": company.status,
    }
