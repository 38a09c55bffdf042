from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.core.timezone_utils import to_naive_utc
from talenthr.models.recruitment import Candidate, Interview, InterviewFeedback, JobPosting
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.recruitment import InterviewCreate, InterviewUpdate
from talenthr.services.permission import PermissionService, RECRUITING_ROLES, ensure_role
from talenthr.utils.serialize import document_to_dict, documents_to_list, field_updates

router = APIRouter(prefix="/interviews", tags=["interviews"])


def _involved(user: User, interview: Interview) -> bool:
    return user.id in interview.interviewers or user.id == interview.organizer_id


def _ensure_scope(user: User, interview: Interview) -> None:
    ensure_same_company(interview, user)
    if not PermissionService.is_admin_or_hr(user) and not _involved(user, interview):
        raise HTTPException(status_code=403, detail="You don't have permission to access this interview")


@router.get("")
async def list_interviews(
    candidate_id: Optional[str] = Query(None),
    job_posting_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: User = Depends(get_current_user),
):
    query = {"company_id": current_user.company_id}
    if not PermissionService.is_admin_or_hr(current_user):
        query["$or"] = [{"interviewers": current_user.id}, {"organizer_id": current_user.id}]
    if candidate_id:
        query["candidate_id"] = require_object_id(candidate_id, "candidate_id")
    if job_posting_id:
        query["job_posting_id"] = require_object_id(job_posting_id, "job_posting_id")
    if status:
        query["status"] = status
    window = {}
    if date_from:
        window["$gte"] = to_naive_utc(date_from)
    if date_to:
        window["$lte"] = to_naive_utc(date_to)
    if window:
        query["scheduled_at"] = window

    interviews = await Interview.find(query).sort(+Interview.scheduled_at).to_list()
    return {"success": True, "count": len(interviews), "interviews": documents_to_list(interviews)}


@router.post("", status_code=201)
async def create_interview(payload: InterviewCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES)
    candidate = await get_or_404(Candidate, payload.candidate_id, "Candidate not found")
    job = await get_or_404(JobPosting, payload.job_posting_id, "Job posting not found")
    ensure_same_company(candidate, current_user, "Candidate does not belong to your company")
    ensure_same_company(job, current_user, "Job posting does not belong to your company")

    fields = payload.model_dump()
    fields["scheduled_at"] = to_naive_utc(payload.scheduled_at)
    interview = Interview(company_id=current_user.company_id, organizer_id=current_user.id, **fields)
    await interview.insert()
    return {"success": True, "message": "Interview scheduled successfully", "interview": document_to_dict(interview)}


@router.get("/{interview_id}")
async def get_interview(interview_id: str, current_user: User = Depends(get_current_user)):
    interview = await get_or_404(Interview, interview_id, "Interview not found")
    _ensure_scope(current_user, interview)
    return {"success": True, "interview": document_to_dict(interview)}


@router.put("/{interview_id}")
async def update_interview(
    interview_id: str, payload: InterviewUpdate, current_user: User = Depends(get_current_user)
):
    interview = await get_or_404(Interview, interview_id, "Interview not found")
    _ensure_scope(current_user, interview)

    for field, value in field_updates(payload, interview, exclude={"feedback"}).items():
        if field == "scheduled_at":
            value = to_naive_utc(value)
        setattr(interview, field, value)
    if payload.feedback is not None:
        interview.feedback.append(
            InterviewFeedback(interviewer_id=current_user.id, **payload.feedback.model_dump())
        )

    await interview.save()
    return {"success": True, "message": "Interview updated successfully", "interview": document_to_dict(interview)}
