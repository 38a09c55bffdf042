import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.errors import DuplicateKeyError

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.models.recruitment import Candidate, Interview, JobPosting
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.recruitment import CandidateCreate, CandidateUpdate
from talenthr.services.permission import ADMIN_ROLES, RECRUITING_ROLES, ensure_role
from talenthr.utils.serialize import document_to_dict, documents_to_list, field_updates

router = APIRouter(prefix="/candidates", tags=["candidates"])

DUPLICATE_APPLICATION = "Candidate has already applied for this job"


def _ensure_recruiter_owns(current_user: User, candidate: Candidate) -> None:
    if current_user.role == "recruiter" and candidate.recruiter_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only access candidates assigned to you")


@router.get("")
async def list_candidates(
    job_posting_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    recruiter_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    ensure_role(current_user, RECRUITING_ROLES + ("manager",))
    query = {"company_id": current_user.company_id}
    if current_user.role == "recruiter":
        query["recruiter_id"] = current_user.id
    elif recruiter_id:
        query["recruiter_id"] = require_object_id(recruiter_id, "recruiter_id")
    if job_posting_id:
        query["job_posting_id"] = require_object_id(job_posting_id, "job_posting_id")
    if status:
        query["status"] = status
    if stage:
        query["stage"] = stage
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [
            {"first_name": pattern},
            {"last_name": pattern},
            {"email": pattern},
            {"current_position": pattern},
            {"current_company": pattern},
        ]

    candidates = await Candidate.find(query).sort(-Candidate.applied_at).to_list()
    return {"success": True, "count": len(candidates), "candidates": documents_to_list(candidates)}


@router.post("", status_code=201)
async def create_candidate(payload: CandidateCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES)
    job = await get_or_404(JobPosting, payload.job_posting_id, "Job posting not found")
    ensure_same_company(job, current_user, "Job posting does not belong to your company")

    if await Candidate.find_one(Candidate.job_posting_id == job.id, Candidate.email == payload.email):
        raise HTTPException(status_code=409, detail=DUPLICATE_APPLICATION)

    fields = {k: v for k, v in payload.model_dump().items() if v is not None}
    fields["recruiter_id"] = payload.recruiter_id or current_user.id
    candidate = Candidate(company_id=job.company_id, **fields)
    try:
        await candidate.insert()
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail=DUPLICATE_APPLICATION)
    return {"success": True, "message": "Candidate created successfully", "candidate": document_to_dict(candidate)}


@router.get("/{candidate_id}")
async def get_candidate(candidate_id: str, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES + ("manager",))
    candidate = await get_or_404(Candidate, candidate_id, "Candidate not found")
    ensure_same_company(candidate, current_user)
    _ensure_recruiter_owns(current_user, candidate)

    interviews = await Interview.find(Interview.candidate_id == candidate.id).sort(+Interview.scheduled_at).to_list()
    data = document_to_dict(candidate)
    data["interviews"] = documents_to_list(interviews)
    return {"success": True, "candidate": data}


@router.put("/{candidate_id}")
async def update_candidate(
    candidate_id: str, payload: CandidateUpdate, current_user: User = Depends(get_current_user)
):
    ensure_role(current_user, RECRUITING_ROLES)
    candidate = await get_or_404(Candidate, candidate_id, "Candidate not found")
    ensure_same_company(candidate, current_user)
    _ensure_recruiter_owns(current_user, candidate)

    updates = field_updates(payload, candidate)
    if "recruiter_id" in updates and current_user.role not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Only admins and HR managers can reassign candidates")
    for field, value in updates.items():
        setattr(candidate, field, value)
    await candidate.save()
    return {"success": True, "message": "Candidate updated successfully", "candidate": document_to_dict(candidate)}
