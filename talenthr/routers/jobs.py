import re
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pymongo import ReturnDocument

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.models.recruitment import Candidate, JobPosting
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.recruitment import JobCreate, JobUpdate
from talenthr.services import employee_service
from talenthr.services.permission import RECRUITING_ROLES, ensure_role
from talenthr.utils.serialize import document_to_dict, field_updates

router = APIRouter(prefix="/jobs", tags=["jobs"])


async def _job_out(job: JobPosting) -> dict:
    data = document_to_dict(job)
    data["applications_count"] = await Candidate.find(Candidate.job_posting_id == job.id).count()
    return data


@router.get("")
async def list_jobs(
    status: Optional[str] = Query(None),
    department_id: Optional[str] = Query(None),
    employment_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    query = {"company_id": current_user.company_id}
    if status:
        query["status"] = status
    if department_id:
        query["department_id"] = require_object_id(department_id, "department_id")
    if employment_type:
        query["employment_type"] = employment_type
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"location": pattern},
            {"tags": pattern},
        ]

    jobs = await JobPosting.find(query).sort(-JobPosting.created_at).to_list()
    return {"success": True, "count": len(jobs), "jobs": [await _job_out(j) for j in jobs]}


@router.post("", status_code=201)
async def create_job(payload: JobCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES)
    await employee_service.validate_department(current_user.company_id, payload.department_id)
    job = JobPosting(company_id=current_user.company_id, posted_by=current_user.id, **payload.model_dump())
    await job.insert()
    return {"success": True, "message": "Job posting created successfully", "job": await _job_out(job)}


@router.get("/{job_id}")
async def get_job(job_id: str, current_user: User = Depends(get_current_user)):
    job = await get_or_404(JobPosting, job_id, "Job posting not found")
    ensure_same_company(job, current_user)
    doc = await JobPosting.get_motor_collection().find_one_and_update(
        {"_id": job.id}, {"$inc": {"views": 1}}, return_document=ReturnDocument.AFTER
    )
    job.views = doc["views"] if doc else job.views + 1
    return {"success": True, "job": await _job_out(job)}


@router.put("/{job_id}")
async def update_job(job_id: str, payload: JobUpdate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES)
    job = await get_or_404(JobPosting, job_id, "Job posting not found")
    ensure_same_company(job, current_user)

    updates = field_updates(payload, job)
    if updates.get("department_id"):
        await employee_service.validate_department(job.company_id, updates["department_id"])
    for field, value in updates.items():
        setattr(job, field, value)
    await job.save()
    return {"success": True, "message": "Job posting updated successfully", "job": await _job_out(job)}


@router.delete("/{job_id}")
async def delete_job(job_id: str, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES)
    job = await get_or_404(JobPosting, job_id, "Job posting not found")
    ensure_same_company(job, current_user)
    job.status = "cancelled"
    await job.save()
    return {"success": True, "message": "Job posting cancelled successfully"}
