import logging

from fastapi import APIRouter, Depends, HTTPException

from talenthr.models.employee import Department
from talenthr.models.leave import LeaveType
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.services import company_service
from talenthr.services.permission import RECRUITING_ROLES, ensure_role
from talenthr.utils.serialize import documents_to_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/seed", tags=["seed"])


@router.post("/departments", status_code=201)
async def seed_departments(current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ("company_admin",), "Only company admins can seed data")
    if await Department.find(Department.company_id == current_user.company_id).count():
        raise HTTPException(status_code=400, detail="Departments already exist for this company")

    created = await company_service.seed_departments(current_user.company_id)
    logger.info("Seeded %d departments for company %s", len(created), current_user.company_id)
    return {
        "success": True,
        "message": f"{len(created)} departments created successfully",
        "departments": documents_to_list(created),
    }


@router.post("/leave-types", status_code=201)
async def seed_leave_types(current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ("company_admin",), "Only company admins can seed data")
    if await LeaveType.find(LeaveType.company_id == current_user.company_id).count():
        raise HTTPException(status_code=400, detail="Leave types already exist for this company")

    created = await company_service.seed_leave_types(current_user.company_id)
    logger.info("Seeded %d leave types for company %s", len(created), current_user.company_id)
    return {
        "success": True,
        "message": f"{len(created)} leave types created successfully",
        "leave_types": documents_to_list(created),
    }


@router.post("/recruitment", status_code=201)
async def seed_recruitment(current_user: User = Depends(get_current_user)):
    ensure_role(current_user, RECRUITING_ROLES, "You don't have permission to seed data")
    jobs, candidates, interviews = await company_service.seed_recruitment(current_user.company_id, current_user)
    logger.info("Seeded recruitment data for company %s", current_user.company_id)
    return {
        "success": True,
        "message": "Recruitment data seeded successfully",
        "data": {"jobs": len(jobs), "candidates": len(candidates), "interviews": len(interviews)},
    }
