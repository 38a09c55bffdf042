from fastapi import APIRouter, Depends, HTTPException

from talenthr.models.leave import LeaveType
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.leave import LeaveTypeCreate
from talenthr.services.permission import ADMIN_ROLES, ensure_role
from talenthr.utils.serialize import document_to_dict, documents_to_list

router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@router.get("")
async def list_leave_types(current_user: User = Depends(get_current_user)):
    leave_types = await LeaveType.find(
        LeaveType.company_id == current_user.company_id,
        LeaveType.status == "active",
    ).sort(+LeaveType.name).to_list()
    return {"success": True, "count": len(leave_types), "leave_types": documents_to_list(leave_types)}


@router.post("", status_code=201)
async def create_leave_type(payload: LeaveTypeCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    existing = await LeaveType.find_one(
        LeaveType.company_id == current_user.company_id,
        LeaveType.code == payload.code,
    )
    if existing:
        raise HTTPException(status_code=409, detail="Leave type with this code already exists")

    leave_type = LeaveType(company_id=current_user.company_id, **payload.model_dump())
    await leave_type.insert()
    return {"success": True, "message": "Leave type created successfully", "leave_type": document_to_dict(leave_type)}
