import logging
from datetime import datetime
from typing import Optional

from beanie.operators import In
from fastapi import APIRouter, Depends, HTTPException, Query

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.core.timezone_utils import to_naive_utc
from talenthr.models.employee import Employee
from talenthr.models.leave import LeaveRequest, LeaveType
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.leave import LeaveAction, LeaveCreate
from talenthr.services import employee_service, leave_service
from talenthr.services.permission import PermissionService
from talenthr.utils.serialize import document_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaves", tags=["leaves"])


async def _leave_types_by_ids(ids):
    ids = list({i for i in ids if i})
    if not ids:
        return {}
    return {t.id: t for t in await LeaveType.find(In(LeaveType.id, ids)).to_list()}


def _leave_out(request: LeaveRequest, leave_types=None, users=None) -> dict:
    data = document_to_dict(request)
    leave_type = (leave_types or {}).get(request.leave_type_id)
    user = (users or {}).get(request.user_id)
    data["leave_type"] = {
        "id": str(leave_type.id),
        "name": leave_type.name,
        "code": leave_type.code,
        "color": leave_type.color,
    } if leave_type else None
    data["employee_name"] = user.name if user else None
    return data


async def _ensure_can_act_on(current_user: User, request: LeaveRequest) -> None:
    """Approve/reject: admin/HR anywhere in the company, managers for their team"""
    if PermissionService.is_admin_or_hr(current_user):
        return
    if current_user.role == "manager":
        employee = await Employee.get(request.employee_id)
        if employee and PermissionService.manages(current_user, employee):
            return
        raise HTTPException(status_code=403, detail="You can only manage leave requests for your team")
    raise HTTPException(status_code=403, detail="You don't have permission to approve or reject leave requests")


@router.get("")
async def list_leaves(
    status: Optional[str] = Query(None),
    employee_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    query = await PermissionService.scope_query(current_user)
    if status:
        query["status"] = status
    if employee_id:
        query["employee_id"] = require_object_id(employee_id, "employee_id")

    requests = await LeaveRequest.find(query).sort(-LeaveRequest.created_at).to_list()
    leave_types = await _leave_types_by_ids(r.leave_type_id for r in requests)
    users = await employee_service.users_by_ids(r.user_id for r in requests)
    return {
        "success": True,
        "count": len(requests),
        "leaves": [_leave_out(r, leave_types, users) for r in requests],
    }


@router.post("", status_code=201)
async def create_leave(payload: LeaveCreate, current_user: User = Depends(get_current_user)):
    employee = await employee_service.require_employee_for_user(current_user)
    leave_type = await LeaveType.get(payload.leave_type_id)
    if not leave_type or leave_type.company_id != employee.company_id or leave_type.status != "active":
        raise HTTPException(status_code=400, detail="Invalid leave type")

    start = to_naive_utc(payload.start_date)
    end = to_naive_utc(payload.end_date)
    days = leave_service.count_leave_days(start, end, payload.half_day)

    balance = await leave_service.get_or_create_balance(employee, leave_type, start.year)
    await leave_service.reserve_days(balance, days)

    request = LeaveRequest(
        user_id=current_user.id,
        employee_id=employee.id,
        company_id=employee.company_id,
        leave_type_id=leave_type.id,
        start_date=start,
        end_date=end,
        total_days=days,
        half_day=payload.half_day and days == 0.5,
        reason=payload.reason,
    )
    try:
        await request.insert()
    except Exception:
        # give the reserved days back before propagating
        await leave_service.unreserve_days(balance, days)
        raise
    logger.info("Leave request %s (%s days) created by %s", request.id, days, current_user.email)
    return {
        "success": True,
        "message": "Leave request submitted successfully",
        "leave": _leave_out(request, {leave_type.id: leave_type}, {current_user.id: current_user}),
    }


@router.get("/balance")
async def leave_balance(
    employee_id: Optional[str] = Query(None),
    year: Optional[int] = Query(None, ge=1970),
    current_user: User = Depends(get_current_user),
):
    if employee_id:
        employee = await get_or_404(Employee, require_object_id(employee_id, "employee_id"), "Employee not found")
        ensure_same_company(employee, current_user)
        if employee.user_id != current_user.id:
            allowed = PermissionService.is_admin_or_hr(current_user) or (
                current_user.role == "manager" and PermissionService.manages(current_user, employee)
            )
            if not allowed:
                raise HTTPException(status_code=403, detail="You don't have permission to view this leave balance")
    else:
        employee = await employee_service.require_employee_for_user(current_user)

    balances = await leave_service.ensure_balances(employee, year or datetime.utcnow().year)
    leave_types = await _leave_types_by_ids(b.leave_type_id for b in balances)
    return {
        "success": True,
        "employee_id": str(employee.id),
        "balances": [leave_service.serialize_balance(b, leave_types.get(b.leave_type_id)) for b in balances],
    }


@router.put("/{leave_id}")
async def update_leave(leave_id: str, payload: LeaveAction, current_user: User = Depends(get_current_user)):
    request = await get_or_404(LeaveRequest, leave_id, "Leave request not found")
    ensure_same_company(request, current_user)
    action = payload.action

    if action in ("approve", "reject"):
        await _ensure_can_act_on(current_user, request)
        if request.status != "pending":
            raise HTTPException(status_code=400, detail=f"Leave request is already {request.status}")
        new_status = "approved" if action == "approve" else "rejected"
        extra = {
            "approver_id": current_user.id,
            "approver_comments": payload.comments,
            "approved_at": datetime.utcnow(),
        }
        if not await leave_service.transition(request, new_status, extra):
            current = await LeaveRequest.get(request.id)
            raise HTTPException(status_code=400, detail=f"Leave request is already {current.status}")
        if new_status == "approved":
            await leave_service.consume_days(request)
        else:
            await leave_service.release_days(request)
        message = f"Leave request {new_status} successfully"

    elif action == "cancel":
        if request.user_id != current_user.id:
            raise HTTPException(status_code=403, detail="You can only cancel your own leave requests")
        if request.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending leave requests can be cancelled")
        if not await leave_service.transition(request, "cancelled"):
            raise HTTPException(status_code=400, detail="Only pending leave requests can be cancelled")
        await leave_service.release_days(request)
        message = "Leave request cancelled successfully"

    else:
        raise HTTPException(status_code=400, detail="Invalid action")

    logger.info("Leave request %s %s by %s", request.id, request.status, current_user.email)
    leave_types = await _leave_types_by_ids([request.leave_type_id])
    users = await employee_service.users_by_ids([request.user_id])
    return {"success": True, "message": message, "leave": _leave_out(request, leave_types, users)}
