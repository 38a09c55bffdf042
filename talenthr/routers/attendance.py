import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.errors import DuplicateKeyError

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.core.timezone_utils import day_bounds, month_bounds, start_of_day, to_local, to_naive_utc, utcnow
from talenthr.models.company import Company
from talenthr.models.employee import Attendance, Employee
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.employee import AttendanceCreate, ClockRequest
from talenthr.services import employee_service
from talenthr.services.permission import ADMIN_ROLES, MANAGER_ROLES, PermissionService, ensure_role
from talenthr.services.report_service import summarize_attendance
from talenthr.utils.serialize import document_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["attendance"])

# local hour from which a clock-in counts as late
LATE_HOUR = 10


def clock_in_status(clock_in: datetime, tz_name: Optional[str]) -> str:
    return "late" if to_local(clock_in, tz_name).hour >= LATE_HOUR else "present"


def work_hours(clock_in: datetime, clock_out: datetime, break_minutes: int = 0) -> float:
    seconds = (clock_out - clock_in).total_seconds() - break_minutes * 60
    return round(max(seconds, 0) / 3600, 2)


async def _company_timezone(company_id) -> str:
    company = await Company.get(company_id)
    return company.preferences.timezone if company else "UTC"


def _attendance_out(record: Attendance, employees=None, users=None) -> dict:
    data = document_to_dict(record)
    employee = (employees or {}).get(record.employee_id)
    user = (users or {}).get(record.user_id)
    data["employee"] = {
        "id": str(record.employee_id),
        "employee_id": employee.employee_id if employee else None,
        "name": user.name if user else None,
    }
    return data


@router.post("/clock-in", status_code=201)
async def clock_in(payload: Optional[ClockRequest] = None, current_user: User = Depends(get_current_user)):
    employee = await employee_service.require_employee_for_user(current_user)
    now = utcnow()
    today = start_of_day(now)

    if await Attendance.find_one(Attendance.employee_id == employee.id, Attendance.date == today):
        raise HTTPException(status_code=400, detail="You have already clocked in today")

    tz_name = await _company_timezone(employee.company_id)
    record = Attendance(
        employee_id=employee.id,
        user_id=current_user.id,
        company_id=employee.company_id,
        date=today,
        clock_in=now,
        status=clock_in_status(now, tz_name),
        notes=payload.notes if payload else None,
    )
    try:
        await record.insert()
    except DuplicateKeyError:
        # lost a race with a concurrent clock-in
        raise HTTPException(status_code=400, detail="You have already clocked in today")
    return {"success": True, "message": "Clocked in successfully", "attendance": _attendance_out(record)}


@router.post("/clock-out")
async def clock_out(payload: Optional[ClockRequest] = None, current_user: User = Depends(get_current_user)):
    employee = await employee_service.require_employee_for_user(current_user)
    today = start_of_day(utcnow())
    record = await Attendance.find_one(Attendance.employee_id == employee.id, Attendance.date == today)
    if not record:
        raise HTTPException(status_code=404, detail="You have not clocked in today")
    if record.clock_out:
        raise HTTPException(status_code=400, detail="You have already clocked out today")

    if payload and payload.break_duration is not None:
        record.break_duration = payload.break_duration
    if payload and payload.notes:
        record.notes = payload.notes
    record.clock_out = utcnow()
    record.work_hours = work_hours(record.clock_in, record.clock_out, record.break_duration)
    await record.save()
    return {"success": True, "message": "Clocked out successfully", "attendance": _attendance_out(record)}


@router.get("")
async def list_attendance(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    employee_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    query = {"company_id": current_user.company_id}

    if employee_id:
        target = await get_or_404(Employee, require_object_id(employee_id, "employee_id"), "Employee not found")
        ensure_same_company(target, current_user)
        if target.user_id != current_user.id:
            if current_user.role == "manager" and not PermissionService.manages(current_user, target):
                raise HTTPException(status_code=403, detail="You can only view attendance for your team")
            if current_user.role not in MANAGER_ROLES:
                raise HTTPException(status_code=403, detail="You can only view your own attendance")
        query["employee_id"] = target.id
    elif current_user.role == "manager":
        query["user_id"] = {"$in": await PermissionService.visible_user_ids(current_user)}
    elif not PermissionService.is_admin_or_hr(current_user):
        employee = await employee_service.require_employee_for_user(current_user)
        query["employee_id"] = employee.id

    date_range = {}
    if start_date:
        date_range["$gte"] = start_of_day(to_naive_utc(start_date))
    if end_date:
        date_range["$lt"] = day_bounds(to_naive_utc(end_date))[1]
    if date_range:
        query["date"] = date_range

    records = await Attendance.find(query).sort(-Attendance.date).to_list()
    employees = await employee_service.employees_by_ids(r.employee_id for r in records)
    users = await employee_service.users_by_ids(r.user_id for r in records)
    return {
        "success": True,
        "count": len(records),
        "attendance": [_attendance_out(r, employees, users) for r in records],
    }


@router.post("", status_code=201)
async def create_attendance(payload: AttendanceCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    employee = await get_or_404(Employee, payload.employee_id, "Employee not found")
    ensure_same_company(employee, current_user, "Employee does not belong to your company")

    day = start_of_day(to_naive_utc(payload.date))
    if await Attendance.find_one(Attendance.employee_id == employee.id, Attendance.date == day):
        raise HTTPException(status_code=409, detail="Attendance record already exists for this date")

    clock_in_at = to_naive_utc(payload.clock_in)
    clock_out_at = to_naive_utc(payload.clock_out) if payload.clock_out else None
    status = payload.status
    if status is None:
        status = clock_in_status(clock_in_at, await _company_timezone(employee.company_id))
    record = Attendance(
        employee_id=employee.id,
        user_id=employee.user_id,
        company_id=employee.company_id,
        date=day,
        clock_in=clock_in_at,
        clock_out=clock_out_at,
        status=status,
        break_duration=payload.break_duration,
        work_hours=work_hours(clock_in_at, clock_out_at, payload.break_duration) if clock_out_at else 0,
        notes=payload.notes,
    )
    try:
        await record.insert()
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Attendance record already exists for this date")
    return {"success": True, "message": "Attendance record created", "attendance": _attendance_out(record)}


@router.get("/summary")
async def attendance_summary(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1970),
    current_user: User = Depends(get_current_user),
):
    now = utcnow()
    month = month or now.month
    year = year or now.year
    start, end = month_bounds(year, month)

    query = await PermissionService.scope_query(current_user)
    query["date"] = {"$gte": start, "$lt": end}
    records = await Attendance.find(query).to_list()
    summary = summarize_attendance(records)
    summary["period"] = {"month": month, "year": year}
    return {"success": True, "summary": summary}
