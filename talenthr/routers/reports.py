from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/overview")
async def overview_report(current_user: User = Depends(get_current_user)):
    return {"success": True, "report": await ReportService.overview(current_user)}


@router.get("/attendance")
async def attendance_report(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1970),
    current_user: User = Depends(get_current_user),
):
    now = datetime.utcnow()
    report = await ReportService.attendance_report(current_user, month or now.month, year or now.year)
    return {"success": True, "report": report}


@router.get("/leaves")
async def leave_report(
    year: Optional[int] = Query(None, ge=1970),
    current_user: User = Depends(get_current_user),
):
    report = await ReportService.leave_report(current_user, year or datetime.utcnow().year)
    return {"success": True, "report": report}


@router.get("/performance")
async def performance_report(current_user: User = Depends(get_current_user)):
    return {"success": True, "report": await ReportService.performance_report(current_user)}
