import logging
from collections import Counter
from typing import Any, Dict, List

from beanie.operators import In
from fastapi import HTTPException

from talenthr.core.timezone_utils import month_bounds, year_bounds
from talenthr.models.employee import Attendance, Department, Employee
from talenthr.models.leave import LeaveRequest, LeaveType
from talenthr.models.performance import Goal, PerformanceReview
from talenthr.models.recruitment import Candidate, JobPosting
from talenthr.models.users import User
from talenthr.services.permission import PermissionService

logger = logging.getLogger(__name__)


def _rate(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def summarize_attendance(records: List[Attendance]) -> Dict[str, Any]:
    """Counts per status, hours worked and the attendance rate"""
    counts = Counter(r.status for r in records)
    total = len(records)
    total_hours = sum(r.work_hours or 0 for r in records)
    attended = counts["present"] + counts["late"]
    return {
        "total_days": total,
        "present_days": counts["present"],
        "late_days": counts["late"],
        "absent_days": counts["absent"],
        "half_days": counts["half-day"],
        "total_work_hours": round(total_hours, 2),
        "avg_work_hours": round(total_hours / total, 2) if total else 0,
        "attendance_rate": _rate(attended, total),
    }


class ReportService:
    @staticmethod
    async def attendance_report(user: User, month: int, year: int) -> Dict[str, Any]:
        start, end = month_bounds(year, month)
        query = await PermissionService.scope_query(user)
        query["date"] = {"$gte": start, "$lt": end}
        records = await Attendance.find(query).to_list()
        report = summarize_attendance(records)
        report["period"] = {"month": month, "year": year}
        return report

    @staticmethod
    async def leave_report(user: User, year: int) -> Dict[str, Any]:
        start, end = year_bounds(year)
        query = await PermissionService.scope_query(user)
        query["start_date"] = {"$gte": start, "$lt": end}
        leaves = await LeaveRequest.find(query).to_list()

        type_ids = list({lr.leave_type_id for lr in leaves})
        types = {t.id: t.name for t in await LeaveType.find(In(LeaveType.id, type_ids)).to_list()} if type_ids else {}
        statuses = Counter(lr.status for lr in leaves)
        by_type = Counter(types.get(lr.leave_type_id, "Unknown") for lr in leaves)
        total = len(leaves)
        return {
            "year": year,
            "total_requests": total,
            "approved_requests": statuses["approved"],
            "pending_requests": statuses["pending"],
            "rejected_requests": statuses["rejected"],
            "cancelled_requests": statuses["cancelled"],
            "approval_rate": _rate(statuses["approved"], total),
            "by_leave_type": [{"type": name, "count": count} for name, count in by_type.most_common()],
        }

    @staticmethod
    async def performance_report(user: User) -> Dict[str, Any]:
        goal_query = await PermissionService.scope_query(user)
        goals = await Goal.find(goal_query).to_list()
        statuses = Counter(g.status for g in goals)
        total_goals = len(goals)

        review_query: Dict[str, Any] = {"company_id": user.company_id}
        if user.role == "employee":
            employee = await Employee.find_one(Employee.user_id == user.id)
            review_query["employee_id"] = employee.id if employee else None
        elif user.role == "manager":
            review_query["employee_id"] = {"$in": await PermissionService.team_employee_ids(user)}
        elif not PermissionService.is_admin_or_hr(user):
            review_query["reviewer_id"] = user.id
        reviews = await PerformanceReview.find(review_query).to_list()
        total_reviews = len(reviews)
        submitted = len([r for r in reviews if r.status in ("submitted", "completed")])

        return {
            "goals": {
                "total": total_goals,
                "completed": statuses["completed"],
                "in_progress": statuses["in-progress"],
                "not_started": statuses["not-started"],
                "completion_rate": _rate(statuses["completed"], total_goals),
                "avg_progress": round(sum(g.progress for g in goals) / total_goals) if total_goals else 0,
            },
            "reviews": {
                "total": total_reviews,
                "submitted": submitted,
                "avg_rating": round(sum(r.overall_rating for r in reviews) / total_reviews, 1) if total_reviews else 0,
            },
        }

    @staticmethod
    async def overview(user: User) -> Dict[str, Any]:
        company_id = user.company_id
        if PermissionService.is_admin_or_hr(user):
            total_goals = await Goal.find(Goal.company_id == company_id).count()
            completed_goals = await Goal.find(Goal.company_id == company_id, Goal.status == "completed").count()
            return {
                "total_employees": await Employee.find(Employee.company_id == company_id).count(),
                "active_employees": await Employee.find(
                    Employee.company_id == company_id, Employee.status == "active"
                ).count(),
                "total_departments": await Department.find(
                    Department.company_id == company_id, Department.status == "active"
                ).count(),
                "total_goals": total_goals,
                "completed_goals": completed_goals,
                "goals_completion_rate": _rate(completed_goals, total_goals),
                "pending_leaves": await LeaveRequest.find(
                    LeaveRequest.company_id == company_id, LeaveRequest.status == "pending"
                ).count(),
                "active_jobs": await JobPosting.find(
                    JobPosting.company_id == company_id, JobPosting.status == "published"
                ).count(),
                "total_candidates": await Candidate.find(Candidate.company_id == company_id).count(),
            }

        employee = await Employee.find_one(Employee.user_id == user.id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee record not found")
        my_goals = await Goal.find(Goal.user_id == user.id).count()
        completed = await Goal.find(Goal.user_id == user.id, Goal.status == "completed").count()
        return {
            "my_goals": my_goals,
            "completed_goals": completed,
            "goals_completion_rate": _rate(completed, my_goals),
            "my_leaves": await LeaveRequest.find(LeaveRequest.user_id == user.id).count(),
            "pending_leaves": await LeaveRequest.find(
                LeaveRequest.user_id == user.id, LeaveRequest.status == "pending"
            ).count(),
        }
