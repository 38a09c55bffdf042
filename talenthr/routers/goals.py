from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.core.timezone_utils import to_naive_utc
from talenthr.models.employee import Employee
from talenthr.models.performance import Goal
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.performance import GoalCreate, GoalUpdate
from talenthr.services import employee_service
from talenthr.services.permission import PermissionService
from talenthr.utils.serialize import document_to_dict, field_updates

router = APIRouter(prefix="/goals", tags=["goals"])


def clamp_progress(value: float) -> int:
    return int(round(min(max(value, 0), 100)))


def auto_status(status: str, progress: int) -> str:
    """Status implied by progress: 100 completes, any progress starts"""
    if progress >= 100:
        return "completed"
    if progress > 0 and status == "not-started":
        return "in-progress"
    return status


def _can_modify(user: User, goal: Goal) -> bool:
    if goal.company_id != user.company_id:
        return False
    return (
        goal.user_id == user.id
        or goal.assigned_by == user.id
        or PermissionService.is_manager_or_above(user)
    )


def _goal_out(goal: Goal, users=None) -> dict:
    data = document_to_dict(goal)
    owner = (users or {}).get(goal.user_id)
    data["owner_name"] = owner.name if owner else None
    return data


@router.get("")
async def list_goals(
    status: Optional[str] = Query(None),
    employee_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    query = await PermissionService.scope_query(current_user)
    if status:
        query["status"] = status
    if employee_id:
        query["employee_id"] = require_object_id(employee_id, "employee_id")

    goals = await Goal.find(query).sort(-Goal.created_at).to_list()
    users = await employee_service.users_by_ids(g.user_id for g in goals)
    return {"success": True, "count": len(goals), "goals": [_goal_out(g, users) for g in goals]}


@router.post("", status_code=201)
async def create_goal(payload: GoalCreate, current_user: User = Depends(get_current_user)):
    target_user_id = payload.assign_to or current_user.id
    if target_user_id != current_user.id:
        if not PermissionService.is_manager_or_above(current_user):
            raise HTTPException(status_code=403, detail="You don't have permission to assign goals to others")

    employee = await Employee.find_one(Employee.user_id == target_user_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee record not found")
    ensure_same_company(employee, current_user, "You can only assign goals within your company")
    if current_user.role == "manager" and target_user_id != current_user.id:
        if not PermissionService.manages(current_user, employee):
            raise HTTPException(status_code=403, detail="You can only assign goals to your team members")

    fields = payload.model_dump(exclude={"assign_to"})
    if payload.target_date:
        fields["target_date"] = to_naive_utc(payload.target_date)
    goal = Goal(
        user_id=target_user_id,
        employee_id=employee.id,
        company_id=employee.company_id,
        assigned_by=current_user.id,
        **fields,
    )
    await goal.insert()
    return {"success": True, "message": "Goal created successfully", "goal": _goal_out(goal)}


@router.put("/{goal_id}")
async def update_goal(goal_id: str, payload: GoalUpdate, current_user: User = Depends(get_current_user)):
    goal = await get_or_404(Goal, goal_id, "Goal not found")
    if not _can_modify(current_user, goal):
        raise HTTPException(status_code=403, detail="You don't have permission to modify this goal")

    if payload.action == "update-progress":
        if payload.progress is None:
            raise HTTPException(status_code=400, detail="Progress is required")
        goal.progress = clamp_progress(payload.progress)
        goal.status = auto_status(goal.status, goal.progress)
        message = "Goal progress updated successfully"
    else:
        updates = field_updates(payload, goal, exclude={"action", "progress"})
        for field, value in updates.items():
            if field == "target_date" and value is not None:
                value = to_naive_utc(value)
            setattr(goal, field, value)
        if payload.progress is not None:
            goal.progress = clamp_progress(payload.progress)
            goal.status = auto_status(goal.status, goal.progress)
        message = "Goal updated successfully"

    await goal.save()
    return {"success": True, "message": message, "goal": _goal_out(goal)}


@router.delete("/{goal_id}")
async def delete_goal(goal_id: str, current_user: User = Depends(get_current_user)):
    goal = await get_or_404(Goal, goal_id, "Goal not found")
    if not _can_modify(current_user, goal):
        raise HTTPException(status_code=403, detail="You don't have permission to delete this goal")
    await goal.delete()
    return {"success": True, "message": "Goal deleted successfully"}
