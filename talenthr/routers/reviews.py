from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from talenthr.core.errors import ensure_same_company, get_or_404
from talenthr.models.employee import Employee
from talenthr.models.performance import PerformanceReview
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.performance import ReviewCreate, ReviewUpdate
from talenthr.services import employee_service
from talenthr.services.permission import MANAGER_ROLES, PermissionService, ensure_role
from talenthr.utils.serialize import document_to_dict, field_updates

router = APIRouter(prefix="/reviews", tags=["reviews"])


async def _reviews_query(user: User) -> dict:
    query = {"company_id": user.company_id}
    if PermissionService.is_admin_or_hr(user):
        return query
    if user.role == "manager":
        team = await PermissionService.team_employee_ids(user)
        query["$or"] = [{"employee_id": {"$in": team}}, {"reviewer_id": user.id}]
        return query
    employee = await employee_service.require_employee_for_user(user)
    query["employee_id"] = employee.id
    return query


def _review_out(review: PerformanceReview, employees=None, users=None) -> dict:
    data = document_to_dict(review)
    employee = (employees or {}).get(review.employee_id)
    reviewed_user = (users or {}).get(employee.user_id) if employee else None
    reviewer = (users or {}).get(review.reviewer_id)
    data["employee_name"] = reviewed_user.name if reviewed_user else None
    data["reviewer_name"] = reviewer.name if reviewer else None
    return data


@router.get("")
async def list_reviews(current_user: User = Depends(get_current_user)):
    reviews = await PerformanceReview.find(await _reviews_query(current_user)).sort(
        -PerformanceReview.created_at
    ).to_list()
    employees = await employee_service.employees_by_ids(r.employee_id for r in reviews)
    user_ids = [e.user_id for e in employees.values()] + [r.reviewer_id for r in reviews]
    users = await employee_service.users_by_ids(user_ids)
    return {
        "success": True,
        "count": len(reviews),
        "reviews": [_review_out(r, employees, users) for r in reviews],
    }


@router.post("", status_code=201)
async def create_review(payload: ReviewCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, MANAGER_ROLES, "You don't have permission to create performance reviews")
    employee = await get_or_404(Employee, payload.employee_id, "Employee not found")
    ensure_same_company(employee, current_user, "Employee does not belong to your company")
    if current_user.role == "manager" and not PermissionService.manages(current_user, employee):
        raise HTTPException(status_code=403, detail="You can only review your team members")

    review = PerformanceReview(
        company_id=employee.company_id,
        reviewer_id=current_user.id,
        **payload.model_dump(),
    )
    await review.insert()
    return {"success": True, "message": "Performance review created successfully", "review": _review_out(review)}


@router.put("/{review_id}")
async def update_review(review_id: str, payload: ReviewUpdate, current_user: User = Depends(get_current_user)):
    review = await get_or_404(PerformanceReview, review_id, "Review not found")
    if review.reviewer_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the reviewer can modify this review")

    if payload.action == "submit":
        if review.status != "draft":
            raise HTTPException(status_code=400, detail="Review has already been submitted")
        review.status = "submitted"
        review.submitted_at = datetime.utcnow()
        message = "Review submitted successfully"
    else:
        for field, value in field_updates(payload, review, exclude={"action"}).items():
            setattr(review, field, value)
        message = "Review updated successfully"

    await review.save()
    return {"success": True, "message": message, "review": _review_out(review)}
