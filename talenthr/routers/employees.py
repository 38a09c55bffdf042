import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from talenthr.core.errors import ensure_same_company, get_or_404, require_object_id
from talenthr.core.security import get_password_hash
from talenthr.models.company import Company
from talenthr.models.employee import Department, Employee
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.employee import EmployeeCreate, EmployeeUpdate
from talenthr.services import employee_service
from talenthr.services.permission import ADMIN_ROLES, MANAGER_ROLES, PermissionService, ensure_role
from talenthr.utils.serialize import field_updates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])

# fields that describe the login user rather than the employee record
USER_FIELDS = {"user_id", "email", "name", "password", "role"}


async def _search_user_ids(company_id, search: str):
    pattern = {"$regex": re.escape(search), "$options": "i"}
    users = await User.find({"company_id": company_id, "$or": [{"name": pattern}, {"email": pattern}]}).to_list()
    return [u.id for u in users]


@router.get("")
async def list_employees(
    department_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    ensure_role(current_user, MANAGER_ROLES)
    query = await PermissionService.scope_query(current_user)
    if current_user.role == "manager":
        # the team only, not the manager's own record
        query["user_id"] = {"$in": await PermissionService.team_user_ids(current_user)}

    if department_id:
        query["department_id"] = require_object_id(department_id, "department_id")
    if status:
        query["status"] = status
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [
            {"employee_id": pattern},
            {"position": pattern},
            {"user_id": {"$in": await _search_user_ids(current_user.company_id, search)}},
        ]

    employees = await Employee.find(query).sort(-Employee.created_at).to_list()
    return {"success": True, "count": len(employees), "employees": await employee_service.serialize_employees(employees)}


@router.post("", status_code=201)
async def create_employee(payload: EmployeeCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    company = await get_or_404(Company, current_user.company_id, "Company not found")

    await employee_service.validate_department(company.id, payload.department_id)
    await employee_service.validate_manager(company.id, payload.manager_id)
    fields = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if k not in USER_FIELDS and v is not None}

    if payload.user_id:
        user = await get_or_404(User, payload.user_id, "User not found")
        ensure_same_company(user, current_user, "User does not belong to your company")
        if await Employee.find_one(Employee.user_id == user.id):
            raise HTTPException(status_code=409, detail="Employee record already exists for this user")
        employee = await employee_service.create_employee_record(company, user, fields)
    else:
        email = payload.email.lower()
        if await User.find_one(User.email == email):
            raise HTTPException(status_code=409, detail="User with this email already exists")
        if current_user.role == "hr_manager" and payload.role in ADMIN_ROLES:
            raise HTTPException(status_code=403, detail="HR Managers cannot assign admin or HR roles")
        user = User(
            email=email,
            hashed_password=get_password_hash(payload.password),
            name=payload.name,
            role=payload.role,
            company_id=company.id,
        )
        user, employee = await employee_service.create_user_and_employee(company, user, fields)

    dept = await Department.get(employee.department_id) if employee.department_id else None
    return {
        "success": True,
        "message": "Employee created successfully",
        "employee": employee_service.serialize_employee(employee, user, dept),
    }


@router.get("/{employee_id}")
async def get_employee(employee_id: str, current_user: User = Depends(get_current_user)):
    employee = await get_or_404(Employee, employee_id, "Employee not found")
    ensure_same_company(employee, current_user)

    own = employee.user_id == current_user.id
    allowed = (
        own
        or PermissionService.is_admin_or_hr(current_user)
        or (current_user.role == "manager" and PermissionService.manages(current_user, employee))
    )
    if not allowed:
        raise HTTPException(status_code=403, detail="You don't have permission to view this employee")

    user = await User.get(employee.user_id)
    dept = await Department.get(employee.department_id) if employee.department_id else None
    return {"success": True, "employee": employee_service.serialize_employee(employee, user, dept)}


@router.put("/{employee_id}")
async def update_employee(employee_id: str, payload: EmployeeUpdate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    employee = await get_or_404(Employee, employee_id, "Employee not found")
    ensure_same_company(employee, current_user)

    updates = field_updates(payload, employee)
    if "department_id" in updates:
        await employee_service.validate_department(employee.company_id, updates["department_id"])
    if "manager_id" in updates:
        if updates["manager_id"] == employee.user_id:
            raise HTTPException(status_code=400, detail="Employee cannot be their own manager")
        await employee_service.validate_manager(employee.company_id, updates["manager_id"])

    for field, value in updates.items():
        setattr(employee, field, value)
    await employee.save()

    user = await User.get(employee.user_id)
    dept = await Department.get(employee.department_id) if employee.department_id else None
    return {
        "success": True,
        "message": "Employee updated successfully",
        "employee": employee_service.serialize_employee(employee, user, dept),
    }


@router.delete("/{employee_id}")
async def delete_employee(employee_id: str, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    employee = await get_or_404(Employee, employee_id, "Employee not found")
    ensure_same_company(employee, current_user)

    employee.status = "terminated"
    await employee.save()
    logger.info("Employee %s terminated by %s", employee.employee_id, current_user.email)
    return {"success": True, "message": "Employee terminated successfully"}
