from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from talenthr.core.errors import ensure_same_company, get_or_404
from talenthr.models.employee import Department, Employee
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.employee import DepartmentCreate, DepartmentUpdate
from talenthr.services import employee_service
from talenthr.services.permission import ADMIN_ROLES, ensure_role
from talenthr.utils.serialize import document_to_dict, field_updates

router = APIRouter(prefix="/departments", tags=["departments"])


async def _name_taken(company_id, name: str, exclude_id=None) -> bool:
    query = {"company_id": company_id, "name": name}
    if exclude_id:
        query["_id"] = {"$ne": exclude_id}
    return await Department.find_one(query) is not None


async def _validate_parent(company_id, parent_id) -> None:
    if parent_id is None:
        return
    parent = await Department.get(parent_id)
    if not parent or parent.company_id != company_id:
        raise HTTPException(status_code=400, detail="Invalid parent department")


async def _department_out(dept: Department) -> dict:
    data = document_to_dict(dept)
    data["employee_count"] = await Employee.find(
        Employee.department_id == dept.id, Employee.status == "active"
    ).count()
    return data


@router.get("")
async def list_departments(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    query = {"company_id": current_user.company_id}
    if status:
        query["status"] = status
    departments = await Department.find(query).sort(+Department.name).to_list()
    return {
        "success": True,
        "count": len(departments),
        "departments": [await _department_out(d) for d in departments],
    }


@router.post("", status_code=201)
async def create_department(payload: DepartmentCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    company_id = current_user.company_id
    if await _name_taken(company_id, payload.name):
        raise HTTPException(status_code=409, detail="Department with this name already exists")
    await _validate_parent(company_id, payload.parent_department_id)
    await employee_service.validate_manager(company_id, payload.manager_id)

    dept = Department(company_id=company_id, **payload.model_dump())
    await dept.insert()
    return {"success": True, "message": "Department created successfully", "department": await _department_out(dept)}


@router.get("/{department_id}")
async def get_department(department_id: str, current_user: User = Depends(get_current_user)):
    dept = await get_or_404(Department, department_id, "Department not found")
    ensure_same_company(dept, current_user)
    return {"success": True, "department": await _department_out(dept)}


@router.put("/{department_id}")
async def update_department(
    department_id: str, payload: DepartmentUpdate, current_user: User = Depends(get_current_user)
):
    ensure_role(current_user, ADMIN_ROLES)
    dept = await get_or_404(Department, department_id, "Department not found")
    ensure_same_company(dept, current_user)

    updates = field_updates(payload, dept)
    if updates.get("name") and updates["name"] != dept.name:
        if await _name_taken(dept.company_id, updates["name"], exclude_id=dept.id):
            raise HTTPException(status_code=409, detail="Department with this name already exists")
    if "parent_department_id" in updates:
        if updates["parent_department_id"] == dept.id:
            raise HTTPException(status_code=400, detail="Department cannot be its own parent")
        await _validate_parent(dept.company_id, updates["parent_department_id"])
    if "manager_id" in updates:
        await employee_service.validate_manager(dept.company_id, updates["manager_id"])

    for field, value in updates.items():
        setattr(dept, field, value)
    await dept.save()
    return {"success": True, "message": "Department updated successfully", "department": await _department_out(dept)}


@router.delete("/{department_id}")
async def delete_department(department_id: str, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    dept = await get_or_404(Department, department_id, "Department not found")
    ensure_same_company(dept, current_user)

    active_employees = await Employee.find(Employee.department_id == dept.id, Employee.status == "active").count()
    if active_employees:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete department with {active_employees} active employees",
        )
    children = await Department.find(
        Department.parent_department_id == dept.id, Department.status == "active"
    ).count()
    if children:
        raise HTTPException(status_code=400, detail="Cannot delete department with active sub-departments")

    dept.status = "inactive"
    await dept.save()
    return {"success": True, "message": "Department deactivated successfully"}
