import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from beanie import PydanticObjectId
from beanie.operators import In
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from talenthr.core.database import rollback_inserted, transaction
from talenthr.models.company import Company
from talenthr.models.employee import Department, Employee, EmployeeIdCounter
from talenthr.models.users import User

logger = logging.getLogger(__name__)


def employee_id_prefix(company: Company) -> str:
    return f"{company.slug.upper()}-EMP"


def format_employee_id(company: Company, seq: int) -> str:
    return f"{employee_id_prefix(company)}{seq:03d}"


async def _highest_existing_number(company: Company) -> int:
    prefix = employee_id_prefix(company)
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    employees = await Employee.find(
        Employee.company_id == company.id,
        {"employee_id": {"$regex": f"^{re.escape(prefix)}"}},
    ).to_list()
    nums = []
    for e in employees:
        m = pattern.match(e.employee_id or "")
        if m:
            nums.append(int(m.group(1)))
    return max(nums) if nums else 0


async def generate_employee_id(company: Company, session: Optional[AsyncIOMotorClientSession] = None) -> str:
    """
    Next `{SLUG}-EMP{nnn}` id for the company.

    The sequence lives in a counter document advanced with $inc, so two
    concurrent calls never get the same number. A missing counter is seeded
    from the highest id already in use.
    """
    coll = EmployeeIdCounter.get_motor_collection()
    query = {"company_id": company.id}
    update = {"$inc": {"seq": 1}}
    doc = await coll.find_one_and_update(query, update, return_document=ReturnDocument.AFTER, session=session)
    if doc is None:
        start = await _highest_existing_number(company)
        try:
            await coll.insert_one({"company_id": company.id, "seq": start}, session=session)
        except DuplicateKeyError:
            # another request seeded it first
            pass
        doc = await coll.find_one_and_update(query, update, return_document=ReturnDocument.AFTER, session=session)
    return format_employee_id(company, doc["seq"])


async def validate_department(company_id: PydanticObjectId, department_id: Optional[PydanticObjectId]) -> None:
    if department_id is None:
        return
    dept = await Department.get(department_id)
    if not dept or dept.company_id != company_id:
        raise HTTPException(status_code=400, detail="Invalid department")


async def validate_manager(company_id: PydanticObjectId, manager_id: Optional[PydanticObjectId]) -> None:
    if manager_id is None:
        return
    manager = await User.get(manager_id)
    if not manager or manager.company_id != company_id:
        raise HTTPException(status_code=400, detail="Invalid manager")


async def create_employee_record(
    company: Company,
    user: User,
    fields: Dict[str, Any],
    session: Optional[AsyncIOMotorClientSession] = None,
) -> Employee:
    employee = Employee(
        user_id=user.id,
        company_id=company.id,
        employee_id=await generate_employee_id(company, session=session),
        **fields,
    )
    await employee.insert(session=session)
    return employee


async def create_user_and_employee(company: Company, user: User, fields: Dict[str, Any]) -> Tuple[User, Employee]:
    """Insert the login user and the employee record as one unit"""
    inserted = []
    async with transaction() as session:
        try:
            await user.insert(session=session)
            inserted.append(user)
            employee = await create_employee_record(company, user, fields, session=session)
        except Exception:
            if session is None:
                await rollback_inserted(inserted)
            raise
    logger.info("Created employee %s for user %s", employee.employee_id, user.email)
    return user, employee


def serialize_employee(
    employee: Employee, user: Optional[User] = None, department: Optional[Department] = None
) -> Dict[str, Any]:
    data = employee.model_dump(exclude={"id", "revision_id"})
    data["id"] = str(employee.id)
    for key in ("user_id", "company_id", "department_id", "manager_id"):
        data[key] = str(data[key]) if data.get(key) else None
    data["name"] = user.name if user else None
    data["email"] = user.email if user else None
    data["role"] = user.role if user else None
    data["department"] = {"id": str(department.id), "name": department.name} if department else None
    return data


async def serialize_employees(employees: List[Employee]) -> List[Dict[str, Any]]:
    user_ids = [e.user_id for e in employees]
    dept_ids = list({e.department_id for e in employees if e.department_id})
    users = {u.id: u for u in await User.find(In(User.id, user_ids)).to_list()} if user_ids else {}
    depts = {d.id: d for d in await Department.find(In(Department.id, dept_ids)).to_list()} if dept_ids else {}
    return [serialize_employee(e, users.get(e.user_id), depts.get(e.department_id)) for e in employees]


async def employee_for_user(user: User) -> Optional[Employee]:
    return await Employee.find_one(Employee.user_id == user.id)


async def require_employee_for_user(user: User) -> Employee:
    employee = await employee_for_user(user)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee record not found")
    return employee


async def employees_by_ids(ids) -> Dict[PydanticObjectId, Employee]:
    """Employee documents keyed by id, for joining onto other rows"""
    ids = list({i for i in ids if i})
    if not ids:
        return {}
    return {e.id: e for e in await Employee.find(In(Employee.id, ids)).to_list()}


async def users_by_ids(ids) -> Dict[PydanticObjectId, User]:
    ids = list({i for i in ids if i})
    if not ids:
        return {}
    return {u.id: u for u in await User.find(In(User.id, ids)).to_list()}
