from typing import Iterable, List, Optional

from beanie import PydanticObjectId
from fastapi import HTTPException

from talenthr.models.employee import Employee
from talenthr.models.users import User

ADMIN_ROLES = ("company_admin", "hr_manager")
MANAGER_ROLES = ADMIN_ROLES + ("manager",)
RECRUITING_ROLES = ADMIN_ROLES + ("recruiter",)


def ensure_role(user: User, roles: Iterable[str], detail: str = "You don't have permission to perform this action") -> None:
    if user.role not in roles:
        raise HTTPException(status_code=403, detail=detail)


class PermissionService:
    @staticmethod
    def is_admin_or_hr(user: User) -> bool:
        return user.role in ADMIN_ROLES

    @staticmethod
    def is_manager_or_above(user: User) -> bool:
        return user.role in MANAGER_ROLES

    @staticmethod
    async def team_user_ids(manager: User) -> List[PydanticObjectId]:
        """User ids of everyone reporting directly to the manager"""
        team = await Employee.find(
            Employee.manager_id == manager.id,
            Employee.company_id == manager.company_id,
        ).to_list()
        return [e.user_id for e in team]

    @staticmethod
    async def team_employee_ids(manager: User) -> List[PydanticObjectId]:
        team = await Employee.find(
            Employee.manager_id == manager.id,
            Employee.company_id == manager.company_id,
        ).to_list()
        return [e.id for e in team]

    @staticmethod
    async def visible_user_ids(user: User) -> Optional[List[PydanticObjectId]]:
        """
        User ids the caller may see.

        employee -> self, manager -> team and self, admin/HR -> None, meaning
        the whole company (callers filter on company_id instead).
        """
        if PermissionService.is_admin_or_hr(user):
            return None
        if user.role == "manager":
            return await PermissionService.team_user_ids(user) + [user.id]
        return [user.id]

    @staticmethod
    async def scope_query(user: User, field: str = "user_id") -> dict:
        """Mongo filter restricting a company collection to the caller's scope"""
        query = {"company_id": user.company_id}
        ids = await PermissionService.visible_user_ids(user)
        if ids is not None:
            query[field] = {"$in": ids}
        return query

    @staticmethod
    def manages(manager: User, employee: Employee) -> bool:
        return employee.manager_id == manager.id and employee.company_id == manager.company_id
