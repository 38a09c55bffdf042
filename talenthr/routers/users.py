import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from talenthr.core.errors import ensure_same_company, get_or_404
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.users import UserUpdate
from talenthr.services.permission import ADMIN_ROLES, PermissionService, ensure_role
from talenthr.utils.serialize import document_to_dict


def user_out(user: User) -> dict:
    return document_to_dict(user, exclude={"hashed_password"})


class UsersRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/users", tags=["users"])
        self.setup_routes()

    def setup_routes(self):
        self.router.add_api_route("", self.get_users, methods=["GET"])
        self.router.add_api_route("/{user_id}", self.get_user, methods=["GET"])
        self.router.add_api_route("/{user_id}", self.update_user, methods=["PUT"])
        self.router.add_api_route("/{user_id}", self.delete_user, methods=["DELETE"])

    async def get_users(
        self,
        role: Optional[str] = Query(None),
        status_filter: Optional[str] = Query(None, alias="status"),
        search: Optional[str] = Query(None),
        current_user: User = Depends(get_current_user),
    ):
        ensure_role(current_user, ADMIN_ROLES)
        query = {"company_id": current_user.company_id}
        if role:
            query["role"] = role
        if status_filter:
            query["status"] = status_filter
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"email": pattern}]

        users = await User.find(query).sort(-User.created_at).to_list()
        return {"success": True, "count": len(users), "users": [user_out(u) for u in users]}

    async def get_user(self, user_id: str, current_user: User = Depends(get_current_user)):
        user = await get_or_404(User, user_id, "User not found")
        if user.id != current_user.id:
            ensure_same_company(user, current_user)
            ensure_role(current_user, ADMIN_ROLES)
        return {"success": True, "user": user_out(user)}

    async def update_user(self, user_id: str, payload: UserUpdate, current_user: User = Depends(get_current_user)):
        ensure_role(current_user, ADMIN_ROLES)
        user = await get_or_404(User, user_id, "User not found")
        ensure_same_company(user, current_user)

        if current_user.role == "hr_manager":
            if user.role in ADMIN_ROLES:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="HR Managers cannot modify admin or HR users",
                )
            if payload.role in ADMIN_ROLES:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="HR Managers cannot assign admin or HR roles",
                )

        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, field, value)
        await user.save()
        return {"success": True, "message": "User updated successfully", "user": user_out(user)}

    async def delete_user(self, user_id: str, current_user: User = Depends(get_current_user)):
        ensure_role(current_user, ADMIN_ROLES)
        user = await get_or_404(User, user_id, "User not found")
        ensure_same_company(user, current_user)
        if user.id == current_user.id:
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
        if current_user.role == "hr_manager" and PermissionService.is_admin_or_hr(user):
            raise HTTPException(status_code=403, detail="HR Managers cannot modify admin or HR users")

        user.status = "inactive"
        await user.save()
        return {"success": True, "message": "User deactivated successfully"}


users_router = UsersRouter().router
