from fastapi import APIRouter, Depends, HTTPException

from talenthr.core.errors import parse_object_id
from talenthr.core.security import get_password_hash, verify_password
from talenthr.models.company import Company
from talenthr.models.employee import Department
from talenthr.models.marketplace import UserProfile
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user, serialize_user
from talenthr.schemas.users import PasswordChange, ProfileUpdate
from talenthr.services import employee_service
from talenthr.utils.serialize import document_to_dict

router = APIRouter(prefix="/profile", tags=["profile"])

EMPLOYEE_PROFILE_FIELDS = ("phone", "address", "emergency_contact")


async def _profile(user: User) -> dict:
    company = await Company.get(user.company_id) if user.company_id else None
    data = serialize_user(user, company)
    employee = await employee_service.employee_for_user(user)
    if employee:
        dept = await Department.get(employee.department_id) if employee.department_id else None
        data["employee"] = employee_service.serialize_employee(employee, user, dept)
    else:
        data["employee"] = None
    return data


@router.get("")
async def get_profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "profile": await _profile(current_user)}


@router.put("")
async def update_profile(payload: ProfileUpdate, current_user: User = Depends(get_current_user)):
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("name"):
        current_user.name = payload.name.strip()
        await current_user.save()

    employee_updates = [f for f in EMPLOYEE_PROFILE_FIELDS if f in updates]
    if employee_updates:
        employee = await employee_service.require_employee_for_user(current_user)
        for field in employee_updates:
            setattr(employee, field, getattr(payload, field))
        await employee.save()

    return {"success": True, "message": "Profile updated successfully", "profile": await _profile(current_user)}


@router.put("/password")
async def change_password(payload: PasswordChange, current_user: User = Depends(get_current_user)):
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    current_user.hashed_password = get_password_hash(payload.new_password)
    await current_user.save()
    return {"success": True, "message": "Password changed successfully"}


@router.get("/{user_id}")
async def get_public_profile(user_id: str):
    """Marketplace profile of any user, readable without logging in"""
    oid = parse_object_id(user_id)
    profile = await UserProfile.find_one(UserProfile.user_id == oid) if oid else None
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"success": True, "profile": document_to_dict(profile, exclude={"phone"})}
