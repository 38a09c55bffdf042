from fastapi import APIRouter, Depends, HTTPException

from talenthr.core.errors import get_or_404
from talenthr.models.company import Company
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.users import CompanySettingsUpdate
from talenthr.services import company_service
from talenthr.services.permission import ensure_role
from talenthr.utils.serialize import document_to_dict

router = APIRouter(prefix="/settings", tags=["settings"])

PREFERENCE_FIELDS = ("timezone", "currency", "date_format")


async def _company_for_admin(user: User) -> Company:
    ensure_role(user, ("company_admin",), "Only company admins can manage company settings")
    return await get_or_404(Company, user.company_id, "Company not found")


@router.get("")
async def get_settings(current_user: User = Depends(get_current_user)):
    company = await _company_for_admin(current_user)
    return {"success": True, "company": document_to_dict(company)}


@router.put("")
async def update_settings(payload: CompanySettingsUpdate, current_user: User = Depends(get_current_user)):
    company = await _company_for_admin(current_user)
    updates = payload.model_dump(exclude_unset=True)

    new_name = updates.pop("name", None)
    if new_name and new_name.strip().lower() != company.name.lower():
        if await company_service.company_name_taken(new_name):
            raise HTTPException(status_code=409, detail="A company with this name already exists")
        company.name = new_name.strip()

    for field in PREFERENCE_FIELDS:
        value = updates.pop(field, None)
        if value is not None:
            setattr(company.preferences, field, value)
    for field, value in updates.items():
        setattr(company, field, value)

    await company.save()
    return {"success": True, "message": "Settings updated successfully", "company": document_to_dict(company)}
