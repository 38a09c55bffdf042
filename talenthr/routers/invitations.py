from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from talenthr.core.errors import ensure_same_company, get_or_404
from talenthr.models.company import Company
from talenthr.models.invitation import Invitation
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.users import InvitationCreate
from talenthr.services import employee_service, invitation_service
from talenthr.services.permission import ADMIN_ROLES, ensure_role

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("", status_code=201)
async def create_invitation(payload: InvitationCreate, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES, "Only company admins and HR managers can send invitations")
    company = await get_or_404(Company, current_user.company_id, "Company not found")

    invitation, raw_token = await invitation_service.create_invitation(
        current_user, company, payload.email, payload.role
    )
    data = invitation_service.serialize_invitation(invitation, current_user)
    # the only time the raw token leaves the server apart from the email
    data["token"] = raw_token
    data["invite_url"] = invitation_service.invite_url(raw_token)
    return {"success": True, "message": "Invitation sent successfully", "invitation": data}


@router.get("")
async def list_invitations(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    ensure_role(current_user, ADMIN_ROLES)
    invitations = await Invitation.find(
        Invitation.company_id == current_user.company_id
    ).sort(-Invitation.created_at).to_list()
    invitations = await invitation_service.expire_stale(invitations)
    if status:
        invitations = [i for i in invitations if i.status == status]

    inviters = await employee_service.users_by_ids(i.invited_by for i in invitations)
    return {
        "success": True,
        "count": len(invitations),
        "invitations": [invitation_service.serialize_invitation(i, inviters.get(i.invited_by)) for i in invitations],
    }


@router.get("/validate")
async def validate_invitation(token: Optional[str] = Query(None)):
    invitation = await invitation_service.validate_token(token)
    company = await Company.get(invitation.company_id)
    return {
        "success": True,
        "invitation": {
            "email": invitation.email,
            "role": invitation.role,
            "company_name": company.name if company else None,
            "expires_at": invitation.expires_at,
        },
    }


@router.delete("/{invitation_id}")
async def cancel_invitation(invitation_id: str, current_user: User = Depends(get_current_user)):
    ensure_role(current_user, ADMIN_ROLES)
    invitation = await get_or_404(Invitation, invitation_id, "Invitation not found")
    ensure_same_company(invitation, current_user)
    if invitation.status == "accepted":
        raise HTTPException(status_code=400, detail="Cannot cancel an accepted invitation")

    invitation.status = "cancelled"
    await invitation.save()
    return {"success": True, "message": "Invitation cancelled successfully"}
