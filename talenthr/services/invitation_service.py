import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException

from talenthr.core.config import settings
from talenthr.core.email import send_invitation_email
from talenthr.core.security import generate_invitation_token, hash_token
from talenthr.models.company import Company
from talenthr.models.invitation import Invitation
from talenthr.models.users import User

logger = logging.getLogger(__name__)

INVITATION_TTL = timedelta(days=7)
INVITABLE_ROLES = ("hr_manager", "recruiter", "manager", "employee")


async def mark_expired(invitation: Invitation) -> Invitation:
    if invitation.status == "pending" and invitation.is_expired():
        invitation.status = "expired"
        await invitation.save()
        logger.info("Invitation %s for %s expired", invitation.id, invitation.email)
    return invitation


async def expire_stale(invitations: List[Invitation]) -> List[Invitation]:
    return [await mark_expired(i) for i in invitations]


def invite_url(raw_token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/signup?token={raw_token}"


async def create_invitation(inviter: User, company: Company, email: str, role: str) -> Tuple[Invitation, str]:
    """
    Create and email an invitation.

    Returns the stored invitation and the raw token. The token exists only
    in this return value and in the email; the record keeps its hash.
    """
    email = email.lower().strip()
    if role not in INVITABLE_ROLES:
        raise HTTPException(
            status_code=400,
            detail="Invalid role. Must be hr_manager, recruiter, manager, or employee",
        )
    if inviter.role == "hr_manager" and role == "hr_manager":
        raise HTTPException(status_code=403, detail="HR Managers cannot invite other HR Managers")

    existing_user = await User.find_one(User.email == email, User.company_id == company.id)
    if existing_user:
        raise HTTPException(status_code=409, detail="User with this email already exists in your company")

    pending = await Invitation.find_one(
        Invitation.company_id == company.id,
        Invitation.email == email,
        Invitation.status == "pending",
    )
    if pending:
        await mark_expired(pending)
        if pending.status == "pending":
            raise HTTPException(status_code=409, detail="A pending invitation already exists for this email")

    raw_token, token_hash = generate_invitation_token()
    invitation = Invitation(
        company_id=company.id,
        email=email,
        role=role,
        invited_by=inviter.id,
        token_hash=token_hash,
        expires_at=datetime.utcnow() + INVITATION_TTL,
    )
    await invitation.insert()

    sent = await send_invitation_email(email, company.name, inviter.name, role, invite_url(raw_token))
    if not sent:
        logger.warning("Invitation %s created but email to %s was not sent", invitation.id, email)
    return invitation, raw_token


async def find_by_token(raw_token: str) -> Optional[Invitation]:
    return await Invitation.find_one(Invitation.token_hash == hash_token(raw_token))


async def validate_token(raw_token: Optional[str]) -> Invitation:
    """Return the pending invitation for the token or raise 400"""
    if not raw_token:
        raise HTTPException(status_code=400, detail="Invitation token is required")
    invitation = await find_by_token(raw_token)
    if not invitation:
        raise HTTPException(status_code=400, detail="Invalid invitation token")
    if invitation.status == "accepted":
        raise HTTPException(status_code=400, detail="This invitation has already been accepted")
    if invitation.status == "cancelled":
        raise HTTPException(status_code=400, detail="This invitation has been cancelled")
    await mark_expired(invitation)
    if invitation.status == "expired":
        raise HTTPException(status_code=400, detail="This invitation has expired")
    return invitation


def serialize_invitation(invitation: Invitation, inviter: Optional[User] = None) -> Dict[str, Any]:
    # never include token_hash
    return {
        "id": str(invitation.id),
        "email": invitation.email,
        "role": invitation.role,
        "status": invitation.status,
        "invited_by": {
            "id": str(inviter.id),
            "name": inviter.name,
            "email": inviter.email,
        } if inviter else str(invitation.invited_by),
        "expires_at": invitation.expires_at,
        "accepted_at": invitation.accepted_at,
        "created_at": invitation.created_at,
    }
