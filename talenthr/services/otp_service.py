import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException

from talenthr.core.security import generate_otp_code, get_password_hash, verify_password
from talenthr.models.users import OtpCode

logger = logging.getLogger(__name__)

OTP_TTL = timedelta(minutes=10)
# how long a verified code keeps unlocking signup
VERIFIED_WINDOW = timedelta(minutes=30)
MAX_ATTEMPTS = 5


async def issue_otp(email: str, purpose: str) -> Tuple[OtpCode, str]:
    """Replace any unverified code for (email, purpose) with a fresh one"""
    email = email.lower()
    await OtpCode.find(
        OtpCode.email == email,
        OtpCode.purpose == purpose,
        OtpCode.verified == False,  # noqa: E712
    ).delete()

    code = generate_otp_code()
    otp = OtpCode(
        email=email,
        code_hash=get_password_hash(code),
        type="password_reset" if purpose == "password_reset" else "signup",
        purpose=purpose,
        expires_at=datetime.utcnow() + OTP_TTL,
        max_attempts=MAX_ATTEMPTS,
    )
    await otp.insert()
    return otp, code


async def verify_otp(email: str, code: str, purpose: str) -> OtpCode:
    email = email.lower()
    otp = await OtpCode.find(
        OtpCode.email == email,
        OtpCode.purpose == purpose,
        OtpCode.verified == False,  # noqa: E712
    ).sort(-OtpCode.created_at).first_or_none()
    if not otp:
        raise HTTPException(status_code=400, detail="OTP not found or already used")
    if otp.is_expired():
        raise HTTPException(status_code=400, detail="OTP has expired. Please request a new one.")
    if otp.attempts >= otp.max_attempts:
        raise HTTPException(
            status_code=429,
            detail="Maximum verification attempts exceeded. Please request a new OTP.",
        )
    if not verify_password(code, otp.code_hash):
        otp.attempts += 1
        await otp.save()
        remaining = otp.max_attempts - otp.attempts
        raise HTTPException(status_code=400, detail=f"Invalid OTP code. {remaining} attempts remaining")

    now = datetime.utcnow()
    otp.verified = True
    otp.verified_at = now
    # keep the record around for the signup window
    otp.expires_at = now + VERIFIED_WINDOW
    await otp.save()
    return otp


async def latest_verification(email: str, purpose: str) -> Optional[OtpCode]:
    return await OtpCode.find(
        OtpCode.email == email.lower(),
        OtpCode.purpose == purpose,
        OtpCode.verified == True,  # noqa: E712
    ).sort(-OtpCode.created_at).first_or_none()


def within_signup_window(otp: OtpCode) -> bool:
    verified_at = otp.verified_at or otp.created_at
    return datetime.utcnow() - verified_at <= VERIFIED_WINDOW
