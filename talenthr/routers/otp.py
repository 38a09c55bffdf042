import logging

from fastapi import APIRouter, HTTPException

from talenthr.core.config import settings
from talenthr.core.email import send_otp_email
from talenthr.schemas.users import OtpSendRequest, OtpVerifyRequest
from talenthr.services import otp_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/otp", tags=["otp"])


@router.post("/send")
async def send_otp(payload: OtpSendRequest):
    otp, code = await otp_service.issue_otp(payload.email, payload.purpose)
    sent = await send_otp_email(otp.email, code, payload.purpose)
    if not sent and not settings.EXPOSE_OTP:
        await otp.delete()
        raise HTTPException(status_code=500, detail="Failed to send OTP email. Please try again.")

    expires_in = int(otp_service.OTP_TTL.total_seconds())
    response = {"success": True, "message": "OTP sent successfully", "expires_in": expires_in}
    if settings.EXPOSE_OTP:
        # development only
        response["otp"] = code
        logger.info("OTP for %s (%s): %s", otp.email, payload.purpose, code)
    return response


@router.post("/verify")
async def verify_otp(payload: OtpVerifyRequest):
    await otp_service.verify_otp(payload.email, payload.otp, payload.purpose)
    return {"success": True, "message": "OTP verified successfully", "verified": True}
