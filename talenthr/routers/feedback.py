import logging
from typing import Optional

from fastapi import APIRouter, Depends

from talenthr.models.marketplace import Feedback
from talenthr.models.users import User
from talenthr.routers.auth import get_optional_user
from talenthr.schemas.marketplace import FeedbackCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", status_code=201)
async def submit_feedback(payload: FeedbackCreate, current_user: Optional[User] = Depends(get_optional_user)):
    fields = payload.model_dump(exclude_none=True)
    if current_user:
        fields["user_id"] = current_user.id
        fields.setdefault("name", current_user.name)
        fields.setdefault("email", current_user.email)
    feedback = Feedback(**fields)
    await feedback.insert()
    logger.info("Feedback %s (%s) received", feedback.id, feedback.type)
    return {"success": True, "message": "Thank you for your feedback!", "feedback_id": str(feedback.id)}
