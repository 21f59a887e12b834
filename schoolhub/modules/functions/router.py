import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from supabase import Client

from schoolhub.ai.grader import AIGradingError, grade_submission_with_ai
from schoolhub.db.supabase import get_supabase
from schoolhub.core.security import get_current_user
from schoolhub.core import policies
from schoolhub.schemas.grading import AIGradingRequest, AIGradingResponse, NotificationEmailRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Functions"])

EMAIL_ICONS = {"resource": "📚", "grade": "📝", "assignment": "📋"}


def load_gradable_submission(db: Client, user: dict, submission_id: str) -> dict:
    """Load the submission and check the caller wrote it or teaches its class."""
    result = (
        db.table("assignment_submissions")
        .select("*, assignments(class_id)")
        .eq("id", submission_id)
        .execute()
    )
    if not result.data:
        raise AIGradingError("Submission not found", status_code=404)
    submission = result.data[0]

    classes = db.table("classes").select("*").eq("id", submission["assignments"]["class_id"]).execute()
    class_row = classes.data[0] if classes.data else None
    if not (
        policies.can_update_submission(user, submission)
        or policies.can_grade_submission(user, class_row)
    ):
        raise AIGradingError("Access denied", status_code=403)
    return submission


@router.post("/ai-grading", response_model=AIGradingResponse)
def ai_grading(
    request: AIGradingRequest,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Ask the AI gateway to grade a submission and write grade/feedback back.

    Only the submitting student or the class teacher may call it. Failures
    come back as {"error": ...} with 403, 404, 429, 402 or 500.
    """
    try:
        load_gradable_submission(db, user, request.submission_id)
        return grade_submission_with_ai(
            db,
            request.submission_id,
            request.content,
            request.assignment_title,
        )
    except AIGradingError as e:
        logger.error("AI grading failed for %s: %s", request.submission_id, e.message)
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception as e:
        logger.exception("Error in ai-grading function")
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error"})


@router.post("/send-notification-email")
def send_notification_email(
    request: NotificationEmailRequest,
    user: dict = Depends(get_current_user),
):
    """
    Log the email a student would receive. Nothing is sent yet.
    """
    try:
        icon = EMAIL_ICONS.get(request.type, "📋")
        logger.info(
            "Email notification from %s: to=%s student=%s subject=%s %s type=%s message=%s",
            user["id"],
            request.to,
            request.student_name,
            icon,
            request.title,
            request.type,
            request.message,
        )
        return {
            "success": True,
            "message": "Notification logged (email sending requires Resend setup)",
        }
    except Exception as e:
        logger.exception("Error in send-notification-email")
        return JSONResponse(status_code=500, content={"error": str(e)})
