import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from schoolhub.ai.grader import AIGradingError, grade_submission_with_ai
from schoolhub.db.supabase import get_supabase, is_unique_violation
from schoolhub.schemas.submissions import (
    SubmissionCreate,
    SubmissionUpdate,
    SubmissionResponse,
    SubmitResponse,
    GradeRequest,
)
from schoolhub.core.dependencies import require_student, get_class_or_404, ensure_class_member
from schoolhub.core.security import get_current_user
from schoolhub.core import policies
from schoolhub.modules.notifications.router import create_notification

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submissions"])


def get_submission_with_assignment(db: Client, submission_id: str) -> dict:
    result = (
        db.table("assignment_submissions")
        .select("*, assignments(title, total_points, class_id)")
        .eq("id", submission_id)
        .execute()
    )
    if not result.data:
        raise HTTPException(status_code=404, detail="Submission not found")
    return result.data[0]


@router.post("/", response_model=SubmitResponse)
def submit_assignment(
    submission: SubmissionCreate,
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    """
    Submit an assignment, then hand it to the AI grader.

    The submission stands even when AI grading fails; ai_grading says which happened.
    """
    try:
        assignment_result = db.table("assignments").select("*").eq("id", submission.assignment_id).execute()
        if not assignment_result.data:
            raise HTTPException(status_code=404, detail="Assignment not found")

        assignment = assignment_result.data[0]
        ensure_class_member(db, user, assignment["class_id"])
        if not policies.can_submit(user, user["id"]):
            raise HTTPException(status_code=403, detail="Access denied")

        try:
            result = db.table("assignment_submissions").insert({
                "assignment_id": submission.assignment_id,
                "student_id": user["id"],
                "content": submission.content,
                "file_url": submission.file_url,
            }).execute()
        except Exception as insert_error:
            if is_unique_violation(insert_error):
                raise HTTPException(status_code=400, detail="You have already submitted this assignment")
            raise

        created = result.data[0]

        ai_status, ai_error = "completed", None
        try:
            graded = grade_submission_with_ai(db, created["id"], submission.content, assignment["title"])
            created["grade"] = graded["grade"]
            created["ai_feedback"] = graded["feedback"]
        except AIGradingError as e:
            ai_status, ai_error = "failed", e.message
            logger.warning("AI grading failed for submission %s: %s", created["id"], e.message)
        except Exception as e:
            ai_status, ai_error = "failed", str(e)
            logger.warning("AI grading failed for submission %s: %s", created["id"], str(e))

        return SubmitResponse(
            submission=SubmissionResponse(**created),
            ai_grading=ai_status,
            ai_error=ai_error,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Submit assignment error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error submitting assignment: {str(e)}")


@router.get("/assignment/{assignment_id}", response_model=list[SubmissionResponse])
def get_assignment_submissions(
    assignment_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    All submissions for an assignment with student name and email, newest first. Teacher of the class or admin.
    """
    try:
        assignment_result = db.table("assignments").select("id, class_id").eq("id", assignment_id).execute()
        if not assignment_result.data:
            raise HTTPException(status_code=404, detail="Assignment not found")

        class_row = get_class_or_404(db, assignment_result.data[0]["class_id"])
        if not (policies.is_admin(user) or policies.owns_class(user, class_row)):
            raise HTTPException(status_code=403, detail="Access denied")

        result = (
            db.table("assignment_submissions")
            .select("*")
            .eq("assignment_id", assignment_id)
            .order("submitted_at", desc=True)
            .execute()
        )
        submissions = result.data

        student_ids = list({s["student_id"] for s in submissions})
        students = {}
        if student_ids:
            profiles = db.table("profiles").select("id, full_name, email").in_("id", student_ids).execute()
            students = {p["id"]: p for p in profiles.data}

        responses = []
        for submission in submissions:
            student = students.get(submission["student_id"], {})
            responses.append(SubmissionResponse(
                **submission,
                student_name=student.get("full_name"),
                student_email=student.get("email"),
            ))
        return responses
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get assignment submissions error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching submissions: {str(e)}")


@router.get("/my", response_model=list[SubmissionResponse])
def get_my_submissions(
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    try:
        result = (
            db.table("assignment_submissions")
            .select("*")
            .eq("student_id", user["id"])
            .order("submitted_at", desc=True)
            .execute()
        )
        return [SubmissionResponse(**submission) for submission in result.data]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get my submissions error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching submissions: {str(e)}")


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        submission = get_submission_with_assignment(db, submission_id)
        class_row = get_class_or_404(db, submission["assignments"]["class_id"])

        if not policies.can_view_submission(user, submission, class_row):
            raise HTTPException(status_code=403, detail="Access denied")

        submission.pop("assignments", None)
        return SubmissionResponse(**submission)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get submission error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching submission: {str(e)}")


@router.put("/{submission_id}", response_model=SubmissionResponse)
def update_submission(
    submission_id: str,
    submission: SubmissionUpdate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Edit a submission. Only the student who submitted it.
    """
    try:
        existing = db.table("assignment_submissions").select("*").eq("id", submission_id).execute()
        if not existing.data:
            raise HTTPException(status_code=404, detail="Submission not found")

        if not policies.can_update_submission(user, existing.data[0]):
            raise HTTPException(status_code=403, detail="You can only update your own submissions")

        update_data = {}
        if submission.content is not None:
            update_data["content"] = submission.content
        if submission.file_url is not None:
            update_data["file_url"] = submission.file_url

        if not update_data:
            return SubmissionResponse(**existing.data[0])

        result = db.table("assignment_submissions").update(update_data).eq("id", submission_id).execute()
        return SubmissionResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update submission error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error updating submission: {str(e)}")


@router.post("/{submission_id}/grade", response_model=SubmissionResponse)
def grade_submission(
    submission_id: str,
    grade: GradeRequest,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Teacher grade for a submission. The student gets a notification with the score.
    """
    try:
        submission = get_submission_with_assignment(db, submission_id)
        assignment = submission["assignments"]
        class_row = get_class_or_404(db, assignment["class_id"])

        if not policies.can_grade_submission(user, class_row):
            raise HTTPException(status_code=403, detail="Only the class teacher can grade submissions")

        total_points = assignment.get("total_points") or 100
        if grade.grade < 0 or grade.grade > total_points:
            raise HTTPException(status_code=400, detail=f"Grade must be between 0 and {total_points}")

        result = db.table("assignment_submissions").update({
            "grade": grade.grade,
            "teacher_feedback": grade.teacher_feedback,
            "graded_by": user["id"],
            "graded_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", submission_id).execute()

        create_notification(
            db,
            user_id=submission["student_id"],
            title="Assignment Graded",
            message=f'Your assignment "{assignment["title"]}" has been graded. Score: {grade.grade}/{total_points}',
            type="grade",
            related_id=submission["assignment_id"],
        )

        graded = result.data[0]
        graded.pop("assignments", None)
        return SubmissionResponse(**graded)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Grade submission error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error grading submission: {str(e)}")
