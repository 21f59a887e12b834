import logging
import os
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.db.models import ASSIGNMENT_FILES_BUCKET
from schoolhub.schemas.assignments import AssignmentCreate, AssignmentUpdate, AssignmentResponse
from schoolhub.schemas.resources import SignedUrlResponse
from schoolhub.core.dependencies import ensure_class_owner, ensure_class_member
from schoolhub.core.security import get_current_user
from schoolhub.modules.notifications.router import notify_many

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assignments"])

SIGNED_URL_TTL = 3600


def get_assignment_or_404(db: Client, assignment_id: str) -> dict:
    result = db.table("assignments").select("*").eq("id", assignment_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return result.data[0]


def storage_path(folder: str, filename: str) -> str:
    """<folder>/<millis>.<ext>, keeping the uploaded file's extension."""
    ext = os.path.splitext(filename or "")[1].lstrip(".") or "bin"
    return f"{folder}/{int(time.time() * 1000)}.{ext}"


@router.post("/", response_model=AssignmentResponse)
def create_assignment(
    assignment: AssignmentCreate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Create a new assignment. Teacher of the class only.
    """
    try:
        class_row = ensure_class_owner(db, user, assignment.class_id)

        assignment_data = {
            "class_id": assignment.class_id,
            "title": assignment.title,
            "description": assignment.description,
            "due_date": assignment.due_date.isoformat() if assignment.due_date else None,
            "total_points": assignment.total_points,
            "file_url": assignment.file_url,
        }

        result = db.table("assignments").insert(assignment_data).execute()
        created = result.data[0]

        students = db.table("class_enrollments").select("student_id").eq("class_id", assignment.class_id).execute()
        notify_many(
            db,
            [row["student_id"] for row in students.data],
            title="New Assignment",
            message=f'A new assignment "{created["title"]}" has been posted in {class_row["name"]}',
            type="assignment",
            related_id=created["id"],
        )
        return AssignmentResponse(**created)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Create assignment error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error creating assignment: {str(e)}")


@router.get("/class/{class_id}", response_model=list[AssignmentResponse])
def get_class_assignments(
    class_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Assignments for a class, newest first. Students also get their own submission for each one.
    """
    try:
        ensure_class_member(db, user, class_id)

        result = (
            db.table("assignments")
            .select("*")
            .eq("class_id", class_id)
            .order("created_at", desc=True)
            .execute()
        )
        assignments = result.data

        if user["role"] == "student" and assignments:
            submissions = (
                db.table("assignment_submissions")
                .select("*")
                .eq("student_id", user["id"])
                .in_("assignment_id", [a["id"] for a in assignments])
                .execute()
            )
            by_assignment = {s["assignment_id"]: s for s in submissions.data}
            for assignment in assignments:
                assignment["my_submission"] = by_assignment.get(assignment["id"])

        return [AssignmentResponse(**assignment) for assignment in assignments]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get class assignments error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching assignments: {str(e)}")


@router.get("/{assignment_id}", response_model=AssignmentResponse)
def get_assignment(
    assignment_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        assignment = get_assignment_or_404(db, assignment_id)
        ensure_class_member(db, user, assignment["class_id"])
        return AssignmentResponse(**assignment)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get assignment error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching assignment: {str(e)}")


@router.put("/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    assignment_id: str,
    assignment: AssignmentUpdate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Update assignment. Teacher of the class only.
    """
    try:
        record = get_assignment_or_404(db, assignment_id)
        ensure_class_owner(db, user, record["class_id"])

        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if assignment.title is not None:
            update_data["title"] = assignment.title
        if assignment.description is not None:
            update_data["description"] = assignment.description
        if assignment.due_date is not None:
            update_data["due_date"] = assignment.due_date.isoformat()
        if assignment.total_points is not None:
            update_data["total_points"] = assignment.total_points
        if assignment.file_url is not None:
            update_data["file_url"] = assignment.file_url

        result = db.table("assignments").update(update_data).eq("id", assignment_id).execute()
        return AssignmentResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update assignment error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error updating assignment: {str(e)}")


@router.delete("/{assignment_id}")
def delete_assignment(
    assignment_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Delete assignment and, by cascade, its submissions. Teacher of the class only.
    """
    try:
        record = get_assignment_or_404(db, assignment_id)
        ensure_class_owner(db, user, record["class_id"])

        result = db.table("assignments").delete().eq("id", assignment_id).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Assignment not found")
        return {"message": "Assignment deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Delete assignment error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting assignment: {str(e)}")


@router.post("/{assignment_id}/file", response_model=AssignmentResponse)
def upload_assignment_file(
    assignment_id: str,
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Attach a file to an assignment. Stored under the class folder of the assignment-files bucket.
    """
    try:
        record = get_assignment_or_404(db, assignment_id)
        ensure_class_owner(db, user, record["class_id"])

        path = storage_path(record["class_id"], file.filename)
        db.storage.from_(ASSIGNMENT_FILES_BUCKET).upload(
            path,
            file.file.read(),
            {"content-type": file.content_type or "application/octet-stream"},
        )

        result = db.table("assignments").update({
            "file_url": path,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", assignment_id).execute()
        return AssignmentResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Upload assignment file error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")


@router.get("/{assignment_id}/file", response_model=SignedUrlResponse)
def get_assignment_file(
    assignment_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Signed download link for the attached file, valid for one hour. Class members only.
    """
    try:
        record = get_assignment_or_404(db, assignment_id)
        ensure_class_member(db, user, record["class_id"])
        if not record.get("file_url"):
            raise HTTPException(status_code=404, detail="Assignment has no attached file")

        signed = db.storage.from_(ASSIGNMENT_FILES_BUCKET).create_signed_url(record["file_url"], SIGNED_URL_TTL)
        return SignedUrlResponse(
            resource_id=assignment_id,
            signed_url=signed.get("signedURL") or signed.get("signedUrl"),
            expires_in=SIGNED_URL_TTL,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get assignment file error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Download failed: {str(e)}")
