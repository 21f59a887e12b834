import logging
import secrets
import string
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from schoolhub.db.supabase import get_supabase, is_unique_violation
from schoolhub.schemas.classes import (
    ClassCreate,
    ClassUpdate,
    ClassResponse,
    EnrollRequest,
    EnrollmentResponse,
    RosterStudent,
)
from schoolhub.core.dependencies import (
    require_teacher,
    require_student,
    get_class_or_404,
    ensure_class_owner,
    ensure_class_member,
    enrolled_class_ids,
)
from schoolhub.core.security import get_current_user
from schoolhub.core import policies

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Classes"])

CLASS_CODE_LENGTH = 6
CLASS_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_class_code() -> str:
    return "".join(secrets.choice(CLASS_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH))


# -------------------------
# HELPER: ATTACH TEACHER NAMES
# -------------------------
def attach_teacher_names(db: Client, classes: list[dict]) -> list[dict]:
    teacher_ids = list({cls["teacher_id"] for cls in classes if cls.get("teacher_id")})
    if not teacher_ids:
        return classes

    teachers = db.table("profiles").select("id, full_name").in_("id", teacher_ids).execute()
    names = {row["id"]: row.get("full_name") for row in teachers.data}

    for cls in classes:
        cls["teacher_name"] = names.get(cls.get("teacher_id"))
    return classes


# -------------------------
# CREATE CLASS (TEACHER)
# -------------------------
@router.post("/", response_model=ClassResponse)
def create_class(
    class_data: ClassCreate,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Create a class owned by the calling teacher. A class code is generated for student self-enrollment.
    """
    try:
        if not policies.can_create_class(user):
            raise HTTPException(status_code=403, detail="Only teachers can create classes")

        class_dict = {
            "name": class_data.name,
            "subject": class_data.subject,
            "description": class_data.description,
            "room": class_data.room,
            "teacher_id": user["id"],
            "class_code": generate_class_code(),
        }

        result = db.table("classes").insert(class_dict).execute()
        logger.info("Class %s created with code %s", result.data[0]["id"], result.data[0]["class_code"])
        return ClassResponse(**result.data[0])

    except HTTPException:
        raise
    except Exception as e:
        if is_unique_violation(e):
            raise HTTPException(status_code=400, detail="Generated class code already in use. Please try again.")
        logger.error(f"Create class error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error creating class: {str(e)}")


# -------------------------
# GET CLASSES (ROLE BASED)
# -------------------------
@router.get("/", response_model=list[ClassResponse])
def get_classes(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Admins see every class, teachers their own, students the classes they are enrolled in.
    """
    try:
        if user["role"] == "admin":
            result = db.table("classes").select("*").order("created_at", desc=True).execute()
            return [ClassResponse(**cls) for cls in attach_teacher_names(db, result.data)]

        if user["role"] == "teacher":
            result = (
                db.table("classes")
                .select("*")
                .eq("teacher_id", user["id"])
                .order("created_at", desc=True)
                .execute()
            )
            return [ClassResponse(**cls) for cls in result.data]

        class_ids = enrolled_class_ids(db, user["id"])
        if not class_ids:
            return []

        classes = db.table("classes").select("*").in_("id", class_ids).execute()
        return [ClassResponse(**cls) for cls in attach_teacher_names(db, classes.data)]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get classes error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching classes: {str(e)}")


# -------------------------
# ENROLL BY CLASS CODE (STUDENT)
# -------------------------
@router.post("/enroll", response_model=EnrollmentResponse)
def enroll_in_class(
    request: EnrollRequest,
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    """
    Redeem a class code. A second attempt for the same class is rejected by the unique constraint.
    """
    try:
        code = request.class_code.strip().upper()
        class_result = db.table("classes").select("id, name").eq("class_code", code).execute()
        if not class_result.data:
            raise HTTPException(status_code=404, detail="Invalid class code")

        class_row = class_result.data[0]
        if not policies.can_enroll(user, user["id"]):
            raise HTTPException(status_code=403, detail="Only students can enroll themselves")

        try:
            result = db.table("class_enrollments").insert({
                "class_id": class_row["id"],
                "student_id": user["id"],
            }).execute()
        except Exception as enroll_error:
            if is_unique_violation(enroll_error):
                raise HTTPException(status_code=400, detail="You are already enrolled in this class")
            raise

        return EnrollmentResponse(**result.data[0], class_name=class_row["name"])

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Enroll error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error enrolling: {str(e)}")


# -------------------------
# GET SINGLE CLASS
# -------------------------
@router.get("/{class_id}", response_model=ClassResponse)
def get_class(
    class_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        class_row = ensure_class_member(db, user, class_id)
        return ClassResponse(**attach_teacher_names(db, [class_row])[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get class error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching class: {str(e)}")


# -------------------------
# UPDATE CLASS (OWNER)
# -------------------------
@router.put("/{class_id}", response_model=ClassResponse)
def update_class(
    class_id: str,
    class_data: ClassUpdate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        ensure_class_owner(db, user, class_id)

        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if class_data.name is not None:
            update_data["name"] = class_data.name
        if class_data.subject is not None:
            update_data["subject"] = class_data.subject
        if class_data.description is not None:
            update_data["description"] = class_data.description
        if class_data.room is not None:
            update_data["room"] = class_data.room

        result = db.table("classes").update(update_data).eq("id", class_id).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Class not found")

        return ClassResponse(**result.data[0])

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update class error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error updating class: {str(e)}")


# -------------------------
# DELETE CLASS (OWNER)
# -------------------------
@router.delete("/{class_id}")
def delete_class(
    class_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Delete a class. Enrollments, assignments, attendance and the rest go with it (ON DELETE CASCADE).
    """
    try:
        ensure_class_owner(db, user, class_id)

        result = db.table("classes").delete().eq("id", class_id).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Class not found")

        return {"message": "Class deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Delete class error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting class: {str(e)}")


# -------------------------
# CLASS ROSTER
# -------------------------
@router.get("/{class_id}/students", response_model=list[RosterStudent])
def get_class_students(
    class_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Students enrolled in a class. Class teacher or admin.
    """
    try:
        class_row = get_class_or_404(db, class_id)
        if not (policies.is_admin(user) or policies.owns_class(user, class_row)):
            raise HTTPException(status_code=403, detail="Access denied")

        enrollments = (
            db.table("class_enrollments")
            .select("student_id, enrolled_at")
            .eq("class_id", class_id)
            .execute()
        )
        enrolled_at = {row["student_id"]: row.get("enrolled_at") for row in enrollments.data}
        if not enrolled_at:
            return []

        students = (
            db.table("profiles")
            .select("id, full_name, email")
            .in_("id", list(enrolled_at))
            .execute()
        )

        roster = [
            RosterStudent(**student, enrolled_at=enrolled_at.get(student["id"]))
            for student in students.data
        ]
        roster.sort(key=lambda s: (s.full_name or "").lower())
        return roster

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get class students error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching students: {str(e)}")
