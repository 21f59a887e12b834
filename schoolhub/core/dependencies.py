from fastapi import Depends, HTTPException, status
from supabase import Client

from schoolhub.core.security import get_current_user
from schoolhub.core import policies


def require_role(*roles: str):
    """
    Dependency factory: the caller must hold one of the given roles.
    """
    def role_checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {' or '.join(roles)}"
            )
        return user
    return role_checker


require_admin = require_role("admin")
require_teacher = require_role("teacher")
require_student = require_role("student")


def get_class_or_404(db: Client, class_id: str) -> dict:
    result = db.table("classes").select("*").eq("id", class_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Class not found")
    return result.data[0]


def is_enrolled(db: Client, class_id: str, student_id: str) -> bool:
    enrollment = (
        db.table("class_enrollments")
        .select("id")
        .eq("class_id", class_id)
        .eq("student_id", student_id)
        .execute()
    )
    return bool(enrollment.data)


def enrolled_class_ids(db: Client, student_id: str) -> list[str]:
    enrollments = db.table("class_enrollments").select("class_id").eq("student_id", student_id).execute()
    return [row["class_id"] for row in enrollments.data]


def owned_class_ids(db: Client, teacher_id: str) -> list[str]:
    classes = db.table("classes").select("id").eq("teacher_id", teacher_id).execute()
    return [row["id"] for row in classes.data]


def ensure_class_owner(db: Client, user: dict, class_id: str) -> dict:
    """Load the class and check the caller teaches it."""
    class_row = get_class_or_404(db, class_id)
    if not policies.can_manage_class(user, class_row):
        raise HTTPException(status_code=403, detail="Access denied. You do not teach this class")
    return class_row


def ensure_class_member(db: Client, user: dict, class_id: str) -> dict:
    """Load the class and check the caller teaches it, is enrolled in it, or is an admin."""
    class_row = get_class_or_404(db, class_id)
    enrolled = user.get("role") == "student" and is_enrolled(db, class_id, user["id"])
    if not policies.can_view_class_content(user, class_row, enrolled):
        raise HTTPException(status_code=403, detail="Not a member of this class")
    return class_row
