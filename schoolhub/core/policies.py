"""
Row access rules.

These mirror the row-level security policies in supabase/migrations. The
API talks to Postgres with the service role key, so every route checks the
matching predicate here before reading or writing a row. Each predicate
takes the caller (as returned by get_current_user) plus the rows involved
and returns a bool.
"""
from typing import Optional

ROLES = ("admin", "teacher", "student")


def is_admin(user: dict) -> bool:
    return user.get("role") == "admin"


# profiles
def can_view_profile(user: dict) -> bool:
    return bool(user.get("id"))


def can_update_profile(user: dict, profile_id: str) -> bool:
    return user.get("id") == profile_id


# classes
def can_create_class(user: dict) -> bool:
    return user.get("role") == "teacher"


def owns_class(user: dict, class_row: Optional[dict]) -> bool:
    return bool(class_row) and class_row.get("teacher_id") == user.get("id")


def can_manage_class(user: dict, class_row: Optional[dict]) -> bool:
    return owns_class(user, class_row)


# class_enrollments
def can_enroll(user: dict, student_id: str) -> bool:
    return user.get("role") == "student" and user.get("id") == student_id


# assignments, announcements, timetable, resources
def can_view_class_content(user: dict, class_row: Optional[dict], enrolled: bool) -> bool:
    if not class_row:
        return False
    return is_admin(user) or owns_class(user, class_row) or enrolled


# attendance
def can_mark_attendance(user: dict, class_row: Optional[dict]) -> bool:
    return owns_class(user, class_row)


# assignment_submissions
def can_view_submission(user: dict, submission: dict, class_row: Optional[dict]) -> bool:
    return (
        is_admin(user)
        or submission.get("student_id") == user.get("id")
        or owns_class(user, class_row)
    )


def can_submit(user: dict, student_id: str) -> bool:
    return user.get("id") == student_id


def can_update_submission(user: dict, submission: dict) -> bool:
    return submission.get("student_id") == user.get("id")


def can_grade_submission(user: dict, class_row: Optional[dict]) -> bool:
    return owns_class(user, class_row)


# notifications
def can_update_notification(user: dict, notification: dict) -> bool:
    return notification.get("user_id") == user.get("id")
