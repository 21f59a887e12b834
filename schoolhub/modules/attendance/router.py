import logging
from datetime import date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.schemas.attendance import (
    AttendanceMark,
    AttendanceResponse,
    RosterAttendance,
    ClassAttendanceSheet,
    StudentAttendanceStats,
    StudentClassAttendance,
    TeacherAttendanceStats,
    TeacherClassAttendance,
    AttendanceAnalytics,
)
from schoolhub.core.dependencies import (
    require_student,
    require_teacher,
    require_role,
    ensure_class_owner,
    get_class_or_404,
    enrolled_class_ids,
    owned_class_ids,
)
from schoolhub.core import analytics, policies

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attendance"])

require_teacher_or_student = require_role("teacher", "student")


def class_roster(db: Client, class_id: str) -> List[str]:
    enrollments = db.table("class_enrollments").select("student_id").eq("class_id", class_id).execute()
    return [row["student_id"] for row in enrollments.data]


@router.post("/mark", response_model=List[AttendanceResponse])
def mark_attendance(
    attendance: AttendanceMark,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Record attendance for a class on one date.

    Replaces whatever was recorded for that class and date: existing rows
    are deleted and the submitted set is inserted. Last write wins.
    """
    try:
        class_row = get_class_or_404(db, attendance.class_id)
        if not policies.can_mark_attendance(user, class_row):
            raise HTTPException(status_code=403, detail="Only the class teacher can mark attendance")
        day = (attendance.date or date_type.today()).isoformat()

        roster = set(class_roster(db, attendance.class_id))
        unknown = [sid for sid in attendance.records if sid not in roster]
        if unknown:
            raise HTTPException(
                status_code=400,
                detail=f"Students not enrolled in this class: {', '.join(sorted(unknown))}"
            )

        db.table("attendance").delete().eq("class_id", attendance.class_id).eq("date", day).execute()

        if not attendance.records:
            logger.info("Attendance cleared for class %s on %s", attendance.class_id, day)
            return []

        rows = [
            {
                "class_id": attendance.class_id,
                "student_id": student_id,
                "date": day,
                "status": status,
                "marked_by": user["id"],
            }
            for student_id, status in attendance.records.items()
        ]
        result = db.table("attendance").insert(rows).execute()
        logger.info("Attendance marked for %d students in class %s on %s", len(rows), attendance.class_id, day)
        return [AttendanceResponse(**row) for row in result.data]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Mark attendance error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error marking attendance: {str(e)}")


@router.get("/class/{class_id}", response_model=ClassAttendanceSheet)
def get_class_attendance(
    class_id: str,
    date: Optional[date_type] = Query(None, description="Defaults to today"),
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Attendance sheet for one date: every enrolled student, with status None where nothing was recorded.
    """
    try:
        ensure_class_owner(db, user, class_id)
        day = date or date_type.today()

        records = (
            db.table("attendance")
            .select("student_id, status")
            .eq("class_id", class_id)
            .eq("date", day.isoformat())
            .execute()
        )
        status_by_student = {row["student_id"]: row["status"] for row in records.data}

        student_ids = list(set(class_roster(db, class_id)) | set(status_by_student))
        profiles = {}
        if student_ids:
            result = db.table("profiles").select("id, full_name, email").in_("id", student_ids).execute()
            profiles = {p["id"]: p for p in result.data}

        students = [
            RosterAttendance(
                student_id=sid,
                full_name=profiles.get(sid, {}).get("full_name"),
                email=profiles.get(sid, {}).get("email"),
                status=status_by_student.get(sid),
            )
            for sid in student_ids
        ]
        students.sort(key=lambda s: (s.full_name or "").lower())
        return ClassAttendanceSheet(class_id=class_id, date=day, students=students)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get class attendance error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching attendance: {str(e)}")


@router.get("/my", response_model=List[AttendanceResponse])
def get_my_attendance(
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    try:
        result = (
            db.table("attendance")
            .select("*")
            .eq("student_id", user["id"])
            .order("date", desc=True)
            .execute()
        )
        return [AttendanceResponse(**row) for row in result.data]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get my attendance error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching attendance: {str(e)}")


def build_student_stats(db: Client, student_id: str, class_ids: List[str]) -> StudentAttendanceStats:
    if not class_ids:
        return StudentAttendanceStats(student_id=student_id, overall_percentage=0, classes=[], trend=[])

    classes = db.table("classes").select("id, name, subject").in_("id", class_ids).execute()
    records = (
        db.table("attendance")
        .select("class_id, date, status")
        .eq("student_id", student_id)
        .in_("class_id", class_ids)
        .execute()
    ).data

    per_class = []
    for cls in classes.data:
        present, total = analytics.count(r for r in records if r["class_id"] == cls["id"])
        per_class.append(StudentClassAttendance(
            class_id=cls["id"],
            class_name=cls["name"],
            subject=cls.get("subject"),
            present=present,
            total=total,
            percentage=analytics.percentage(present, total),
        ))

    present, total = analytics.count(records)
    return StudentAttendanceStats(
        student_id=student_id,
        overall_percentage=analytics.percentage(present, total),
        classes=per_class,
        trend=analytics.daily_trend(records, date_type.today()),
    )


@router.get("/stats/student", response_model=StudentAttendanceStats)
def get_my_attendance_stats(
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    try:
        return build_student_stats(db, user["id"], enrolled_class_ids(db, user["id"]))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Student attendance stats error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing attendance stats: {str(e)}")


@router.get("/stats/student/{student_id}", response_model=StudentAttendanceStats)
def get_student_attendance_stats(
    student_id: str,
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    A student's attendance, limited to the classes the calling teacher owns.
    """
    try:
        shared = set(enrolled_class_ids(db, student_id)) & set(owned_class_ids(db, user["id"]))
        if not shared:
            raise HTTPException(status_code=403, detail="Access denied. Student is not in any of your classes")
        return build_student_stats(db, student_id, sorted(shared))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Individual attendance stats error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing attendance stats: {str(e)}")


@router.get("/stats/teacher", response_model=TeacherAttendanceStats)
def get_teacher_attendance_stats(
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    try:
        classes = db.table("classes").select("id, name").eq("teacher_id", user["id"]).execute().data
        if not classes:
            return TeacherAttendanceStats(overall_percentage=0, classes=[])

        class_ids = [c["id"] for c in classes]
        records = db.table("attendance").select("class_id, status").in_("class_id", class_ids).execute().data
        enrollments = db.table("class_enrollments").select("class_id").in_("class_id", class_ids).execute().data

        per_class = []
        for cls in classes:
            present, total = analytics.count(r for r in records if r["class_id"] == cls["id"])
            per_class.append(TeacherClassAttendance(
                class_id=cls["id"],
                class_name=cls["name"],
                total_students=sum(1 for e in enrollments if e["class_id"] == cls["id"]),
                total_records=total,
                percentage=analytics.percentage(present, total),
            ))

        present, total = analytics.count(records)
        return TeacherAttendanceStats(
            overall_percentage=analytics.percentage(present, total),
            classes=per_class,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Teacher attendance stats error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing attendance stats: {str(e)}")


@router.get("/analytics", response_model=AttendanceAnalytics)
def get_attendance_analytics(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: dict = Depends(require_teacher_or_student),
    db: Client = Depends(get_supabase),
):
    """
    Monthly, yearly and month-over-month attendance.

    Teachers get figures across the classes they own, students their own records
    across enrolled classes.
    """
    try:
        today = date_type.today()
        selected_year = year or today.year

        if user["role"] == "teacher":
            class_ids = owned_class_ids(db, user["id"])
        else:
            class_ids = enrolled_class_ids(db, user["id"])

        records = []
        if class_ids:
            start = date_type(min(today.year - analytics.YEARS_OF_HISTORY + 1, selected_year - 2), 1, 1)
            end = date_type(max(today.year, selected_year), 12, 31)
            query = (
                db.table("attendance")
                .select("date, status")
                .in_("class_id", class_ids)
                .gte("date", start.isoformat())
                .lte("date", end.isoformat())
            )
            if user["role"] == "student":
                query = query.eq("student_id", user["id"])
            records = query.execute().data

        monthly = analytics.monthly(records, selected_year)
        comparison = analytics.comparison(records, selected_year, today.month)
        direction, change = analytics.trend(comparison)

        return AttendanceAnalytics(
            year=selected_year,
            monthly=monthly,
            yearly=analytics.yearly(records, today.year),
            comparison=comparison,
            trend=direction,
            trend_change=change,
            best_month=analytics.best_month(monthly),
            worst_month=analytics.worst_month(monthly),
            average_percentage=analytics.average_percentage(monthly),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Attendance analytics error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing analytics: {str(e)}")
