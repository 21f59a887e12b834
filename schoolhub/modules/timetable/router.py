import logging

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.schemas.timetable import DAYS, TimetableCreate, TimetableResponse, TimetableDay
from schoolhub.core.dependencies import (
    require_student,
    ensure_class_owner,
    ensure_class_member,
    enrolled_class_ids,
)
from schoolhub.core.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Timetable"])


def sort_key(entry: dict):
    return entry["day_of_week"], str(entry["start_time"])


@router.post("/", response_model=TimetableResponse)
def create_timetable_entry(
    entry: TimetableCreate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Add a weekly slot to a class timetable. Teacher of the class only.
    """
    try:
        class_row = ensure_class_owner(db, user, entry.class_id)

        result = db.table("timetable").insert({
            "class_id": entry.class_id,
            "day_of_week": entry.day_of_week,
            "start_time": entry.start_time.isoformat(),
            "end_time": entry.end_time.isoformat(),
            "subject": entry.subject,
            "room": entry.room,
        }).execute()
        return TimetableResponse(**result.data[0], class_name=class_row["name"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Create timetable entry error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error creating timetable entry: {str(e)}")


@router.get("/class/{class_id}", response_model=list[TimetableResponse])
def get_class_timetable(
    class_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        class_row = ensure_class_member(db, user, class_id)

        result = db.table("timetable").select("*").eq("class_id", class_id).execute()
        entries = sorted(result.data, key=sort_key)
        return [TimetableResponse(**e, class_name=class_row["name"]) for e in entries]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get class timetable error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching timetable: {str(e)}")


@router.get("/my", response_model=list[TimetableDay])
def get_my_timetable(
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    """
    Weekly schedule across enrolled classes, Sunday first. Days with no slots are left out.
    """
    try:
        class_ids = enrolled_class_ids(db, user["id"])
        if not class_ids:
            return []

        result = db.table("timetable").select("*, classes(name)").in_("class_id", class_ids).execute()

        by_day = {}
        for row in sorted(result.data, key=sort_key):
            cls = row.pop("classes", None) or {}
            by_day.setdefault(row["day_of_week"], []).append(
                TimetableResponse(**row, class_name=cls.get("name"))
            )

        return [
            TimetableDay(day_of_week=day, day=DAYS[day], entries=by_day[day])
            for day in sorted(by_day)
        ]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get my timetable error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching timetable: {str(e)}")


@router.delete("/{entry_id}")
def delete_timetable_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        existing = db.table("timetable").select("id, class_id").eq("id", entry_id).execute()
        if not existing.data:
            raise HTTPException(status_code=404, detail="Timetable entry not found")

        ensure_class_owner(db, user, existing.data[0]["class_id"])
        db.table("timetable").delete().eq("id", entry_id).execute()
        return {"message": "Timetable entry deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Delete timetable entry error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting timetable entry: {str(e)}")
