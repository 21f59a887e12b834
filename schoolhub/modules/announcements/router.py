import logging

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.schemas.announcements import AnnouncementCreate, AnnouncementResponse
from schoolhub.core.dependencies import (
    require_student,
    ensure_class_owner,
    ensure_class_member,
    enrolled_class_ids,
)
from schoolhub.core.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Announcements"])

RECENT_ANNOUNCEMENTS = 10


@router.post("/", response_model=AnnouncementResponse)
def create_announcement(
    announcement: AnnouncementCreate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Post an announcement to a class. Teacher of the class only.
    """
    try:
        class_row = ensure_class_owner(db, user, announcement.class_id)

        result = db.table("announcements").insert({
            "class_id": announcement.class_id,
            "title": announcement.title,
            "content": announcement.content,
            "created_by": user["id"],
        }).execute()
        return AnnouncementResponse(**result.data[0], class_name=class_row["name"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Create announcement error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error creating announcement: {str(e)}")


@router.get("/class/{class_id}", response_model=list[AnnouncementResponse])
def get_class_announcements(
    class_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        class_row = ensure_class_member(db, user, class_id)

        result = (
            db.table("announcements")
            .select("*")
            .eq("class_id", class_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [AnnouncementResponse(**a, class_name=class_row["name"]) for a in result.data]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get class announcements error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching announcements: {str(e)}")


@router.get("/my", response_model=list[AnnouncementResponse])
def get_my_announcements(
    user: dict = Depends(require_student),
    db: Client = Depends(get_supabase),
):
    """
    The ten most recent announcements across the caller's classes.
    """
    try:
        class_ids = enrolled_class_ids(db, user["id"])
        if not class_ids:
            return []

        result = (
            db.table("announcements")
            .select("*, classes(name)")
            .in_("class_id", class_ids)
            .order("created_at", desc=True)
            .limit(RECENT_ANNOUNCEMENTS)
            .execute()
        )

        announcements = []
        for row in result.data:
            cls = row.pop("classes", None) or {}
            announcements.append(AnnouncementResponse(**row, class_name=cls.get("name")))
        return announcements
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get my announcements error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching announcements: {str(e)}")


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        existing = db.table("announcements").select("id, class_id").eq("id", announcement_id).execute()
        if not existing.data:
            raise HTTPException(status_code=404, detail="Announcement not found")

        ensure_class_owner(db, user, existing.data[0]["class_id"])
        db.table("announcements").delete().eq("id", announcement_id).execute()
        return {"message": "Announcement deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Delete announcement error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting announcement: {str(e)}")
