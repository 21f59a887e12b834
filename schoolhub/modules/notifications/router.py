import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.schemas.notifications import NotificationResponse
from schoolhub.core.security import get_current_user
from schoolhub.core import policies

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


def create_notification(
    db: Client,
    user_id: str,
    title: str,
    message: str,
    type: str,
    related_id: Optional[str] = None,
) -> dict:
    result = db.table("notifications").insert({
        "user_id": user_id,
        "title": title,
        "message": message,
        "type": type,
        "related_id": related_id,
        "read": False,
    }).execute()
    logger.info("Notification (%s) created for user %s", type, user_id)
    return result.data[0]


def notify_many(db: Client, user_ids: list[str], title: str, message: str, type: str, related_id: Optional[str] = None) -> int:
    """Fan one notification out to several users in a single insert."""
    if not user_ids:
        return 0
    rows = [
        {
            "user_id": uid,
            "title": title,
            "message": message,
            "type": type,
            "related_id": related_id,
            "read": False,
        }
        for uid in user_ids
    ]
    db.table("notifications").insert(rows).execute()
    return len(rows)


@router.get("/", response_model=list[NotificationResponse])
def get_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    The caller's notifications, newest first.
    """
    try:
        query = db.table("notifications").select("*").eq("user_id", user["id"])
        if unread_only:
            query = query.eq("read", False)

        result = query.order("created_at", desc=True).limit(limit).execute()
        return [NotificationResponse(**n) for n in result.data]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get notifications error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching notifications: {str(e)}")


@router.get("/unread-count")
def get_unread_count(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        result = (
            db.table("notifications")
            .select("id", count="exact")
            .eq("user_id", user["id"])
            .eq("read", False)
            .execute()
        )
        return {"unread": result.count or 0}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unread count error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error counting notifications: {str(e)}")


@router.put("/read-all")
def mark_all_read(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        result = (
            db.table("notifications")
            .update({"read": True})
            .eq("user_id", user["id"])
            .eq("read", False)
            .execute()
        )
        return {"message": "All notifications marked as read", "updated": len(result.data)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Mark all read error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error updating notifications: {str(e)}")


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        existing = db.table("notifications").select("*").eq("id", notification_id).execute()
        if not existing.data:
            raise HTTPException(status_code=404, detail="Notification not found")

        if not policies.can_update_notification(user, existing.data[0]):
            raise HTTPException(status_code=403, detail="Access denied")

        result = db.table("notifications").update({"read": True}).eq("id", notification_id).execute()
        return NotificationResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Mark read error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error updating notification: {str(e)}")
