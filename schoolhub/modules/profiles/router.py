import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.schemas.profiles import ProfileUpdate, ProfileResponse
from schoolhub.core.security import get_current_user
from schoolhub.core import policies

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Get current user's profile.
    """
    try:
        result = db.table("profiles").select("*").eq("id", user["id"]).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get profile error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching profile: {str(e)}")


@router.put("/me", response_model=ProfileResponse)
def update_my_profile(
    profile: ProfileUpdate,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Update current user's name or avatar. Role and approval status are not editable here.
    """
    try:
        if not policies.can_update_profile(user, user["id"]):
            raise HTTPException(status_code=403, detail="Access denied")

        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if profile.full_name is not None:
            update_data["full_name"] = profile.full_name
        if profile.avatar_url is not None:
            update_data["avatar_url"] = profile.avatar_url

        result = db.table("profiles").update(update_data).eq("id", user["id"]).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update profile error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error updating profile: {str(e)}")


@router.get("/", response_model=list[ProfileResponse])
def get_all_profiles(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        if not policies.can_view_profile(user):
            raise HTTPException(status_code=403, detail="Access denied")
        result = db.table("profiles").select("*").order("full_name").execute()
        return [ProfileResponse(**profile) for profile in result.data]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"List profiles error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching profiles: {str(e)}")


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(
    profile_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        if not policies.can_view_profile(user):
            raise HTTPException(status_code=403, detail="Access denied")
        result = db.table("profiles").select("*").eq("id", profile_id).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get profile error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching profile: {str(e)}")
