import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status, Query, Header
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.core.config import settings
from schoolhub.core.session_cache import get_user_id_for_token

logger = logging.getLogger(__name__)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


def resolve_user_id(
    user_id: Optional[str] = Query(None, description="User ID (dev mode only)"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    """
    Work out who is calling from the session token in the Authorization header.

    The user_id query parameter is only honoured when ALLOW_USER_ID_QUERY
    is switched on.
    """
    token = bearer_token(authorization)
    if token:
        cached_uid = get_user_id_for_token(token)
        if cached_uid:
            return cached_uid
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session token"
        )

    if user_id and settings.ALLOW_USER_ID_QUERY:
        return user_id

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated"
    )


def get_current_user(
    user_id: str = Depends(resolve_user_id),
    db: Client = Depends(get_supabase),
) -> dict:
    """
    Fetches the caller's profile.

    Args:
        user_id: Resolved caller id
        db: Supabase client

    Returns:
        dict: Profile data with id, email, role, full_name, avatar_url and approval_status

    Raises:
        HTTPException: 401 on malformed id or missing role, 404 if profile not found
    """
    try:
        try:
            UUID(user_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid user ID format"
            )

        profile_response = db.table("profiles").select(
            "id, full_name, email, role, avatar_url, approval_status"
        ).eq("id", user_id).execute()

        if not profile_response.data:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User profile not found"
            )

        profile = profile_response.data[0]

        if not profile.get("role"):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User profile incomplete. Role information missing."
            )

        return {
            "id": profile["id"],
            "email": profile["email"],
            "role": profile["role"],
            "full_name": profile.get("full_name"),
            "avatar_url": profile.get("avatar_url"),
            "approval_status": profile.get("approval_status"),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error in get_current_user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal error while fetching profile: {str(e)}"
        )
