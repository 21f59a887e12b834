import logging

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.core.dependencies import require_admin
from schoolhub.schemas.admin import AdminStats, ApprovalUpdate
from schoolhub.schemas.classes import ClassResponse
from schoolhub.schemas.profiles import ProfileResponse, BootstrapAdminRequest
from schoolhub.modules.classes.router import attach_teacher_names

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


def count_rows(db: Client, table: str, **filters) -> int:
    query = db.table(table).select("id", count="exact")
    for column, value in filters.items():
        query = query.eq(column, value)
    result = query.execute()
    return result.count if result.count is not None else len(result.data)


@router.get("/stats", response_model=AdminStats)
def get_admin_stats(
    user: dict = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    """
    Head counts for the admin dashboard. Admin only.
    """
    try:
        return AdminStats(
            total_users=count_rows(db, "profiles"),
            total_classes=count_rows(db, "classes"),
            total_students=count_rows(db, "profiles", role="student"),
            total_teachers=count_rows(db, "profiles", role="teacher"),
        )
    except Exception as e:
        logger.error(f"Admin stats error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch stats: {str(e)}")


@router.get("/users", response_model=list[ProfileResponse])
def get_all_users(
    user: dict = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    try:
        result = db.table("profiles").select("*").order("created_at", desc=True).execute()
        return [ProfileResponse(**profile) for profile in result.data]
    except Exception as e:
        logger.error(f"Admin users error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch users: {str(e)}")


@router.get("/classes", response_model=list[ClassResponse])
def get_all_classes(
    user: dict = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    try:
        result = db.table("classes").select("*").order("created_at", desc=True).execute()
        return [ClassResponse(**cls) for cls in attach_teacher_names(db, result.data)]
    except Exception as e:
        logger.error(f"Admin classes error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch classes: {str(e)}")


@router.get("/approvals", response_model=list[ProfileResponse])
def get_pending_approvals(
    user: dict = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    try:
        result = (
            db.table("profiles")
            .select("*")
            .eq("approval_status", "pending")
            .order("created_at", desc=True)
            .execute()
        )
        return [ProfileResponse(**profile) for profile in result.data]
    except Exception as e:
        logger.error(f"Admin approvals error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch approvals: {str(e)}")


@router.put("/approvals/{profile_id}", response_model=ProfileResponse)
def update_approval(
    profile_id: str,
    approval: ApprovalUpdate,
    user: dict = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    try:
        result = (
            db.table("profiles")
            .update({"approval_status": approval.status})
            .eq("id", profile_id)
            .execute()
        )
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")

        logger.info("User %s %s by admin %s", profile_id, approval.status, user["id"])
        return ProfileResponse(**result.data[0])
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update approval error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to update approval: {str(e)}")


@router.post("/bootstrap-admin")
def bootstrap_admin(user_data: BootstrapAdminRequest, db: Client = Depends(get_supabase)):
    """
    Bootstrap the first admin user. No authentication required.
    Only works when no users exist in the system.
    """
    try:
        if count_rows(db, "profiles") > 0:
            raise HTTPException(status_code=403, detail="Bootstrap only available for first user creation")

        try:
            auth_response = db.auth.admin.create_user({
                "email": user_data.email,
                "password": user_data.password,
                "email_confirm": True,
                "user_metadata": {"full_name": user_data.full_name, "role": "admin"},
            })
            user_id = str(auth_response.user.id)
        except Exception as auth_error:
            error_detail = str(auth_error)
            if "email" in error_detail.lower() and ("already" in error_detail.lower() or "exists" in error_detail.lower()):
                error_detail = f"Email '{user_data.email}' is already registered. Please use a different email address."
            raise HTTPException(status_code=400, detail=f"Failed to create auth user: {error_detail}")

        try:
            # Upsert: the signup trigger may have inserted a student row already
            db.table("profiles").upsert({
                "id": user_id,
                "email": user_data.email,
                "full_name": user_data.full_name,
                "role": "admin",
                "approval_status": "approved",
            }).execute()
        except Exception as profile_error:
            try:
                db.auth.admin.delete_user(user_id)
            except Exception as cleanup_error:
                logger.warning(f"Failed to cleanup auth user after profile creation failure: {cleanup_error}")
            raise HTTPException(status_code=400, detail=f"Failed to create user profile: {str(profile_error)}")

        logger.info("Bootstrap admin %s created", user_id)
        return {
            "message": "Admin user created successfully (bootstrap)",
            "user_id": user_id,
            "email": user_data.email,
            "role": "admin",
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Bootstrap admin error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to bootstrap admin: {str(e)}")
