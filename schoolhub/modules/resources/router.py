import logging
import os
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form, Query
from supabase import Client

from schoolhub.db.supabase import get_supabase
from schoolhub.db.models import CLASS_RESOURCES_BUCKET
from schoolhub.schemas.resources import ResourceResponse, SignedUrlResponse
from schoolhub.core.dependencies import (
    require_teacher,
    ensure_class_owner,
    ensure_class_member,
    enrolled_class_ids,
    owned_class_ids,
)
from schoolhub.core.security import get_current_user
from schoolhub.modules.notifications.router import notify_many

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Resources"])

SIGNED_URL_TTL = 3600


def resource_path(user_id: str, filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".") or "bin"
    return f"{user_id}/{int(time.time() * 1000)}.{ext}"


def matches_search(resource: dict, term: str) -> bool:
    term = term.lower()
    fields = (resource.get("title"), resource.get("class_name"), resource.get("file_name"))
    return any(term in (value or "").lower() for value in fields)


def flatten_class(row: dict) -> dict:
    cls = row.pop("classes", None) or {}
    row["class_name"] = cls.get("name")
    row["class_subject"] = cls.get("subject")
    return row


def get_resource_or_404(db: Client, resource_id: str) -> dict:
    result = db.table("resources").select("*").eq("id", resource_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Resource not found")
    return result.data[0]


@router.post("/", response_model=ResourceResponse)
def upload_resource(
    class_id: str = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    file: UploadFile = File(...),
    user: dict = Depends(require_teacher),
    db: Client = Depends(get_supabase),
):
    """
    Upload a file for a class and record it. Enrolled students are notified.
    """
    try:
        class_row = ensure_class_owner(db, user, class_id)
        if not title.strip():
            raise HTTPException(status_code=400, detail="Title is required")

        content = file.file.read()
        path = resource_path(user["id"], file.filename)
        db.storage.from_(CLASS_RESOURCES_BUCKET).upload(
            path,
            content,
            {"content-type": file.content_type or "application/octet-stream"},
        )

        try:
            result = db.table("resources").insert({
                "class_id": class_id,
                "title": title.strip(),
                "description": description,
                "category": category,
                "file_url": path,
                "file_name": file.filename,
                "file_size": len(content),
                "uploaded_by": user["id"],
            }).execute()
        except Exception:
            # Don't leave an orphaned object behind
            db.storage.from_(CLASS_RESOURCES_BUCKET).remove([path])
            raise

        resource = result.data[0]
        students = db.table("class_enrollments").select("student_id").eq("class_id", class_id).execute()
        notify_many(
            db,
            [row["student_id"] for row in students.data],
            title="New Resource",
            message=f'A new resource "{resource["title"]}" was shared in {class_row["name"]}',
            type="resource",
            related_id=resource["id"],
        )

        logger.info("Resource %s uploaded to %s", resource["id"], path)
        return ResourceResponse(**resource, class_name=class_row["name"], class_subject=class_row.get("subject"))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Upload resource error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")


@router.get("/", response_model=list[ResourceResponse])
def get_resources(
    class_id: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Resources the caller can see, newest first.

    Teachers see their own classes, students their enrolled classes, admins everything.
    search matches title, class name or file name, ignoring case.
    """
    try:
        query = db.table("resources").select("*, classes(name, subject)")

        if user["role"] != "admin":
            if user["role"] == "teacher":
                visible = owned_class_ids(db, user["id"])
            else:
                visible = enrolled_class_ids(db, user["id"])
            if class_id:
                visible = [cid for cid in visible if cid == class_id]
            if not visible:
                return []
            query = query.in_("class_id", visible)
        elif class_id:
            query = query.eq("class_id", class_id)

        if category:
            query = query.eq("category", category)

        result = query.order("created_at", desc=True).execute()
        resources = [flatten_class(row) for row in result.data]
        if search and search.strip():
            resources = [r for r in resources if matches_search(r, search.strip())]

        return [ResourceResponse(**r) for r in resources]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get resources error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error fetching resources: {str(e)}")


@router.get("/{resource_id}/download", response_model=SignedUrlResponse)
def download_resource(
    resource_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Signed download link, valid for one hour.
    """
    try:
        resource = get_resource_or_404(db, resource_id)
        ensure_class_member(db, user, resource["class_id"])

        signed = db.storage.from_(CLASS_RESOURCES_BUCKET).create_signed_url(resource["file_url"], SIGNED_URL_TTL)
        return SignedUrlResponse(
            resource_id=resource_id,
            signed_url=signed.get("signedURL") or signed.get("signedUrl"),
            expires_in=SIGNED_URL_TTL,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Download resource error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Download failed: {str(e)}")


@router.delete("/{resource_id}")
def delete_resource(
    resource_id: str,
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Delete the row and its stored file. Teacher of the class only.
    """
    try:
        resource = get_resource_or_404(db, resource_id)
        ensure_class_owner(db, user, resource["class_id"])

        db.storage.from_(CLASS_RESOURCES_BUCKET).remove([resource["file_url"]])
        db.table("resources").delete().eq("id", resource_id).execute()
        return {"message": "Resource deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Delete resource error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting resource: {str(e)}")
