import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from schoolhub.core.config import settings
from schoolhub.db.supabase import get_supabase
from schoolhub.modules.auth.router import router as auth_router
from schoolhub.modules.profiles.router import router as profiles_router
from schoolhub.modules.classes.router import router as classes_router
from schoolhub.modules.assignments.router import router as assignments_router
from schoolhub.modules.submissions.router import router as submissions_router
from schoolhub.modules.attendance.router import router as attendance_router
from schoolhub.modules.announcements.router import router as announcements_router
from schoolhub.modules.timetable.router import router as timetable_router
from schoolhub.modules.resources.router import router as resources_router
from schoolhub.modules.notifications.router import router as notifications_router
from schoolhub.modules.admin.router import router as admin_router
from schoolhub.modules.functions.router import router as functions_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

TITLE = "SchoolHub Backend"
DESCRIPTION = "School management backend: classes, assignments, attendance, resources and AI grading"
VERSION = "1.0.0"

# Reachable without a caller identity
PUBLIC_PATHS = {"/", "/health", "/admin/bootstrap-admin"}
PUBLIC_PREFIXES = ("/auth/signup", "/auth/login")

app = FastAPI(title=TITLE, description=DESCRIPTION, version=VERSION)


# Custom OpenAPI schema to configure security properly
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=TITLE,
        version=VERSION,
        description=DESCRIPTION,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
        }
    }

    # Lock icon in Swagger UI for protected endpoints
    for path, path_item in openapi_schema.get("paths", {}).items():
        if path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
            continue
        for operation in path_item.values():
            operation["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"message": "SchoolHub API is running"}


@app.get("/health")
def health_check():
    """Check if the service and database connection are healthy"""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        get_supabase().table("profiles").select("id").limit(1).execute()
        return {"status": "healthy", "database": "connected", "timestamp": timestamp}
    except Exception as e:
        logging.getLogger(__name__).error(f"Health check failed: {str(e)}")
        return {"status": "unhealthy", "database": f"error: {str(e)}", "timestamp": timestamp}


app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(profiles_router, prefix="/profiles", tags=["Profiles"])
app.include_router(classes_router, prefix="/classes", tags=["Classes"])
app.include_router(assignments_router, prefix="/assignments", tags=["Assignments"])
app.include_router(submissions_router, prefix="/submissions", tags=["Submissions"])
app.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])
app.include_router(announcements_router, prefix="/announcements", tags=["Announcements"])
app.include_router(timetable_router, prefix="/timetable", tags=["Timetable"])
app.include_router(resources_router, prefix="/resources", tags=["Resources"])
app.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])
app.include_router(functions_router, prefix="/functions", tags=["Functions"])
