from fastapi import APIRouter, HTTPException, Depends, Header
from supabase import Client
from typing import Optional
import logging

from schoolhub.db.supabase import get_supabase
from schoolhub.schemas.auth import SignupRequest, LoginRequest, UserResponse, LoginResponse
from schoolhub.core.security import get_current_user, bearer_token
from schoolhub.core.session_cache import create_session, invalidate_session

# Setup logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

DEFAULT_FULL_NAME = "User"


@router.post("/signup", response_model=LoginResponse)
def signup(request: SignupRequest, db: Client = Depends(get_supabase)):
    """
    Register a new teacher or student account.

    Creates the auth user (full_name and role go into user metadata) and its
    profile row, then returns a session token for immediate use.

    Args:
    - email: User's email address
    - password: At least 6 characters
    - full_name: Optional, defaults to "User"
    - role: 'teacher' or 'student' (defaults to 'student')

    Returns:
    - user_id: The new user's unique identifier
    - token: Session token for authentication
    """
    try:
        existing_user = db.table("profiles").select("id").eq("email", request.email).execute()
        if existing_user.data:
            raise HTTPException(
                status_code=400,
                detail="An account with this email already exists. Please login instead."
            )

        full_name = (request.full_name or "").strip() or DEFAULT_FULL_NAME

        auth_response = db.auth.sign_up({
            "email": request.email,
            "password": request.password,
            "options": {"data": {"full_name": full_name, "role": request.role}},
        })

        if not auth_response.user:
            raise HTTPException(
                status_code=400,
                detail="Signup failed. Please try again."
            )

        user_id = str(auth_response.user.id)

        # The on-signup trigger may already have written the row; upsert keeps it to one profile
        try:
            db.table("profiles").upsert({
                "id": user_id,
                "email": request.email,
                "full_name": full_name,
                "role": request.role,
            }).execute()
            logger.info(f"Profile ready for new {request.role} {user_id}")
        except Exception as profile_error:
            logger.error(f"Profile creation error: {str(profile_error)}")
            raise HTTPException(
                status_code=400,
                detail=f"Profile creation failed: {str(profile_error)}"
            )

        token = create_session(user_id)
        return LoginResponse(user_id=user_id, token=token)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Signup error: {str(e)}")
        raise HTTPException(
            status_code=400,
            detail=f"Signup failed: {str(e)}"
        )


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Client = Depends(get_supabase)):
    """
    Login with email and password. Uses Supabase authentication and hands
    back a server-side session token for the Authorization header.
    """
    try:
        auth_response = db.auth.sign_in_with_password({
            "email": request.email,
            "password": request.password
        })

        if not auth_response.user or not auth_response.session:
            raise HTTPException(
                status_code=401,
                detail="Invalid email or password"
            )

        user_id = str(auth_response.user.id)
        token = create_session(user_id)
        return LoginResponse(user_id=user_id, token=token)

    except HTTPException:
        raise
    except Exception as e:
        logger.warning(f"Login failed for {request.email}: {str(e)}")
        raise HTTPException(
            status_code=401,
            detail="Login failed. Please check your credentials."
        )


@router.post("/logout")
def logout(authorization: Optional[str] = Header(None, alias="Authorization")):
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Session token not provided")
    invalidate_session(token)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(user: dict = Depends(get_current_user)):
    """
    Get current authenticated user's profile information.

    Requires user_id as query parameter or Authorization header.
    """
    return UserResponse(**user)
