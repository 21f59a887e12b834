from pydantic import BaseModel, Field
from typing import Optional, Literal

class SignupRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None
    role: Literal["teacher", "student"] = "student"

class LoginRequest(BaseModel):
    email: str
    password: str

class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    role: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    approval_status: Optional[str] = None

class LoginResponse(BaseModel):
    user_id: str
    token: Optional[str] = None
