from pydantic import BaseModel, Field
from typing import Optional

from schoolhub.db.models import Profile

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    avatar_url: Optional[str] = None

class ProfileResponse(Profile):
    pass

class BootstrapAdminRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    full_name: str
