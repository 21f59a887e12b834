from pydantic import BaseModel, Field
from typing import Optional

from schoolhub.db.models import Announcement

class AnnouncementCreate(BaseModel):
    class_id: str
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

class AnnouncementResponse(Announcement):
    id: str
    class_name: Optional[str] = None
