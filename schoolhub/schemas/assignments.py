from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from schoolhub.db.models import Assignment

class AssignmentCreate(BaseModel):
    class_id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    total_points: int = Field(100, ge=1)
    file_url: Optional[str] = None

class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    total_points: Optional[int] = Field(None, ge=1)
    file_url: Optional[str] = None

class AssignmentResponse(Assignment):
    id: str
    # Filled in for students: their own submission, if any
    my_submission: Optional[dict] = None
