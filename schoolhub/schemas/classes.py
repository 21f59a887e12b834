from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from schoolhub.db.models import Class

class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    description: Optional[str] = None
    room: Optional[str] = None

class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    subject: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    room: Optional[str] = None

class ClassResponse(Class):
    id: str
    teacher_name: Optional[str] = None

class EnrollRequest(BaseModel):
    class_code: str = Field(..., min_length=1)

class EnrollmentResponse(BaseModel):
    id: str
    class_id: str
    student_id: str
    enrolled_at: datetime
    class_name: Optional[str] = None

class RosterStudent(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    enrolled_at: Optional[datetime] = None
