from pydantic import BaseModel, Field
from typing import Optional

from schoolhub.db.models import AssignmentSubmission

class SubmissionCreate(BaseModel):
    assignment_id: str
    content: str = Field(..., min_length=1)
    file_url: Optional[str] = None

class SubmissionUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    file_url: Optional[str] = None

class SubmissionResponse(AssignmentSubmission):
    id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None

class SubmitResponse(BaseModel):
    submission: SubmissionResponse
    ai_grading: str  # 'completed' or 'failed'
    ai_error: Optional[str] = None

class GradeRequest(BaseModel):
    grade: int
    teacher_feedback: Optional[str] = None
