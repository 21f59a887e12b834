from pydantic import BaseModel, ConfigDict, Field

from schoolhub.db.models import NotificationType

class AIGradingRequest(BaseModel):
    submission_id: str = Field(..., alias="submissionId")
    content: str
    assignment_title: str = Field(..., alias="assignmentTitle")

    model_config = ConfigDict(populate_by_name=True)

class AIGradingResponse(BaseModel):
    grade: int
    feedback: str

class NotificationEmailRequest(BaseModel):
    to: str
    student_name: str = Field(..., alias="studentName")
    title: str
    message: str
    type: NotificationType

    model_config = ConfigDict(populate_by_name=True)
