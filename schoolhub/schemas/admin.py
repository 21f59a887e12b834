from pydantic import BaseModel
from typing import Literal

class AdminStats(BaseModel):
    total_users: int
    total_classes: int
    total_students: int
    total_teachers: int

class ApprovalUpdate(BaseModel):
    status: Literal["approved", "rejected"]
