from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime, date, time

Role = Literal["admin", "teacher", "student"]
ApprovalStatus = Literal["pending", "approved", "rejected"]
AttendanceStatus = Literal["present", "absent", "late"]
NotificationType = Literal["resource", "grade", "assignment"]

# Storage buckets
ASSIGNMENT_FILES_BUCKET = "assignment-files"
CLASS_RESOURCES_BUCKET = "class-resources"

# Profile model (one per auth.users row)
class Profile(BaseModel):
    id: str
    email: str
    full_name: str
    role: Role
    avatar_url: Optional[str] = None
    approval_status: ApprovalStatus = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Class model
class Class(BaseModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    subject: str
    teacher_id: str
    class_code: str
    room: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Class enrollment, unique per (class_id, student_id)
class ClassEnrollment(BaseModel):
    id: Optional[str] = None
    class_id: str
    student_id: str
    enrolled_at: Optional[datetime] = None

# Assignment model
class Assignment(BaseModel):
    id: Optional[str] = None
    class_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    total_points: int = 100
    file_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Submission model, unique per (assignment_id, student_id)
class AssignmentSubmission(BaseModel):
    id: Optional[str] = None
    assignment_id: str
    student_id: str
    content: str
    file_url: Optional[str] = None
    submitted_at: Optional[datetime] = None
    grade: Optional[int] = None
    ai_feedback: Optional[str] = None
    teacher_feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None

# Attendance model, unique per (class_id, student_id, date)
class Attendance(BaseModel):
    id: Optional[str] = None
    class_id: str
    student_id: str
    date: date
    status: AttendanceStatus
    marked_by: str
    created_at: Optional[datetime] = None

# Announcement model
class Announcement(BaseModel):
    id: Optional[str] = None
    class_id: str
    title: str
    content: str
    created_by: str
    created_at: Optional[datetime] = None

# Timetable entry, day_of_week 0 (Sunday) to 6 (Saturday)
class TimetableEntry(BaseModel):
    id: Optional[str] = None
    class_id: str
    day_of_week: int
    start_time: time
    end_time: time
    subject: str
    room: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Shared class resource
class Resource(BaseModel):
    id: Optional[str] = None
    class_id: str
    title: str
    description: Optional[str] = None
    file_url: str
    file_name: str
    file_size: Optional[int] = None
    category: Optional[str] = None
    uploaded_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# In-app notification
class Notification(BaseModel):
    id: Optional[str] = None
    user_id: str
    title: str
    message: str
    type: str
    related_id: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = None
