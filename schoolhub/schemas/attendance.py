from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date as date_type

from schoolhub.db.models import Attendance, AttendanceStatus

class AttendanceMark(BaseModel):
    class_id: str
    date: Optional[date_type] = None  # defaults to today
    records: Dict[str, AttendanceStatus]  # student_id -> status

class AttendanceResponse(Attendance):
    id: str

class RosterAttendance(BaseModel):
    student_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    status: Optional[AttendanceStatus] = None  # None when not marked

class ClassAttendanceSheet(BaseModel):
    class_id: str
    date: date_type
    students: List[RosterAttendance]

class TrendPoint(BaseModel):
    date: date_type
    present: int
    total: int
    percentage: int

class StudentClassAttendance(BaseModel):
    class_id: str
    class_name: str
    subject: Optional[str] = None
    present: int
    total: int
    percentage: int

class StudentAttendanceStats(BaseModel):
    student_id: str
    overall_percentage: int
    classes: List[StudentClassAttendance]
    trend: List[TrendPoint]

class TeacherClassAttendance(BaseModel):
    class_id: str
    class_name: str
    total_students: int
    total_records: int
    percentage: int

class TeacherAttendanceStats(BaseModel):
    overall_percentage: int
    classes: List[TeacherClassAttendance]

class PeriodAttendance(BaseModel):
    period: str
    present: int
    total: int
    percentage: int

class MonthComparison(BaseModel):
    period: str
    current: int
    previous: int

class AttendanceAnalytics(BaseModel):
    year: int
    monthly: List[PeriodAttendance]
    yearly: List[PeriodAttendance]
    comparison: List[MonthComparison]
    trend: str  # 'up', 'down' or 'stable'
    trend_change: int
    best_month: Optional[PeriodAttendance] = None
    worst_month: Optional[PeriodAttendance] = None
    average_percentage: int
