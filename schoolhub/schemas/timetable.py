from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import time

from schoolhub.db.models import TimetableEntry

DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

class TimetableCreate(BaseModel):
    class_id: str
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time
    subject: str = Field(..., min_length=1)
    room: Optional[str] = None

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

class TimetableResponse(TimetableEntry):
    id: str
    class_name: Optional[str] = None

class TimetableDay(BaseModel):
    day_of_week: int
    day: str
    entries: List[TimetableResponse]
