"""Scheduling schemas - shifts and time-off requests"""

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def _check_date(v: str) -> str:
    if not DATE_PATTERN.match(v):
        raise ValueError("Date must be YYYY-MM-DD")
    return v


class ScheduleCreate(BaseModel):
    id: Optional[str] = None
    employee_id: str
    date: str
    start_time: str
    end_time: str
    store: str
    status: Literal["scheduled", "completed", "missed"] = "scheduled"

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return _check_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        if not TIME_PATTERN.match(v):
            raise ValueError("Time must be HH:MM")
        return v


class ScheduleResponse(BaseModel):
    id: str
    employee_id: str
    date: str
    start_time: str
    end_time: str
    store: str
    status: str

    class Config:
        from_attributes = True


class TimeOffRequestCreate(BaseModel):
    id: Optional[str] = None
    employee_id: str
    start_date: str
    end_date: str
    reason: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_dates(cls, v):
        return _check_date(v)

    @field_validator("end_date")
    @classmethod
    def validate_range(cls, v, info):
        start = info.data.get("start_date")
        if start and v < start:
            raise ValueError("End date must be on or after start date")
        return v


class TimeOffReview(BaseModel):
    status: Literal["approved", "denied"]
    reviewed_by: Optional[str] = None


class TimeOffRequestResponse(BaseModel):
    id: str
    employee_id: str
    start_date: str
    end_date: str
    reason: Optional[str] = None
    status: str
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    class Config:
        from_attributes = True
