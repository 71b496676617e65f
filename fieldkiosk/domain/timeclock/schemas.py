"""Time clock schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class GPSCoordinates(BaseModel):
    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v):
        if not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v):
        if not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return v


class ClockInRequest(BaseModel):
    id: Optional[str] = None
    employee_id: str
    store: Optional[str] = None
    gps_coordinates: Optional[GPSCoordinates] = None
    photo_uri: Optional[str] = None


class ClockOutRequest(BaseModel):
    employee_id: str


class KioskActiveUpdate(BaseModel):
    employee_id: str
    is_active: bool


class ForceClockOutRequest(BaseModel):
    admin_id: str
    reason: Optional[str] = None


class InactivityLogCreate(BaseModel):
    employee_id: str
    time_entry_id: Optional[str] = None
    last_activity_at: Optional[datetime] = None
    inactive_duration_minutes: int = 0
    current_page: Optional[str] = None
    action_taken: Optional[str] = None
    admin_id: Optional[str] = None
    notes: Optional[str] = None


class InactivityLogResponse(BaseModel):
    id: int
    employee_id: str
    time_entry_id: Optional[str] = None
    last_activity_at: Optional[datetime] = None
    inactive_duration_minutes: int = 0
    current_page: Optional[str] = None
    action_taken: Optional[str] = None
    admin_id: Optional[str] = None
    notes: Optional[str] = None
    detected_at: datetime

    class Config:
        from_attributes = True


class TimeEntryResponse(BaseModel):
    id: str
    employee_id: str
    clock_in: datetime
    clock_out: Optional[datetime] = None
    store: Optional[str] = None
    store_name: Optional[str] = None
    store_number: Optional[str] = None
    store_address: Optional[str] = None
    synced_to_adp: bool = False
    is_active_in_kiosk: bool = True
    gps_coordinates: Optional[dict] = None
    photo_uri: Optional[str] = None
    location_verified: bool = False
    distance_from_store: Optional[float] = None

    class Config:
        from_attributes = True


class TimeEntrySaveResponse(BaseModel):
    success: bool
    time_entry: Optional[TimeEntryResponse] = None
    synced: bool = False
    error: Optional[str] = None
