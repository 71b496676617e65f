"""Survey domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

SurveyCategory = Literal["renter", "survey", "appointment"]


class AppointmentSchema(BaseModel):
    address: str
    email: Optional[str] = ""
    date: str
    time: str
    notes: Optional[str] = None


class SurveyCreate(BaseModel):
    """Schema for submitting a survey from the kiosk"""

    id: Optional[str] = None
    employee_id: str
    employee_alias: Optional[str] = None
    store: str
    store_name: Optional[str] = None
    store_number: Optional[str] = None
    store_address: Optional[str] = None
    timestamp: Optional[datetime] = None
    answers: dict[str, Any] = {}
    signature: Optional[str] = None
    category: SurveyCategory
    appointment: Optional[AppointmentSchema] = None
    location_verified: bool = False

    @field_validator("appointment")
    @classmethod
    def validate_appointment(cls, v, info):
        if info.data.get("category") == "appointment" and v is None:
            raise ValueError("Appointment details are required for appointment surveys")
        return v


class SurveySyncStatusUpdate(BaseModel):
    """Status flags written back after CRM sync"""

    synced_to_salesforce: Optional[bool] = None
    synced_to_zapier: Optional[bool] = None
    is_duplicate: Optional[bool] = None
    duplicate_info: Optional[dict[str, Any]] = None
    sync_error: Optional[str] = None
    salesforce_id: Optional[str] = None
    salesforce_verified: Optional[bool] = None
    salesforce_verified_at: Optional[datetime] = None


class SurveyResponse(BaseModel):
    id: str
    employee_id: str
    employee_alias: Optional[str] = None
    store: str
    store_name: Optional[str] = None
    store_number: Optional[str] = None
    store_address: Optional[str] = None
    timestamp: datetime
    answers: dict[str, Any] = {}
    signature: Optional[str] = None
    category: str
    appointment: Optional[dict[str, Any]] = None
    synced_to_salesforce: bool = False
    synced_to_zapier: bool = False
    is_duplicate: bool = False
    duplicate_reviewed: bool = False
    duplicate_info: Optional[dict[str, Any]] = None
    location_verified: bool = False
    sync_error: Optional[str] = None
    salesforce_id: Optional[str] = None
    salesforce_verified: bool = False
    salesforce_verified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SurveySaveResponse(BaseModel):
    success: bool
    survey: Optional[SurveyResponse] = None
    synced: bool = False
    error: Optional[str] = None
