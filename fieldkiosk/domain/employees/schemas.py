"""Employee domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_us_phone

EmployeeRole = Literal["surveyor", "admin", "manager"]
EmployeeStatus = Literal["active", "terminated", "invited"]


class EmployeeCreate(BaseModel):
    """Schema for adding an employee"""

    id: Optional[str] = None
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: EmployeeRole = "surveyor"
    status: EmployeeStatus = "invited"
    hire_date: Optional[str] = None
    availability: Optional[dict[str, Any]] = None
    personal_info: Optional[dict[str, Any]] = None
    is_team_lead: bool = False
    team_lead_id: Optional[str] = None
    alias: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class EmployeeUpdate(BaseModel):
    """Schema for updating an employee; unset fields are left alone"""

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[EmployeeRole] = None
    status: Optional[EmployeeStatus] = None
    hire_date: Optional[str] = None
    onboarding_complete: Optional[bool] = None
    onboarding_step: Optional[int] = None
    documents: Optional[list[Any]] = None
    availability: Optional[dict[str, Any]] = None
    adp_employee_id: Optional[str] = None
    personal_info: Optional[dict[str, Any]] = None
    invite_token: Optional[str] = None
    invite_sent_at: Optional[datetime] = None
    profile_picture_uri: Optional[str] = None
    is_team_lead: Optional[bool] = None
    team_lead_id: Optional[str] = None
    alias: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class EmployeeResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: str
    status: str
    hire_date: Optional[str] = None
    onboarding_complete: bool = False
    onboarding_step: int = 0
    documents: Optional[list[Any]] = None
    availability: Optional[dict[str, Any]] = None
    adp_employee_id: Optional[str] = None
    personal_info: Optional[dict[str, Any]] = None
    profile_picture_uri: Optional[str] = None
    is_team_lead: bool = False
    team_lead_id: Optional[str] = None
    alias: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CurrentUserUpdate(BaseModel):
    """employee_id None signs the kiosk out"""

    employee_id: Optional[str] = None


class OnboardingDataSchema(BaseModel):
    step: Optional[int] = None
    personal_info: Optional[dict[str, Any]] = None
    w4_signature: Optional[str] = None
    w4_data: Optional[dict[str, Any]] = None
    i9_signature: Optional[str] = None
    i9_data: Optional[dict[str, Any]] = None
    drivers_license_uri: Optional[str] = None
    direct_deposit_data: Optional[dict[str, Any]] = None
    acknowledgments: Optional[dict[str, Any]] = None

    @field_validator("step")
    @classmethod
    def validate_step(cls, v):
        if v is not None and not 0 <= v <= 6:
            raise ValueError("Onboarding step must be between 0 and 6")
        return v


class OnboardingStepUpdate(OnboardingDataSchema):
    step: int


class OnboardingDataResponse(BaseModel):
    employee_id: str
    step: int = 0
    personal_info: Optional[dict[str, Any]] = None
    w4_signature: Optional[str] = None
    w4_data: Optional[dict[str, Any]] = None
    i9_signature: Optional[str] = None
    i9_data: Optional[dict[str, Any]] = None
    drivers_license_uri: Optional[str] = None
    direct_deposit_data: Optional[dict[str, Any]] = None
    acknowledgments: Optional[dict[str, Any]] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CompensationSettingsSchema(BaseModel):
    base_hourly_rate: float = 15.0
    survey_install_bonus: float = 10.0
    appointment_install_bonus: float = 25.0
    quota: float = 5.0

    class Config:
        from_attributes = True
