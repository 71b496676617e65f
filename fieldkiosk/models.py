import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from .database import Base


def generate_id() -> str:
    """Client-generated record id, stable across local and cloud copies"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value):
    """Accept a datetime or an ISO-8601 string (with optional Z suffix)"""
    if value is None:
        return value
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class SerializableMixin:
    """Plain-dict conversion used by the device store and JSON responses"""

    def to_dict(self) -> dict:
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            data[column.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict):
        values = {}
        for column in cls.__table__.columns:
            if column.name not in data:
                continue
            value = data[column.name]
            # Let column defaults apply instead of writing explicit NULLs
            if value is None and (column.default is not None or column.server_default is not None):
                continue
            if isinstance(column.type, DateTime):
                value = parse_datetime(value)
            values[column.name] = value
        return cls(**values)

    @classmethod
    def normalize(cls, data: dict) -> dict:
        """Round-trip a payload through the model, filling scalar column defaults"""
        record = cls.from_dict(data).to_dict()
        for column in cls.__table__.columns:
            if record.get(column.name) is None and column.default is not None and column.default.is_scalar:
                record[column.name] = column.default.arg
        return record


class Employee(SerializableMixin, Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default="surveyor")  # surveyor, admin, manager
    status = Column(String(20), nullable=False, default="invited")  # active, terminated, invited
    hire_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    onboarding_complete = Column(Boolean, default=False, nullable=False)
    onboarding_step = Column(Integer, default=0, nullable=False)  # 0-6
    documents = Column(JSON, default=list)
    availability = Column(JSON, nullable=True)  # weekday -> {available, startTime, endTime}
    adp_employee_id = Column(String(100), nullable=True, index=True)
    personal_info = Column(JSON, nullable=True)  # ssn is stored encrypted
    invite_token = Column(String(100), nullable=True)
    invite_sent_at = Column(DateTime, nullable=True)
    profile_picture_uri = Column(Text, nullable=True)
    is_team_lead = Column(Boolean, default=False, nullable=False)
    team_lead_id = Column(String(36), nullable=True)
    alias = Column(String(50), nullable=True)  # matches the Salesforce Surveyor field
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TimeEntry(SerializableMixin, Base):
    __tablename__ = "time_entries"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    clock_in = Column(DateTime, nullable=False)
    clock_out = Column(DateTime, nullable=True)
    store = Column(String(50), nullable=True)  # Lowes, Home Depot
    store_name = Column(String(100), nullable=True)  # e.g. HOME DEPOT 0808
    store_number = Column(String(20), nullable=True)
    store_address = Column(String(255), nullable=True)
    synced_to_adp = Column(Boolean, default=False, nullable=False)
    is_active_in_kiosk = Column(Boolean, default=True, nullable=False)
    gps_coordinates = Column(JSON, nullable=True)  # {latitude, longitude, accuracy}
    photo_uri = Column(Text, nullable=True)
    location_verified = Column(Boolean, default=False, nullable=False)
    distance_from_store = Column(Float, nullable=True)  # meters
    created_at = Column(DateTime, server_default=func.now())


class Survey(SerializableMixin, Base):
    __tablename__ = "surveys"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    employee_alias = Column(String(10), nullable=True)
    store = Column(String(50), nullable=False)
    store_name = Column(String(100), nullable=True)
    store_number = Column(String(20), nullable=True)
    store_address = Column(String(255), nullable=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    answers = Column(JSON, default=dict)
    signature = Column(Text, nullable=True)
    category = Column(String(20), nullable=False)  # renter, survey, appointment
    appointment = Column(JSON, nullable=True)  # {address, email, date, time, notes}
    synced_to_salesforce = Column(Boolean, default=False, nullable=False)
    synced_to_zapier = Column(Boolean, default=False, nullable=False)
    is_duplicate = Column(Boolean, default=False, nullable=False)
    duplicate_reviewed = Column(Boolean, default=False, nullable=False)
    duplicate_info = Column(JSON, nullable=True)
    location_verified = Column(Boolean, default=False, nullable=False)
    sync_error = Column(Text, nullable=True)
    salesforce_id = Column(String(50), nullable=True)
    salesforce_verified = Column(Boolean, default=False, nullable=False)
    salesforce_verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Schedule(SerializableMixin, Base):
    __tablename__ = "schedules"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    store = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="scheduled")  # scheduled, completed, missed
    created_at = Column(DateTime, server_default=func.now())


class TimeOffRequest(SerializableMixin, Base):
    __tablename__ = "time_off_requests"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    start_date = Column(String(10), nullable=False)
    end_date = Column(String(10), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, approved, denied
    requested_at = Column(DateTime, nullable=False, default=utcnow)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), nullable=True)


class Message(SerializableMixin, Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    sender_id = Column(String(36), nullable=False, index=True)
    sender_name = Column(String(255), nullable=False)
    recipient_ids = Column(JSON, default=list)  # empty = group message to all
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    read_by = Column(JSON, default=list)
    reactions = Column(JSON, default=dict)  # emoji -> [employee_id]
    is_group_message = Column(Boolean, default=False, nullable=False)


class Alert(SerializableMixin, Base):
    __tablename__ = "alerts"

    id = Column(String(36), primary_key=True, default=generate_id)
    sender_id = Column(String(36), nullable=False)
    sender_name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(10), nullable=False, default="medium")  # low, medium, high, urgent
    recipient_ids = Column(JSON, default=list)  # empty = all employees
    is_group_alert = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    read_by = Column(JSON, default=list)
    dismissed_by = Column(JSON, default=list)
    expires_at = Column(DateTime, nullable=True)


class CompensationSettings(SerializableMixin, Base):
    __tablename__ = "compensation_settings"

    id = Column(Integer, primary_key=True, index=True)
    base_hourly_rate = Column(Float, nullable=False, default=15.0)
    survey_install_bonus = Column(Float, nullable=False, default=10.0)
    appointment_install_bonus = Column(Float, nullable=False, default=25.0)
    quota = Column(Float, nullable=False, default=5.0)  # surveys per hour
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class OnboardingData(SerializableMixin, Base):
    __tablename__ = "onboarding_data"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), unique=True, nullable=False)
    step = Column(Integer, nullable=False, default=0)  # 0-6
    personal_info = Column(JSON, nullable=True)
    w4_signature = Column(Text, nullable=True)
    w4_data = Column(JSON, nullable=True)
    i9_signature = Column(Text, nullable=True)
    i9_data = Column(JSON, nullable=True)
    drivers_license_uri = Column(Text, nullable=True)
    direct_deposit_data = Column(JSON, nullable=True)
    acknowledgments = Column(JSON, default=dict)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class InactivityLog(SerializableMixin, Base):
    __tablename__ = "inactivity_log"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    time_entry_id = Column(String(36), nullable=True)
    last_activity_at = Column(DateTime, nullable=True)
    inactive_duration_minutes = Column(Integer, nullable=False, default=0)
    current_page = Column(String(255), nullable=True)
    action_taken = Column(String(50), nullable=True)  # e.g. force_clocked_out
    admin_id = Column(String(36), nullable=True)
    notes = Column(Text, nullable=True)
    detected_at = Column(DateTime, nullable=False, default=utcnow, index=True)
