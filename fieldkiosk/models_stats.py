"""Survey outcome statistics pulled from Salesforce reports"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from .database import Base
from .models import SerializableMixin

STATUS_CATEGORIES = ("bad_contact", "dead", "still_contacting", "install", "demo")


class EmployeeSurveyStats(SerializableMixin, Base):
    """Per-employee, per-day outcome counts"""

    __tablename__ = "employee_survey_stats"
    __table_args__ = (UniqueConstraint("employee_id", "date", name="uq_employee_stats_day"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    bad_contact_count = Column(Integer, nullable=False, default=0)
    dead_count = Column(Integer, nullable=False, default=0)
    still_contacting_count = Column(Integer, nullable=False, default=0)
    install_count = Column(Integer, nullable=False, default=0)
    demo_count = Column(Integer, nullable=False, default=0)
    total_surveys = Column(Integer, nullable=False, default=0)
    last_synced_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class LeadStatusMapping(SerializableMixin, Base):
    """Maps a Salesforce status value onto one of STATUS_CATEGORIES"""

    __tablename__ = "lead_status_mappings"

    id = Column(Integer, primary_key=True, index=True)
    salesforce_status = Column(String(255), nullable=False)
    category = Column(String(30), nullable=False)
    object_type = Column(String(20), nullable=False, default="lead")  # lead, appointment


class StatsSyncLog(SerializableMixin, Base):
    __tablename__ = "stats_sync_log"

    id = Column(Integer, primary_key=True, index=True)
    sync_started_at = Column(DateTime, nullable=False)
    sync_completed_at = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="running")  # running, completed, failed
    records_processed = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
