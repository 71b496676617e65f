"""Employee service - roster, kiosk session, onboarding and compensation"""

import logging
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Employee, generate_id, utcnow
from ...security_utils import decrypt_personal_info, encrypt_personal_info, mask_ssn
from ...shared.validators import generate_employee_alias
from ...storage.local_store import CURRENT_USER_KEY, LocalStore
from .repository import EmployeeRepository
from .schemas import (
    CompensationSettingsSchema,
    EmployeeCreate,
    EmployeeUpdate,
    OnboardingDataSchema,
    OnboardingStepUpdate,
)

logger = logging.getLogger(__name__)

ONBOARDING_FINAL_STEP = 6

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _availability(start: str, end: str, saturday: Optional[tuple[str, str]] = None) -> dict[str, Any]:
    availability: dict[str, Any] = {
        day: {"available": True, "startTime": start, "endTime": end} for day in WEEKDAYS[:5]
    }
    availability["saturday"] = (
        {"available": True, "startTime": saturday[0], "endTime": saturday[1]} if saturday else {"available": False}
    )
    availability["sunday"] = {"available": False}
    return availability


DEMO_ACCOUNTS = [
    {
        "email": "admin@rainsoft.com",
        "first_name": "Admin",
        "last_name": "User",
        "phone": "555-0100",
        "role": "admin",
        "status": "active",
        "hire_date": "2024-01-01",
        "onboarding_complete": True,
        "onboarding_step": ONBOARDING_FINAL_STEP,
        "availability": _availability("08:00", "17:00"),
    },
    {
        "email": "surveyor@rainsoft.com",
        "first_name": "John",
        "last_name": "Surveyor",
        "phone": "555-0101",
        "role": "surveyor",
        "status": "active",
        "hire_date": "2024-06-01",
        "onboarding_complete": True,
        "onboarding_step": ONBOARDING_FINAL_STEP,
        "availability": _availability("09:00", "17:00", saturday=("10:00", "15:00")),
    },
]


def present_personal_info(personal_info: Optional[dict]) -> Optional[dict]:
    """Decrypted personal info with the SSN masked, safe for API responses"""
    info = decrypt_personal_info(personal_info)
    if info and info.get("ssn"):
        info["ssn"] = mask_ssn(info["ssn"])
    return info


class EmployeeService:
    """Service layer for employee business logic"""

    def __init__(self, db: Session, local_db: Optional[Session] = None):
        self.db = db
        self.repo = EmployeeRepository()
        self.kv = LocalStore(local_db) if local_db is not None else None

    def _present(self, employee: Employee) -> dict:
        data = employee.to_dict()
        data["personal_info"] = present_personal_info(employee.personal_info)
        return data

    def _get_or_404(self, employee_id: str) -> Employee:
        employee = self.repo.get_employee(self.db, employee_id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        return employee

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def get_employees(self) -> list[dict]:
        return [self._present(e) for e in self.repo.get_employees(self.db)]

    def get_employee(self, employee_id: str) -> dict:
        return self._present(self._get_or_404(employee_id))

    def add_employee(self, data: EmployeeCreate) -> dict:
        if self.repo.get_employee_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="An employee with this email already exists")

        values = data.model_dump()
        values["id"] = values.get("id") or generate_id()
        values["alias"] = values.get("alias") or generate_employee_alias(data.first_name, data.last_name)
        values["personal_info"] = encrypt_personal_info(values.get("personal_info"))

        employee = self.repo.create_employee(self.db, **values)
        logger.info(f"✅ Employee {employee.id} added ({employee.role})")
        return self._present(employee)

    def update_employee(self, employee_id: str, data: EmployeeUpdate) -> dict:
        employee = self._get_or_404(employee_id)
        updates = data.model_dump(exclude_unset=True)
        if "personal_info" in updates:
            updates["personal_info"] = encrypt_personal_info(updates["personal_info"])
        if updates.get("email") and updates["email"] != employee.email:
            if self.repo.get_employee_by_email(self.db, updates["email"]):
                raise HTTPException(status_code=409, detail="An employee with this email already exists")

        employee = self.repo.update_employee(self.db, employee, **updates)
        logger.info(f"✅ Employee {employee_id} updated: {', '.join(sorted(updates)) or 'no changes'}")
        return self._present(employee)

    def terminate_employee(self, employee_id: str) -> dict:
        """Mark terminated and drop every schedule after today"""
        employee = self._get_or_404(employee_id)
        employee = self.repo.update_employee(self.db, employee, status="terminated")
        today = utcnow().date().isoformat()
        deleted = self.repo.delete_future_schedules(self.db, employee_id, today)
        logger.info(f"🚫 Employee {employee_id} terminated, {deleted} future schedules removed")
        return self._present(employee)

    # ------------------------------------------------------------------
    # Kiosk session
    # ------------------------------------------------------------------

    def set_current_user(self, employee_id: Optional[str]) -> Optional[dict]:
        if self.kv is None:
            raise HTTPException(status_code=500, detail="Device store unavailable")
        if employee_id is None:
            self.kv.delete(CURRENT_USER_KEY)
            logger.info("👋 Kiosk session cleared")
            return None
        employee = self.get_employee(employee_id)
        self.kv.set(CURRENT_USER_KEY, employee)
        logger.info(f"👤 Kiosk session started for employee {employee_id}")
        return employee

    def get_current_user(self) -> Optional[dict]:
        if self.kv is None:
            return None
        return self.kv.get(CURRENT_USER_KEY)

    # ------------------------------------------------------------------
    # Onboarding
    # ------------------------------------------------------------------

    def _present_onboarding(self, onboarding) -> dict:
        data = onboarding.to_dict()
        data["personal_info"] = present_personal_info(onboarding.personal_info)
        return data

    def get_onboarding_data(self, employee_id: str) -> dict:
        onboarding = self.repo.get_onboarding(self.db, employee_id)
        if not onboarding:
            raise HTTPException(status_code=404, detail="Onboarding data not found")
        return self._present_onboarding(onboarding)

    def save_onboarding_data(self, employee_id: str, data: OnboardingDataSchema) -> dict:
        self._get_or_404(employee_id)
        values = data.model_dump(exclude_none=True)
        if "personal_info" in values:
            values["personal_info"] = encrypt_personal_info(values["personal_info"])
        onboarding = self.repo.upsert_onboarding(self.db, employee_id, **values)
        return self._present_onboarding(onboarding)

    def update_onboarding_step(self, employee_id: str, data: OnboardingStepUpdate) -> dict:
        """Record a finished step; the final step activates the employee"""
        employee = self._get_or_404(employee_id)
        completed = data.step == ONBOARDING_FINAL_STEP

        values = data.model_dump(exclude_none=True)
        if "personal_info" in values:
            values["personal_info"] = encrypt_personal_info(values["personal_info"])
        if completed:
            values["completed_at"] = utcnow()
        onboarding = self.repo.upsert_onboarding(self.db, employee_id, **values)

        employee_updates: dict[str, Any] = {"onboarding_step": data.step, "onboarding_complete": completed}
        if completed:
            employee_updates["status"] = "active"
        self.repo.update_employee(self.db, employee, **employee_updates)

        if completed:
            logger.info(f"🎉 Employee {employee_id} completed onboarding")
        else:
            logger.info(f"📝 Employee {employee_id} reached onboarding step {data.step}")
        return self._present_onboarding(onboarding)

    # ------------------------------------------------------------------
    # Compensation
    # ------------------------------------------------------------------

    def get_compensation_settings(self) -> CompensationSettingsSchema:
        settings = self.repo.get_compensation_settings(self.db)
        if settings is None:
            return CompensationSettingsSchema()
        return CompensationSettingsSchema.model_validate(settings)

    def save_compensation_settings(self, data: CompensationSettingsSchema) -> CompensationSettingsSchema:
        settings = self.repo.save_compensation_settings(self.db, **data.model_dump())
        logger.info("✅ Compensation settings saved")
        return CompensationSettingsSchema.model_validate(settings)

    # ------------------------------------------------------------------
    # Demo accounts
    # ------------------------------------------------------------------

    def initialize_demo_data(self) -> list[str]:
        """Create whichever demo accounts are missing; returns the created emails"""
        created = []
        for account in DEMO_ACCOUNTS:
            if self.repo.get_employee_by_email(self.db, account["email"]):
                continue
            self.repo.create_employee(
                self.db,
                id=generate_id(),
                alias=generate_employee_alias(account["first_name"], account["last_name"]),
                **account,
            )
            created.append(account["email"])
            logger.info(f"✅ Demo account created: {account['email']}")
        if not created:
            logger.info("✅ Demo accounts already exist")
        return created
