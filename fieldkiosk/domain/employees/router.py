"""Employee router - FastAPI endpoints for employees, onboarding and compensation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...local_database import get_local_db
from ...webhook_security import require_api_key
from .schemas import (
    CompensationSettingsSchema,
    CurrentUserUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    OnboardingDataResponse,
    OnboardingDataSchema,
    OnboardingStepUpdate,
)
from .service import EmployeeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["Employees"], dependencies=[Depends(require_api_key)])
compensation_router = APIRouter(
    prefix="/compensation-settings", tags=["Compensation"], dependencies=[Depends(require_api_key)]
)


def get_employee_service(
    db: Session = Depends(get_db),
    local_db: Session = Depends(get_local_db),
) -> EmployeeService:
    """Dependency injection for EmployeeService"""
    return EmployeeService(db, local_db)


@router.get("", response_model=list[EmployeeResponse])
async def get_employees(service: EmployeeService = Depends(get_employee_service)):
    return service.get_employees()


@router.post("", response_model=EmployeeResponse, status_code=201)
async def add_employee(data: EmployeeCreate, service: EmployeeService = Depends(get_employee_service)):
    return service.add_employee(data)


@router.post("/demo-data")
async def initialize_demo_data(service: EmployeeService = Depends(get_employee_service)):
    """Create the demo admin and surveyor accounts if they are missing"""
    return {"created": service.initialize_demo_data()}


@router.get("/session", response_model=Optional[EmployeeResponse])
async def get_current_user(service: EmployeeService = Depends(get_employee_service)):
    return service.get_current_user()


@router.put("/session", response_model=Optional[EmployeeResponse])
async def set_current_user(data: CurrentUserUpdate, service: EmployeeService = Depends(get_employee_service)):
    return service.set_current_user(data.employee_id)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: str, service: EmployeeService = Depends(get_employee_service)):
    return service.get_employee(employee_id)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: str,
    data: EmployeeUpdate,
    service: EmployeeService = Depends(get_employee_service),
):
    return service.update_employee(employee_id, data)


@router.post("/{employee_id}/terminate", response_model=EmployeeResponse)
async def terminate_employee(employee_id: str, service: EmployeeService = Depends(get_employee_service)):
    return service.terminate_employee(employee_id)


@router.get("/{employee_id}/onboarding", response_model=OnboardingDataResponse)
async def get_onboarding_data(employee_id: str, service: EmployeeService = Depends(get_employee_service)):
    return service.get_onboarding_data(employee_id)


@router.put("/{employee_id}/onboarding", response_model=OnboardingDataResponse)
async def save_onboarding_data(
    employee_id: str,
    data: OnboardingDataSchema,
    service: EmployeeService = Depends(get_employee_service),
):
    return service.save_onboarding_data(employee_id, data)


@router.post("/{employee_id}/onboarding/step", response_model=OnboardingDataResponse)
async def update_onboarding_step(
    employee_id: str,
    data: OnboardingStepUpdate,
    service: EmployeeService = Depends(get_employee_service),
):
    return service.update_onboarding_step(employee_id, data)


@compensation_router.get("", response_model=CompensationSettingsSchema)
async def get_compensation_settings(service: EmployeeService = Depends(get_employee_service)):
    return service.get_compensation_settings()


@compensation_router.put("", response_model=CompensationSettingsSchema)
async def save_compensation_settings(
    data: CompensationSettingsSchema,
    service: EmployeeService = Depends(get_employee_service),
):
    return service.save_compensation_settings(data)
