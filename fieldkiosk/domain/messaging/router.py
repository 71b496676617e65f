"""Messaging router - FastAPI endpoints for messages and alerts"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...webhook_security import require_api_key
from .schemas import (
    AlertAction,
    AlertCreate,
    AlertResponse,
    MessageCreate,
    MessageRead,
    MessageResponse,
    ReactionCreate,
)
from .service import MessagingService

router = APIRouter(tags=["Messaging"], dependencies=[Depends(require_api_key)])


def get_messaging_service(db: Session = Depends(get_db)) -> MessagingService:
    """Dependency injection for MessagingService"""
    return MessagingService(db)


@router.get("/messages", response_model=list[MessageResponse])
async def get_messages(
    employee_id: Optional[str] = Query(None),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.get_messages(employee_id)


@router.post("/messages", response_model=MessageResponse, status_code=201)
async def add_message(data: MessageCreate, service: MessagingService = Depends(get_messaging_service)):
    return service.add_message(data)


@router.post("/messages/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: str,
    data: MessageRead,
    service: MessagingService = Depends(get_messaging_service),
):
    return service.mark_message_read(message_id, data.employee_id)


@router.post("/messages/{message_id}/reactions", response_model=MessageResponse)
async def add_reaction(
    message_id: str,
    data: ReactionCreate,
    service: MessagingService = Depends(get_messaging_service),
):
    return service.add_reaction(message_id, data.employee_id, data.emoji)


@router.get("/alerts", response_model=list[AlertResponse])
async def get_active_alerts(
    employee_id: Optional[str] = Query(None),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.get_active_alerts(employee_id)


@router.post("/alerts", response_model=AlertResponse, status_code=201)
async def add_alert(data: AlertCreate, service: MessagingService = Depends(get_messaging_service)):
    return service.add_alert(data)


@router.post("/alerts/{alert_id}/read", response_model=AlertResponse)
async def mark_alert_read(
    alert_id: str,
    data: AlertAction,
    service: MessagingService = Depends(get_messaging_service),
):
    return service.mark_alert_read(alert_id, data.employee_id)


@router.post("/alerts/{alert_id}/dismiss", response_model=AlertResponse)
async def dismiss_alert(
    alert_id: str,
    data: AlertAction,
    service: MessagingService = Depends(get_messaging_service),
):
    return service.dismiss_alert(alert_id, data.employee_id)
