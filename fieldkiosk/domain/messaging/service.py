"""Messaging service - team chat and admin alerts"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Alert, Message, generate_id, parse_datetime, utcnow
from .repository import MessagingRepository
from .schemas import AlertCreate, MessageCreate

logger = logging.getLogger(__name__)


def is_alert_visible(alert: Alert, employee_id: str) -> bool:
    """Group alerts reach everyone; others only their recipients"""
    return bool(alert.is_group_alert) or employee_id in (alert.recipient_ids or [])


def is_alert_expired(alert: Alert, now=None) -> bool:
    now = now or utcnow()
    return alert.expires_at is not None and alert.expires_at < now


class MessagingService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = MessagingRepository()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def get_messages(self, employee_id: Optional[str] = None) -> list[Message]:
        messages = self.repo.get_messages(self.db)
        if employee_id:
            messages = [
                m
                for m in messages
                if m.is_group_message or m.sender_id == employee_id or employee_id in (m.recipient_ids or [])
            ]
        return messages

    def add_message(self, data: MessageCreate) -> Message:
        if self.repo.get_message(self.db, data.id):
            raise HTTPException(status_code=409, detail="Message already exists")
        message = Message(
            id=data.id,
            sender_id=data.sender_id,
            sender_name=data.sender_name,
            recipient_ids=list(data.recipient_ids),
            content=data.content,
            timestamp=parse_datetime(data.timestamp) or utcnow(),
            read_by=[data.sender_id],
            reactions={},
            is_group_message=not data.recipient_ids,
        )
        message = self.repo.save(self.db, message)
        logger.info(f"💬 Message {message.id} from {data.sender_name}: {data.content[:30]}")
        return message

    def _get_message(self, message_id: str) -> Message:
        message = self.repo.get_message(self.db, message_id)
        if not message:
            raise HTTPException(status_code=404, detail="Message not found")
        return message

    def mark_message_read(self, message_id: str, employee_id: str) -> Message:
        message = self._get_message(message_id)
        read_by = list(message.read_by or [])
        if employee_id in read_by:
            return message
        message.read_by = read_by + [employee_id]
        return self.repo.save(self.db, message)

    def add_reaction(self, message_id: str, employee_id: str, emoji: str) -> Message:
        message = self._get_message(message_id)
        reactions = {key: list(ids) for key, ids in (message.reactions or {}).items()}
        reactors = reactions.setdefault(emoji, [])
        if employee_id in reactors:
            return message
        reactors.append(employee_id)
        message.reactions = reactions
        return self.repo.save(self.db, message)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def add_alert(self, data: AlertCreate) -> Alert:
        alert = Alert(
            id=data.id or generate_id(),
            sender_id=data.sender_id,
            sender_name=data.sender_name,
            title=data.title,
            message=data.message,
            priority=data.priority,
            recipient_ids=list(data.recipient_ids),
            is_group_alert=not data.recipient_ids,
            timestamp=utcnow(),
            read_by=[],
            dismissed_by=[],
            expires_at=parse_datetime(data.expires_at),
        )
        alert = self.repo.save(self.db, alert)
        audience = "all employees" if alert.is_group_alert else f"{len(alert.recipient_ids)} recipient(s)"
        logger.info(f"🚨 {alert.priority.upper()} alert '{alert.title}' sent to {audience}")
        return alert

    def get_active_alerts(self, employee_id: Optional[str] = None) -> list[Alert]:
        """Unexpired alerts; for an employee also visible and not dismissed"""
        now = utcnow()
        alerts = [a for a in self.repo.get_alerts(self.db) if not is_alert_expired(a, now)]
        if employee_id:
            alerts = [
                a
                for a in alerts
                if is_alert_visible(a, employee_id) and employee_id not in (a.dismissed_by or [])
            ]
        return alerts

    def _get_alert(self, alert_id: str) -> Alert:
        alert = self.repo.get_alert(self.db, alert_id)
        if not alert:
            raise HTTPException(status_code=404, detail="Alert not found")
        return alert

    def mark_alert_read(self, alert_id: str, employee_id: str) -> Alert:
        alert = self._get_alert(alert_id)
        read_by = list(alert.read_by or [])
        if employee_id in read_by:
            return alert
        alert.read_by = read_by + [employee_id]
        return self.repo.save(self.db, alert)

    def dismiss_alert(self, alert_id: str, employee_id: str) -> Alert:
        alert = self._get_alert(alert_id)
        dismissed_by = list(alert.dismissed_by or [])
        if employee_id in dismissed_by:
            return alert
        alert.dismissed_by = dismissed_by + [employee_id]
        return self.repo.save(self.db, alert)
