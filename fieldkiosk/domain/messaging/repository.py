"""Messaging repository - Database operations for messages and alerts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Alert, Message


class MessagingRepository:
    @staticmethod
    def get_messages(db: Session) -> list[Message]:
        return db.query(Message).order_by(Message.timestamp.asc()).all()

    @staticmethod
    def get_message(db: Session, message_id: str) -> Optional[Message]:
        return db.query(Message).filter(Message.id == message_id).first()

    @staticmethod
    def get_alerts(db: Session) -> list[Alert]:
        return db.query(Alert).order_by(Alert.timestamp.desc()).all()

    @staticmethod
    def get_alert(db: Session, alert_id: str) -> Optional[Alert]:
        return db.query(Alert).filter(Alert.id == alert_id).first()

    @staticmethod
    def save(db: Session, instance):
        db.add(instance)
        db.commit()
        db.refresh(instance)
        return instance
