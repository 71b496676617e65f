from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


class NotificationLog(Base):
    """Track SMS and email messages sent by the server-side functions"""

    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, index=True)
    channel = Column(String(10), nullable=False)  # sms, email
    recipient = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=True)
    body = Column(Text, nullable=False)
    message_type = Column(String(50), nullable=False, default="generic")

    # Provider response
    provider = Column(String(20), nullable=True)  # twilio, sendgrid, resend
    provider_message_id = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False)  # sent, failed
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
