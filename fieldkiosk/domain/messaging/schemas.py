"""Messaging schemas - team messages and admin alerts"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator


def _required_text(v: str, field: str) -> str:
    if v is None or not str(v).strip():
        raise ValueError(f"{field} is required")
    return v


class MessageCreate(BaseModel):
    """id is generated by the sending device"""

    id: str
    sender_id: str
    sender_name: str
    recipient_ids: list[str] = []
    content: str
    timestamp: Optional[datetime] = None

    @field_validator("id", "sender_id", "sender_name", "content")
    @classmethod
    def validate_required(cls, v, info):
        return _required_text(v, info.field_name)


class MessageResponse(BaseModel):
    id: str
    sender_id: str
    sender_name: str
    recipient_ids: list[str] = []
    content: str
    timestamp: datetime
    read_by: list[str] = []
    reactions: dict[str, list[str]] = {}
    is_group_message: bool = False

    class Config:
        from_attributes = True


class MessageRead(BaseModel):
    employee_id: str


class ReactionCreate(BaseModel):
    employee_id: str
    emoji: str

    @field_validator("emoji")
    @classmethod
    def validate_emoji(cls, v):
        return _required_text(v, "emoji")


AlertPriority = Literal["low", "medium", "high", "urgent"]


class AlertCreate(BaseModel):
    id: Optional[str] = None
    sender_id: str
    sender_name: str
    title: str
    message: str
    priority: AlertPriority = "medium"
    recipient_ids: list[str] = []
    expires_at: Optional[datetime] = None

    @field_validator("title", "message")
    @classmethod
    def validate_required(cls, v, info):
        return _required_text(v, info.field_name)


class AlertResponse(BaseModel):
    id: str
    sender_id: str
    sender_name: str
    title: str
    message: str
    priority: str
    recipient_ids: list[str] = []
    is_group_alert: bool = False
    timestamp: datetime
    read_by: list[str] = []
    dismissed_by: list[str] = []
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AlertAction(BaseModel):
    employee_id: str
