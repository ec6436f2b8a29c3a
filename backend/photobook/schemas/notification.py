"""
Photobook Backend — Notification Schemas
==========================================

What:  Request and response contracts for /api/notifications.
Who:   NotificationCreate doubles as the in-process event passed to
       NotificationService.notify() by the workflow.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from photobook.models.notification import Notification
from photobook.schemas.common import CamelModel


class NotificationCreate(CamelModel):
    """A notification to insert (API body or workflow event)."""
    type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=255)
    message: str = ""
    user_id: str = Field(min_length=1, max_length=64)
    related_id: Optional[uuid.UUID] = None
    related_type: Optional[str] = None
    action_required: bool = False


class NotificationUpdate(CamelModel):
    """
    Body of PUT /api/notifications.

    Two shapes are accepted:
        {"id": "...", "read": true, "actionRequired": false}
        {"markAllRead": true, "userId": "admin"}
    """
    id: Optional[uuid.UUID] = None
    read: Optional[bool] = None
    action_required: Optional[bool] = None
    mark_all_read: bool = False
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def check_shape(self) -> "NotificationUpdate":
        if self.mark_all_read:
            if not self.user_id:
                raise ValueError("userId is required with markAllRead")
        elif self.id is None:
            raise ValueError("id is required unless markAllRead is set")
        return self


class NotificationOut(CamelModel):
    id: uuid.UUID
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    action_required: bool
    related_id: Optional[uuid.UUID] = None
    related_type: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_row(cls, row: Notification) -> "NotificationOut":
        return cls(
            id=row.id,
            user_id=row.user_id,
            type=row.type,
            title=row.title,
            message=row.message,
            read=row.read,
            action_required=row.action_required,
            related_id=row.related_id,
            related_type=row.related_type,
            created_at=row.created_at,
        )


class NotificationEnvelope(CamelModel):
    success: bool = True
    notification: NotificationOut


class NotificationListResponse(CamelModel):
    success: bool = True
    notifications: List[NotificationOut]
    unread_count: int


class MarkAllReadResponse(CamelModel):
    success: bool = True
    message: str = "All notifications marked as read"
    updated: int


class PendingCountResponse(CamelModel):
    success: bool = True
    user_id: str
    count: int
