"""
Photobook Backend — Notification SQLAlchemy Model
===================================================

What:  ORM model for the `notifications` table (admin and photographer inboxes).
Why:   Delivery is a polled query, so the inbox is just another table.
Who:   Written by NotificationService; polled by badge and dropdown UIs.

Query Patterns:
    - Inbox: WHERE user_id = :u ORDER BY created_at DESC
    - Badge: WHERE user_id = :u AND read = false AND action_required = true
      → idx_notifications_user_unread
    - Resolve after a decision: WHERE related_id = :submission
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from photobook.database import Base

# ── Vocabulary ────────────────────────────────────────────────────────────
NOTIFICATION_TYPES = frozenset({
    # Requests that need an admin decision
    "gallery_homepage_request",
    "story_homepage_request",
    "photographer_registration",
    "category_suggestion",
    "city_suggestion",
    # Decision outcomes sent to owners
    "gallery_approved",
    "gallery_rejected",
    "story_approved",
    "story_rejected",
    "photographer_approved",
    "photographer_rejected",
    "category_approved",
    "category_rejected",
    "city_approved",
    "city_rejected",
    "account_blocked",
    "account_unblocked",
    # Free-form messages posted through the API
    "general",
})


class Notification(Base):
    """An inbox record describing an event requiring or informing of attention."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Target inbox: 'admin' or a photographer id",
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    action_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    related_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    related_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_notifications_user_unread", "user_id", "read", "action_required"),
        Index("idx_notifications_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, user='{self.user_id}', "
            f"type='{self.type}', read={self.read})>"
        )
