"""
Photobook Backend — Submission SQLAlchemy Model
=================================================

What:  ORM model for the `submissions` table.
Why:   Galleries, stories, photographer registrations, and category/city
       suggestions all move through the same pending → decided lifecycle.
       One table with a `resource_type` discriminator replaces five
       near-identical collections with drifting field names.
Who:   Used by SubmissionService and ApprovalWorkflow; read by Alembic.

Table Design Rationale:
    - resource_type: discriminator, one of RESOURCE_TYPES
    - status: one of STATUSES, guarded by TRANSITIONS in the service layer
    - show_on_home: the single homepage-placement flag
    - email / mobile: only set on photographer registrations (unique there)
    - details: free-form document attributes (images, state, country, ...)
    - decided_at / decided_by: stamped by admin decisions
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from photobook.database import Base

# ── Vocabulary ────────────────────────────────────────────────────────────
PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
SUSPENDED = "suspended"
DELETED = "deleted"

STATUSES = frozenset({PENDING, APPROVED, REJECTED, SUSPENDED, DELETED})

GALLERY = "gallery"
STORY = "story"
PHOTOGRAPHER = "photographer"
CATEGORY = "category"
CITY = "city"

RESOURCE_TYPES = frozenset({GALLERY, STORY, PHOTOGRAPHER, CATEGORY, CITY})

# Only content can be placed on the homepage
PLACEABLE_TYPES = frozenset({GALLERY, STORY})

# action → (statuses it is legal from, resulting status)
TRANSITIONS: Dict[str, tuple] = {
    "approve": (frozenset({PENDING}), APPROVED),
    "reject": (frozenset({PENDING}), REJECTED),
    "block": (frozenset({APPROVED}), SUSPENDED),
    "unblock": (frozenset({SUSPENDED}), APPROVED),
    "delete": (frozenset({APPROVED, SUSPENDED}), DELETED),
    "request_placement": (frozenset({APPROVED}), PENDING),
}

# Actions an admin applies through decide()
ADMIN_ACTIONS = frozenset({"approve", "reject", "block", "unblock", "delete"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Submission(Base):
    """
    A unit of user-generated content or a registration awaiting or having
    received an admin decision.

    Lifecycle:
        create → approved (content, admin-created items)
        create → pending  (registrations, suggestions, placement requests)
        pending → approved | rejected
        approved ⇄ suspended
        approved | suspended → deleted (soft delete, terminal)
    """

    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    resource_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="gallery, story, photographer, category, city",
    )

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owning actor: photographer id or 'admin'",
    )
    owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Registration identity; unique per photographer (partial indexes below)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    mobile: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)

    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=APPROVED,
        comment="pending, approved, rejected, suspended, deleted",
    )
    show_on_home: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    requested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    decided_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Admin queues filter on status + type; "recent first" sorts on created_at
    __table_args__ = (
        Index("idx_submissions_status_type", "status", "resource_type"),
        Index("idx_submissions_created_at", created_at.desc()),
        # One registration per email and per mobile; other types never set them
        Index(
            "uq_submissions_photographer_email",
            "email",
            unique=True,
            postgresql_where=text("resource_type = 'photographer'"),
            sqlite_where=text("resource_type = 'photographer'"),
        ),
        Index(
            "uq_submissions_photographer_mobile",
            "mobile",
            unique=True,
            postgresql_where=text("resource_type = 'photographer'"),
            sqlite_where=text("resource_type = 'photographer'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Submission(id={self.id}, type='{self.resource_type}', "
            f"status='{self.status}')>"
        )
