"""
Photobook Backend — Submission Schemas
========================================

What:  Request and response contracts for /api/submissions and /api/admin.
Why:   Literal fields reject unknown types/actions before they reach the
       service; the global handler turns those failures into 400 envelopes.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from photobook.models.submission import Submission
from photobook.schemas.common import CamelModel
from photobook.schemas.notification import NotificationOut

ResourceType = Literal["gallery", "story", "photographer", "category", "city"]
Status = Literal["pending", "approved", "rejected", "suspended", "deleted"]
Action = Literal["approve", "reject", "block", "unblock", "delete", "request_placement"]


class SubmissionCreate(CamelModel):
    """
    Body of POST /api/submissions.

    `status` may only pick an initial state (pending or approved); anything
    later in the lifecycle is reached through actions. `requestHomepage`
    creates gallery/story content directly in the placement queue.
    """
    resource_type: ResourceType = Field(alias="type")
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    owner_id: Optional[str] = Field(default=None, max_length=64)
    owner_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    mobile: Optional[str] = Field(default=None, max_length=32)
    status: Optional[Literal["pending", "approved"]] = None
    request_homepage: bool = False
    details: Dict[str, Any] = Field(default_factory=dict)


class SubmissionActionRequest(CamelModel):
    """Body of PUT /api/submissions/{id}."""
    action: Action


class SubmissionOut(CamelModel):
    id: uuid.UUID
    resource_type: str = Field(alias="type")
    owner_id: str
    owner_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    status: str
    show_on_home: bool
    created_at: datetime
    updated_at: datetime
    requested_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None

    @classmethod
    def from_row(cls, row: Submission) -> "SubmissionOut":
        return cls(
            id=row.id,
            resource_type=row.resource_type,
            owner_id=row.owner_id,
            owner_name=row.owner_name,
            title=row.title,
            description=row.description,
            email=row.email,
            mobile=row.mobile,
            details=dict(row.details or {}),
            status=row.status,
            show_on_home=row.show_on_home,
            created_at=row.created_at,
            updated_at=row.updated_at,
            requested_at=row.requested_at,
            decided_at=row.decided_at,
            decided_by=row.decided_by,
        )


class SubmissionEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    submission: SubmissionOut
    # Set when the operation fanned out a notification; None when the
    # best-effort insert failed or no template applies
    notification: Optional[NotificationOut] = None


class SubmissionListResponse(CamelModel):
    success: bool = True
    submissions: List[SubmissionOut]
    total_count: int


class PendingCounts(CamelModel):
    gallery: int = 0
    story: int = 0
    photographer: int = 0
    category: int = 0
    city: int = 0
    total: int = 0


class PendingCountsResponse(CamelModel):
    success: bool = True
    data: PendingCounts
