"""
Photobook Backend — Notification Route Handlers
=================================================

What:  Inbox listing, explicit creation, read flags, deletion and the badge
       count polled by dashboards.
Who:   Admin console (inbox `admin`) and photographer dashboards.

Access:
    A caller reads and updates their own inbox; admins may touch any inbox.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from photobook.auth import AuthContext, get_auth_context
from photobook.database import get_db_session
from photobook.schemas.common import ErrorResponse, MessageResponse
from photobook.schemas.notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationEnvelope,
    NotificationListResponse,
    NotificationOut,
    NotificationUpdate,
    PendingCountResponse,
)
from photobook.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    403: {"description": "Not your inbox", "model": ErrorResponse},
    404: {"description": "Notification not found", "model": ErrorResponse},
}


def _inbox_for(ctx: AuthContext, user_id: Optional[str]) -> Optional[str]:
    """Resolve the inbox a caller may read; admins may read all (None)."""
    if ctx.is_admin:
        return user_id
    ctx.require_authenticated()
    inbox = user_id or ctx.user_id
    ctx.require_owner_or_admin(inbox)
    return inbox


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    responses={403: _ERRORS[403]},
    summary="List notifications, newest first",
)
async def list_notifications(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    inbox = _inbox_for(ctx, user_id)
    rows = await notification_service.list_notifications(
        db, user_id=inbox, unread_only=unread_only
    )
    return NotificationListResponse(
        notifications=[NotificationOut.from_row(row) for row in rows],
        unread_count=sum(1 for row in rows if not row.read),
    )


@router.post(
    "/notifications",
    response_model=NotificationEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={400: _ERRORS[400], 403: _ERRORS[403]},
    summary="Create a notification",
)
async def create_notification(
    body: NotificationCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationEnvelope:
    ctx.require_authenticated()
    ctx.require_owner_or_admin(body.user_id)
    row = await notification_service.create(db, body)
    return NotificationEnvelope(notification=NotificationOut.from_row(row))


@router.put(
    "/notifications",
    response_model=Union[NotificationEnvelope, MarkAllReadResponse],
    responses=_ERRORS,
    summary="Update one notification or mark an inbox read",
)
async def update_notifications(
    body: NotificationUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> Union[NotificationEnvelope, MarkAllReadResponse]:
    if body.mark_all_read:
        ctx.require_owner_or_admin(body.user_id)
        updated = await notification_service.mark_all_read(db, body.user_id)
        return MarkAllReadResponse(updated=updated)

    row = await notification_service.get(db, body.id)
    ctx.require_owner_or_admin(row.user_id)
    row = await notification_service.mark_read(
        db,
        body.id,
        read=True if body.read is None and body.action_required is None else body.read,
        action_required=body.action_required,
    )
    return NotificationEnvelope(notification=NotificationOut.from_row(row))


@router.get(
    "/notifications/pending-count",
    response_model=PendingCountResponse,
    responses={403: _ERRORS[403]},
    summary="Unread action-required notifications for the badge",
)
async def pending_count(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    notification_type: Optional[str] = Query(default=None, alias="type"),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> PendingCountResponse:
    """
    Polled by the dashboard header; admins default to the shared admin inbox.
    """
    inbox = user_id or ctx.actor_id
    ctx.require_owner_or_admin(inbox)
    count = await notification_service.count_pending(
        db, inbox, notification_type=notification_type
    )
    return PendingCountResponse(user_id=inbox, count=count)


@router.delete(
    "/notifications/{notification_id}",
    response_model=MessageResponse,
    responses={403: _ERRORS[403], 404: _ERRORS[404]},
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    row = await notification_service.get(db, notification_id)
    ctx.require_owner_or_admin(row.user_id)
    await notification_service.delete(db, notification_id)
    return MessageResponse(message="Notification deleted")
