"""
Photobook Backend — Notification Service (Inbox & Fan-out)
===========================================================

What:  Inserts, lists, and updates inbox notifications.
Why:   Every submission transition that needs attention becomes one row here;
       badge UIs poll count_pending() instead of receiving pushes.
Who:   Called by ApprovalWorkflow (notify, resolve_for) and by the
       /api/notifications routes (everything else).

Delivery Policy (notify, resolve_for):
    Best-effort, one attempt. The insert runs inside a SAVEPOINT on the
    caller's session, so a failure rolls back only the notification and the
    triggering transition still commits. The failure is logged with stack
    detail and swallowed. A crash between the two writes can therefore leave
    a transitioned submission without a notification; there is no outbox.

    The explicit API path (create) is not best-effort: its errors propagate.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from photobook.exceptions import NotFoundError, UnexpectedError, ValidationError
from photobook.models.notification import NOTIFICATION_TYPES, Notification
from photobook.schemas.notification import NotificationCreate

logger = logging.getLogger(__name__)


class NotificationService:
    """Stateless; every method receives the request's session."""

    @staticmethod
    def _build_row(event: NotificationCreate) -> Notification:
        return Notification(
            user_id=event.user_id,
            type=event.type,
            title=event.title,
            message=event.message,
            related_id=event.related_id,
            related_type=event.related_type,
            action_required=event.action_required,
            read=False,
        )

    async def notify(
        self, db: AsyncSession, event: NotificationCreate
    ) -> Optional[Notification]:
        """
        Fan-out entry point used by the workflow.

        Returns:
            The inserted Notification, or None when the insert failed.
        """
        try:
            async with db.begin_nested():
                row = self._build_row(event)
                db.add(row)
        except Exception:
            logger.error(
                "Notification fan-out failed (type=%s, user=%s, related=%s)",
                event.type,
                event.user_id,
                event.related_id,
                exc_info=True,
            )
            return None

        logger.info(
            "Notification %s queued for %s (type=%s, action_required=%s)",
            row.id,
            row.user_id,
            row.type,
            row.action_required,
        )
        return row

    async def resolve_for(self, db: AsyncSession, related_id: uuid.UUID) -> int:
        """
        Clear action_required on every notification about a submission.

        Called after an admin decision so the request stops counting towards
        the admin badge. Same best-effort policy as notify(); returns the
        number of rows touched, 0 on failure.
        """
        try:
            async with db.begin_nested():
                result = await db.execute(
                    update(Notification)
                    .where(
                        Notification.related_id == related_id,
                        Notification.action_required.is_(True),
                    )
                    .values(action_required=False)
                )
        except Exception:
            logger.error(
                "Failed to resolve notifications for submission %s",
                related_id,
                exc_info=True,
            )
            return 0
        return result.rowcount or 0

    async def create(self, db: AsyncSession, data: NotificationCreate) -> Notification:
        """
        Insert a notification posted through the API.

        Raises:
            ValidationError: `type` is outside the fixed vocabulary
            UnexpectedError: the insert failed
        """
        if data.type not in NOTIFICATION_TYPES:
            raise ValidationError(
                message=f"Unknown notification type '{data.type}'",
                field="type",
                context={"allowed": sorted(NOTIFICATION_TYPES)},
            )
        try:
            row = self._build_row(data)
            db.add(row)
            await db.flush()
            return row
        except SQLAlchemyError as e:
            logger.error("Database error creating notification: %s", str(e), exc_info=True)
            raise UnexpectedError(
                message="Could not create the notification. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get(self, db: AsyncSession, notification_id: uuid.UUID) -> Notification:
        try:
            row = await db.get(Notification, notification_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching notification %s: %s", notification_id, str(e))
            raise UnexpectedError(context={"notification_id": str(notification_id)})
        if row is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))
        return row

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: Optional[str] = None,
        unread_only: bool = False,
    ) -> List[Notification]:
        """Newest first. No pagination: the inbox is expected to stay small."""
        query = select(Notification)
        if user_id:
            query = query.where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(desc(Notification.created_at))
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notifications: %s", str(e), exc_info=True)
            raise UnexpectedError(
                message="Could not retrieve notifications. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def mark_read(
        self,
        db: AsyncSession,
        notification_id: uuid.UUID,
        read: Optional[bool] = True,
        action_required: Optional[bool] = None,
    ) -> Notification:
        """
        Update read/action flags on one notification.

        Idempotent: marking an already-read notification read succeeds and
        changes nothing.
        """
        row = await self.get(db, notification_id)
        if read is not None:
            row.read = read
        if action_required is not None:
            row.action_required = action_required
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating notification %s: %s", notification_id, str(e))
            raise UnexpectedError(context={"notification_id": str(notification_id)})
        return row

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        """Mark every unread notification of an inbox read; returns rows changed."""
        try:
            result = await db.execute(
                update(Notification)
                .where(Notification.user_id == user_id, Notification.read.is_(False))
                .values(read=True)
            )
        except SQLAlchemyError as e:
            logger.error("Database error marking inbox %s read: %s", user_id, str(e))
            raise UnexpectedError(context={"user_id": user_id})
        updated = result.rowcount or 0
        logger.info("Marked %d notifications read for %s", updated, user_id)
        return updated

    async def count_pending(
        self,
        db: AsyncSession,
        user_id: str,
        notification_type: Optional[str] = None,
    ) -> int:
        """Unread, action-required notifications of one inbox (badge count)."""
        query = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
            Notification.action_required.is_(True),
        )
        if notification_type:
            query = query.where(Notification.type == notification_type)
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error counting notifications: %s", str(e))
            raise UnexpectedError(context={"user_id": user_id})
        return result.scalar() or 0

    async def delete(self, db: AsyncSession, notification_id: uuid.UUID) -> None:
        row = await self.get(db, notification_id)
        try:
            await db.delete(row)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting notification %s: %s", notification_id, str(e))
            raise UnexpectedError(context={"notification_id": str(notification_id)})


notification_service = NotificationService()
