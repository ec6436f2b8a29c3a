"""
Photobook Backend — Submission Service (Store & State Machine)
===============================================================

What:  Persists submissions and applies status transitions.
Why:   Galleries, stories, registrations and suggestions share one lifecycle;
       keeping the transition table here means no route can invent a status.
Who:   Called by ApprovalWorkflow and by the read-only submission routes.

State Machine (TRANSITIONS in photobook.models.submission):
    approve            pending                           → approved
    reject             pending                           → rejected
    block              approved                          → suspended
    unblock            suspended                         → approved
    delete             approved|suspended                → deleted
    request_placement  approved (gallery/story)          → pending

    Anything else raises InvalidActionError, including repeated actions
    such as approving an approved submission.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from photobook.auth import AuthContext
from photobook.exceptions import (
    ConflictError,
    InvalidActionError,
    NotFoundError,
    PermissionDeniedError,
    UnexpectedError,
    ValidationError,
)
from photobook.models.submission import (
    ADMIN_ACTIONS,
    APPROVED,
    CATEGORY,
    CITY,
    PENDING,
    PHOTOGRAPHER,
    PLACEABLE_TYPES,
    RESOURCE_TYPES,
    STATUSES,
    TRANSITIONS,
    Submission,
)
from photobook.schemas.submission import SubmissionCreate

logger = logging.getLogger(__name__)

# Types a photographer cannot self-approve
_MODERATED_TYPES = frozenset({PHOTOGRAPHER, CATEGORY, CITY})


class SubmissionService:
    """Stateless store over the `submissions` table."""

    async def create(
        self,
        db: AsyncSession,
        data: SubmissionCreate,
        actor: AuthContext,
    ) -> Submission:
        """
        Store a new submission and pick its initial status.

        Initial status:
            - explicit `status` wins (pending or approved)
            - photographer registrations: pending
            - gallery/story with requestHomepage: pending
            - admin-created content: approved
            - photographer-created category/city suggestions: pending
            - other gallery/story content: approved

        Raises:
            ValidationError: unknown type, missing registration fields,
                requestHomepage on a non-placeable type
            PermissionDeniedError: a non-admin asking for approved on a
                moderated type
            ConflictError: registration email/mobile already used
        """
        resource_type = data.resource_type
        if resource_type not in RESOURCE_TYPES:
            raise ValidationError(
                message=f"Unknown submission type '{resource_type}'",
                field="type",
            )

        if data.request_homepage:
            if resource_type not in PLACEABLE_TYPES:
                raise ValidationError(
                    message="Only galleries and stories can request homepage placement",
                    field="requestHomepage",
                )
            if data.status == APPROVED:
                raise ValidationError(
                    message="A homepage request starts pending, not approved",
                    field="status",
                )

        if data.status == APPROVED and resource_type in _MODERATED_TYPES and not actor.is_admin:
            raise PermissionDeniedError(
                message=f"Only an admin can create an approved {resource_type}",
            )

        status = self._initial_status(data, actor)
        now = datetime.now(timezone.utc)
        submission_id = uuid.uuid4()
        email = None
        mobile = None

        if resource_type == PHOTOGRAPHER:
            email, mobile = self._registration_identity(data)
            await self._ensure_unique_registration(db, email, mobile)
            # A registration is its own owner: decisions notify the registrant
            owner_id = str(submission_id)
            owner_name = data.owner_name or data.title
        elif actor.is_admin:
            owner_id = data.owner_id or actor.actor_id
            owner_name = data.owner_name or "Admin"
        else:
            if data.owner_id and data.owner_id != actor.user_id:
                raise PermissionDeniedError(
                    message="Cannot create submissions on behalf of another user",
                )
            owner_id = actor.actor_id
            owner_name = data.owner_name

        row = Submission(
            id=submission_id,
            resource_type=resource_type,
            owner_id=owner_id,
            owner_name=owner_name,
            title=data.title.strip(),
            description=data.description,
            email=email,
            mobile=mobile,
            details=dict(data.details),
            status=status,
            show_on_home=(
                status == APPROVED
                and actor.is_admin
                and resource_type in PLACEABLE_TYPES
            ),
            created_at=now,
            updated_at=now,
            requested_at=now if status == PENDING and resource_type in PLACEABLE_TYPES else None,
        )
        try:
            # SAVEPOINT: a unique-index violation must leave the session usable
            async with db.begin_nested():
                db.add(row)
        except IntegrityError as e:
            if resource_type != PHOTOGRAPHER:
                logger.error("Integrity error creating submission: %s", str(e), exc_info=True)
                raise UnexpectedError(
                    context={"error_type": type(e).__name__, "resource_type": resource_type},
                )
            # A concurrent registration won between the check and the insert
            logger.warning("Registration insert hit a unique index: %s", str(e.orig))
            await self._ensure_unique_registration(db, email, mobile)
            raise ConflictError(message="A studio with this email or mobile already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating submission: %s", str(e), exc_info=True)
            raise UnexpectedError(
                message="Could not save the submission. Please try again.",
                context={"error_type": type(e).__name__, "resource_type": resource_type},
            )

        logger.info(
            "Submission %s created (type=%s, owner=%s, status=%s)",
            row.id,
            resource_type,
            owner_id,
            status,
        )
        return row

    @staticmethod
    def _initial_status(data: SubmissionCreate, actor: AuthContext) -> str:
        if data.status:
            return data.status
        if data.resource_type == PHOTOGRAPHER or data.request_homepage:
            return PENDING
        if actor.is_admin:
            return APPROVED
        if data.resource_type in (CATEGORY, CITY):
            return PENDING
        return APPROVED

    @staticmethod
    def _registration_identity(data: SubmissionCreate):
        email = (data.email or "").strip().lower()
        mobile = (data.mobile or "").strip()
        if not email:
            raise ValidationError(
                message="email is required for photographer registrations",
                field="email",
            )
        if "@" not in email:
            raise ValidationError(message=f"'{email}' is not a valid email", field="email")
        if not mobile:
            raise ValidationError(
                message="mobile is required for photographer registrations",
                field="mobile",
            )
        return email, mobile

    async def _ensure_unique_registration(
        self, db: AsyncSession, email: str, mobile: str
    ) -> None:
        try:
            result = await db.execute(
                select(Submission)
                .where(
                    Submission.resource_type == PHOTOGRAPHER,
                    or_(Submission.email == email, Submission.mobile == mobile),
                )
                .limit(1)
            )
            existing = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error checking registration uniqueness: %s", str(e))
            raise UnexpectedError(context={"error_type": type(e).__name__})

        if existing is not None:
            field = "email" if existing.email == email else "mobile"
            raise ConflictError(
                message=f"A studio with this {field} already exists",
                field=field,
                context={"existing_id": str(existing.id)},
            )

    async def get(self, db: AsyncSession, submission_id: uuid.UUID) -> Submission:
        """
        Raises:
            NotFoundError: no submission with this id (→ 404)
        """
        try:
            row = await db.get(Submission, submission_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching submission %s: %s", submission_id, str(e))
            raise UnexpectedError(
                message="Could not retrieve the submission. Please try again.",
                context={"submission_id": str(submission_id)},
            )
        if row is None:
            raise NotFoundError(resource="submission", resource_id=str(submission_id))
        return row

    async def list_by_status(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        resource_type: Optional[str] = None,
        owner_id: Optional[str] = None,
        recent_first: bool = False,
    ) -> List[Submission]:
        """
        All submissions matching the filters.

        Ordering is created_at DESC with recent_first, otherwise by id
        (stable but meaningless to callers).
        """
        if status is not None and status not in STATUSES:
            raise ValidationError(message=f"Unknown status '{status}'", field="status")
        if resource_type is not None and resource_type not in RESOURCE_TYPES:
            raise ValidationError(message=f"Unknown submission type '{resource_type}'", field="type")

        query = select(Submission)
        if status:
            query = query.where(Submission.status == status)
        if resource_type:
            query = query.where(Submission.resource_type == resource_type)
        if owner_id:
            query = query.where(Submission.owner_id == owner_id)
        if recent_first:
            query = query.order_by(desc(Submission.created_at))
        else:
            query = query.order_by(Submission.id)

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing submissions: %s", str(e), exc_info=True)
            raise UnexpectedError(
                message="Could not retrieve submissions. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def transition(
        self,
        db: AsyncSession,
        submission_id: uuid.UUID,
        action: str,
        actor_id: str,
    ) -> Submission:
        """
        Apply one action from the transition table.

        Raises:
            NotFoundError: unknown id
            InvalidActionError: unknown action, or not legal from the current status
        """
        if action not in TRANSITIONS:
            raise InvalidActionError(action=action)

        row = await self.get(db, submission_id)
        allowed_from, target = TRANSITIONS[action]

        if action == "request_placement" and row.resource_type not in PLACEABLE_TYPES:
            raise InvalidActionError(
                action=action,
                current_status=row.status,
                message="Only galleries and stories can be placed on the homepage",
            )
        if row.status not in allowed_from:
            raise InvalidActionError(action=action, current_status=row.status)

        previous = row.status
        now = datetime.now(timezone.utc)
        row.status = target
        row.updated_at = now

        if action == "request_placement":
            row.requested_at = now
        elif action in ADMIN_ACTIONS:
            row.decided_at = now
            row.decided_by = actor_id

        if action == "approve" and row.resource_type in PLACEABLE_TYPES:
            row.show_on_home = True
        elif action in ("reject", "block", "delete"):
            row.show_on_home = False

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error applying %s to %s: %s", action, submission_id, str(e))
            raise UnexpectedError(
                context={"submission_id": str(submission_id), "action": action},
            )

        logger.info(
            "Submission %s: %s → %s (action=%s, actor=%s)",
            row.id,
            previous,
            target,
            action,
            actor_id,
        )
        return row

    async def count_pending_by_type(self, db: AsyncSession) -> Dict[str, int]:
        """Pending submissions per resource type, plus `total`."""
        query = (
            select(Submission.resource_type, func.count(Submission.id))
            .where(Submission.status == PENDING)
            .group_by(Submission.resource_type)
        )
        try:
            result = await db.execute(query)
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error counting pending submissions: %s", str(e))
            raise UnexpectedError(context={"error_type": type(e).__name__})

        counts = {resource_type: 0 for resource_type in sorted(RESOURCE_TYPES)}
        for resource_type, count in rows:
            counts[resource_type] = count
        counts["total"] = sum(counts.values())
        return counts


submission_service = SubmissionService()
