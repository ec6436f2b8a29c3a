"""
Photobook Backend — Approval Workflow (Orchestrator)
======================================================

What:  Combines a submission transition with its notification fan-out.
Why:   This is the only place where two record families change together:
       a submission moves, and an inbox learns about it.
How:   Sequential writes on the request session. The transition is flushed
       first; the notification goes through NotificationService.notify(),
       whose failure is logged and does not undo the transition.

Flows:
    submit()                      create → (pending?) → request notification to admin
    request_homepage_placement()  approved → pending  → request notification to admin
    decide()                      transition → resolve admin request → outcome to owner

Message templates are a fixed lookup keyed by resource type (requests) and
by (resource type, action) (outcomes). Combinations without a template,
such as delete, notify nobody.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from photobook.auth import AuthContext
from photobook.config import settings
from photobook.exceptions import InvalidActionError
from photobook.models.notification import Notification
from photobook.models.submission import (
    ADMIN_ACTIONS,
    CATEGORY,
    CITY,
    GALLERY,
    PENDING,
    PHOTOGRAPHER,
    STORY,
    Submission,
)
from photobook.schemas.notification import NotificationCreate
from photobook.schemas.submission import SubmissionCreate
from photobook.services.notification_service import notification_service
from photobook.services.submission_service import submission_service

logger = logging.getLogger(__name__)


class NotificationTemplate(NamedTuple):
    type: str
    title: str
    message: str


# Sent to the admin inbox when a submission enters the pending queue
REQUEST_TEMPLATES: Dict[str, NotificationTemplate] = {
    GALLERY: NotificationTemplate(
        "gallery_homepage_request",
        "Gallery Homepage Request",
        '{owner} requested to display gallery "{title}" on homepage',
    ),
    STORY: NotificationTemplate(
        "story_homepage_request",
        "Story Homepage Request",
        '{owner} requested to display story "{title}" on homepage',
    ),
    PHOTOGRAPHER: NotificationTemplate(
        "photographer_registration",
        "New Photographer Registration",
        "{title} has registered as a photographer and is waiting for approval. "
        "Email: {email}, Mobile: {mobile}",
    ),
    CATEGORY: NotificationTemplate(
        "category_suggestion",
        "New Category Suggestion",
        '{owner} suggested a new category: "{title}"',
    ),
    CITY: NotificationTemplate(
        "city_suggestion",
        "New City Coverage Request",
        "{owner} requested to add coverage for {title}",
    ),
}

# Sent to the owner once an admin acts
MESSAGE_TEMPLATES: Dict[Tuple[str, str], NotificationTemplate] = {
    (GALLERY, "approve"): NotificationTemplate(
        "gallery_approved",
        "Gallery Approved for Homepage!",
        'Your gallery "{title}" has been approved and will be featured on the homepage.',
    ),
    (GALLERY, "reject"): NotificationTemplate(
        "gallery_rejected",
        "Gallery Request Rejected",
        'Your homepage request for gallery "{title}" has been rejected. '
        "Please review and resubmit.",
    ),
    (STORY, "approve"): NotificationTemplate(
        "story_approved",
        "Story Approved for Homepage!",
        'Your story "{title}" has been approved and will be featured on the homepage.',
    ),
    (STORY, "reject"): NotificationTemplate(
        "story_rejected",
        "Story Request Rejected",
        'Your homepage request for story "{title}" has been rejected. '
        "Please review and resubmit.",
    ),
    (PHOTOGRAPHER, "approve"): NotificationTemplate(
        "photographer_approved",
        "Account Approved!",
        "Congratulations! Your photographer account has been approved. "
        "You can now login and start using the platform.",
    ),
    (PHOTOGRAPHER, "reject"): NotificationTemplate(
        "photographer_rejected",
        "Account Rejected",
        "Your photographer account registration has been rejected. "
        "Please contact support for more information.",
    ),
    (PHOTOGRAPHER, "block"): NotificationTemplate(
        "account_blocked",
        "Account Suspended",
        "Your photographer account has been suspended. "
        "Please contact support for more information.",
    ),
    (PHOTOGRAPHER, "unblock"): NotificationTemplate(
        "account_unblocked",
        "Account Reactivated",
        "Your photographer account has been reactivated. "
        "You can now access your account again.",
    ),
    (CATEGORY, "approve"): NotificationTemplate(
        "category_approved",
        "Category Suggestion Approved",
        'Your suggested category "{title}" is now available.',
    ),
    (CATEGORY, "reject"): NotificationTemplate(
        "category_rejected",
        "Category Suggestion Rejected",
        'Your suggested category "{title}" was not accepted.',
    ),
    (CITY, "approve"): NotificationTemplate(
        "city_approved",
        "City Coverage Approved",
        "Coverage for {title} has been added.",
    ),
    (CITY, "reject"): NotificationTemplate(
        "city_rejected",
        "City Coverage Rejected",
        "Your coverage request for {title} was not accepted.",
    ),
}


@dataclass
class WorkflowResult:
    submission: Submission
    # None when no template applies or the best-effort insert failed
    notification: Optional[Notification] = None


def _render(template: NotificationTemplate, row: Submission) -> Tuple[str, str]:
    fields = {
        "title": row.title,
        "owner": row.owner_name or "A photographer",
        "email": row.email or "-",
        "mobile": row.mobile or "-",
    }
    return template.title.format(**fields), template.message.format(**fields)


class ApprovalWorkflow:
    """Stateless orchestrator over SubmissionService and NotificationService."""

    def _request_event(self, row: Submission) -> NotificationCreate:
        template = REQUEST_TEMPLATES[row.resource_type]
        title, message = _render(template, row)
        return NotificationCreate(
            type=template.type,
            title=title,
            message=message,
            user_id=settings.admin_user_id,
            related_id=row.id,
            related_type=row.resource_type,
            action_required=True,
        )

    async def submit(
        self, db: AsyncSession, data: SubmissionCreate, actor: AuthContext
    ) -> WorkflowResult:
        """
        Create a submission; pending ones are announced to the admin inbox.

        Anonymous callers may only register as photographers.
        """
        if data.resource_type != PHOTOGRAPHER:
            actor.require_authenticated()

        row = await submission_service.create(db, data, actor)
        notification = None
        if row.status == PENDING:
            notification = await notification_service.notify(db, self._request_event(row))
        return WorkflowResult(submission=row, notification=notification)

    async def request_homepage_placement(
        self, db: AsyncSession, submission_id: uuid.UUID, actor: AuthContext
    ) -> WorkflowResult:
        """
        Put approved gallery/story content back into the admin queue.

        Raises:
            NotFoundError: unknown id
            PermissionDeniedError: caller is neither owner nor admin
            InvalidActionError: not approved, or not a gallery/story
        """
        row = await submission_service.get(db, submission_id)
        actor.require_owner_or_admin(row.owner_id)

        row = await submission_service.transition(
            db, submission_id, "request_placement", actor.actor_id
        )
        notification = await notification_service.notify(db, self._request_event(row))
        return WorkflowResult(submission=row, notification=notification)

    async def decide(
        self,
        db: AsyncSession,
        submission_id: uuid.UUID,
        action: str,
        admin: AuthContext,
    ) -> WorkflowResult:
        """
        Apply an admin decision and tell the owner.

        Steps:
            1. transition() — raises NotFoundError / InvalidActionError
            2. resolve_for() — the admin request stops counting as pending
            3. notify() the owner from MESSAGE_TEMPLATES, when a template exists

        Raises:
            PermissionDeniedError: caller is not an admin
            InvalidActionError: action is not an admin action or not legal now
            NotFoundError: unknown id
        """
        admin.require_admin()
        if action not in ADMIN_ACTIONS:
            raise InvalidActionError(action=action, message=f"'{action}' is not an admin decision")

        row = await submission_service.transition(db, submission_id, action, admin.actor_id)
        await notification_service.resolve_for(db, row.id)

        template = MESSAGE_TEMPLATES.get((row.resource_type, action))
        if template is None:
            logger.debug("No notification template for (%s, %s)", row.resource_type, action)
            return WorkflowResult(submission=row)

        title, message = _render(template, row)
        notification = await notification_service.notify(
            db,
            NotificationCreate(
                type=template.type,
                title=title,
                message=message,
                user_id=row.owner_id,
                related_id=row.id,
                related_type=row.resource_type,
                action_required=False,
            ),
        )
        return WorkflowResult(submission=row, notification=notification)


approval_workflow = ApprovalWorkflow()
