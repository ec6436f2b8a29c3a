"""
Photobook Backend — Submission Route Handlers
===============================================

What:  Create, read and act on galleries, stories, registrations and
       category/city suggestions.
Who:   Photographer dashboard (create, request placement), admin console
       (decide), public pages (approved listings).

Read access:
    Admins see everything. Other authenticated callers see approved
    submissions, plus anything they own.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from photobook.auth import AuthContext, get_auth_context
from photobook.database import get_db_session
from photobook.exceptions import PermissionDeniedError
from photobook.models.submission import APPROVED, PHOTOGRAPHER
from photobook.schemas.common import ErrorResponse
from photobook.schemas.notification import NotificationOut
from photobook.schemas.submission import (
    SubmissionActionRequest,
    SubmissionCreate,
    SubmissionEnvelope,
    SubmissionListResponse,
    SubmissionOut,
)
from photobook.services.submission_service import submission_service
from photobook.services.workflow_service import WorkflowResult, approval_workflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Submissions"])

_ERRORS = {
    400: {"description": "Invalid input or action", "model": ErrorResponse},
    403: {"description": "Insufficient capability", "model": ErrorResponse},
    404: {"description": "Submission not found", "model": ErrorResponse},
}

_ACTION_MESSAGES = {
    "approve": "Submission approved",
    "reject": "Submission rejected",
    "block": "Account suspended",
    "unblock": "Account reactivated",
    "delete": "Submission deleted",
    "request_placement": "Homepage request sent for admin approval",
}


def _envelope(result: WorkflowResult, message: Optional[str] = None) -> SubmissionEnvelope:
    return SubmissionEnvelope(
        message=message,
        submission=SubmissionOut.from_row(result.submission),
        notification=(
            NotificationOut.from_row(result.notification)
            if result.notification is not None
            else None
        ),
    )


@router.get(
    "/submissions",
    response_model=SubmissionListResponse,
    responses={400: _ERRORS[400], 403: _ERRORS[403]},
    summary="List submissions by status and type",
)
async def list_submissions(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    resource_type: Optional[str] = Query(default=None, alias="type"),
    owner_id: Optional[str] = Query(default=None, alias="ownerId"),
    recent: bool = Query(default=False, description="Newest first"),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionListResponse:
    """
    Examples:
        GET /api/submissions?status=pending&type=gallery   (admin queue)
        GET /api/submissions?status=approved&type=story    (marketplace listing)
        GET /api/submissions?ownerId=p1&recent=true        (dashboard)
    """
    if not ctx.is_admin:
        ctx.require_authenticated()
    if not ctx.is_admin and status_filter != APPROVED:
        owner_id = owner_id or ctx.user_id
        if owner_id != ctx.user_id:
            raise PermissionDeniedError(
                message="Only an admin can list another user's unapproved submissions",
            )

    rows = await submission_service.list_by_status(
        db,
        status=status_filter,
        resource_type=resource_type,
        owner_id=owner_id,
        recent_first=recent,
    )
    if not ctx.is_admin and status_filter == APPROVED:
        # Registration contact details are admin-only
        rows = [row for row in rows if row.resource_type != PHOTOGRAPHER]

    return SubmissionListResponse(
        submissions=[SubmissionOut.from_row(row) for row in rows],
        total_count=len(rows),
    )


@router.post(
    "/submissions",
    response_model=SubmissionEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 409: {"description": "Email or mobile already registered", "model": ErrorResponse}},
    summary="Create a submission",
)
async def create_submission(
    body: SubmissionCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionEnvelope:
    """
    Pending submissions also produce an action-required notification in the
    admin inbox; the created notification is echoed back when it succeeded.
    """
    result = await approval_workflow.submit(db, body, ctx)
    message = (
        "Submitted for admin approval"
        if result.submission.status == "pending"
        else "Submission created"
    )
    return _envelope(result, message)


@router.get(
    "/submissions/{submission_id}",
    response_model=SubmissionEnvelope,
    responses={403: _ERRORS[403], 404: _ERRORS[404]},
    summary="Get a single submission",
)
async def get_submission(
    submission_id: UUID,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionEnvelope:
    ctx.require_authenticated()
    row = await submission_service.get(db, submission_id)
    if row.status != APPROVED or row.resource_type == PHOTOGRAPHER:
        ctx.require_owner_or_admin(row.owner_id)
    return SubmissionEnvelope(submission=SubmissionOut.from_row(row))


@router.put(
    "/submissions/{submission_id}",
    response_model=SubmissionEnvelope,
    responses=_ERRORS,
    summary="Apply an action to a submission",
)
async def act_on_submission(
    submission_id: UUID,
    body: SubmissionActionRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionEnvelope:
    """
    `request_placement` is the owner's action; every other action is an
    admin decision.
    """
    if body.action == "request_placement":
        result = await approval_workflow.request_homepage_placement(db, submission_id, ctx)
    else:
        result = await approval_workflow.decide(db, submission_id, body.action, ctx)
    return _envelope(result, _ACTION_MESSAGES.get(body.action))
