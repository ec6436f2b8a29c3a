"""
Photobook Backend — Admin Route Handlers
==========================================

What:  Aggregates for the admin console. Admin capability required.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photobook.auth import AuthContext, get_auth_context
from photobook.database import get_db_session
from photobook.schemas.common import ErrorResponse
from photobook.schemas.submission import PendingCounts, PendingCountsResponse
from photobook.services.submission_service import submission_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get(
    "/pending-counts",
    response_model=PendingCountsResponse,
    responses={403: {"description": "Admin access is required", "model": ErrorResponse}},
    summary="Pending submissions per type",
)
async def pending_counts(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db_session),
) -> PendingCountsResponse:
    ctx.require_admin()
    counts = await submission_service.count_pending_by_type(db)
    return PendingCountsResponse(data=PendingCounts(**counts))
