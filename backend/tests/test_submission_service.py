"""
Photobook Backend — Submission Service Unit Tests
===================================================

What:  Tests for SubmissionService (create, get, list, transition, counts).
How:   Real AsyncSession over in-memory SQLite (see conftest.py).

What we test:
    ✅ Initial status rules per resource type and actor
    ✅ Registration validation and email/mobile uniqueness
    ✅ Every legal transition and a sample of illegal ones
    ✅ Listing filters, ordering and unknown filter values
    ✅ Pending counts per type
"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from photobook.exceptions import (
    ConflictError,
    InvalidActionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from photobook.models.submission import STATUSES, TRANSITIONS, Submission
from photobook.services.submission_service import SubmissionService


class TestSubmissionCreate:
    """Initial status and ownership rules."""

    def setup_method(self):
        self.service = SubmissionService()

    @pytest.mark.asyncio
    async def test_photographer_gallery_starts_approved(self, db_session, photographer, make_submission):
        """Gallery content is live immediately; placement is a separate request."""
        row = await self.service.create(db_session, make_submission("gallery"), photographer)
        assert row.status == "approved"
        assert row.owner_id == "p1"
        assert row.show_on_home is False
        assert row.requested_at is None

    @pytest.mark.asyncio
    async def test_request_homepage_starts_pending(self, db_session, photographer, make_submission):
        """requestHomepage puts new gallery/story content in the admin queue."""
        row = await self.service.create(
            db_session, make_submission("story", request_homepage=True), photographer
        )
        assert row.status == "pending"
        assert row.requested_at is not None

    @pytest.mark.asyncio
    async def test_request_homepage_rejected_for_city(self, db_session, photographer, make_submission):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(
                db_session, make_submission("city", request_homepage=True), photographer
            )
        assert exc_info.value.field == "requestHomepage"

    @pytest.mark.asyncio
    async def test_admin_content_is_approved_and_featured(self, db_session, admin, make_submission):
        row = await self.service.create(db_session, make_submission("gallery"), admin)
        assert row.status == "approved"
        assert row.owner_id == "admin"
        assert row.show_on_home is True

    @pytest.mark.asyncio
    async def test_photographer_suggestions_start_pending(self, db_session, photographer, make_submission):
        category = await self.service.create(db_session, make_submission("category"), photographer)
        city = await self.service.create(db_session, make_submission("city"), photographer)
        assert category.status == "pending"
        assert city.status == "pending"

    @pytest.mark.asyncio
    async def test_admin_suggestions_are_approved(self, db_session, admin, make_submission):
        row = await self.service.create(db_session, make_submission("category"), admin)
        assert row.status == "approved"

    @pytest.mark.asyncio
    async def test_explicit_status_wins(self, db_session, admin, make_submission):
        row = await self.service.create(
            db_session, make_submission("gallery", status="pending"), admin
        )
        assert row.status == "pending"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_create_approved_category(self, db_session, photographer, make_submission):
        with pytest.raises(PermissionDeniedError):
            await self.service.create(
                db_session, make_submission("category", status="approved"), photographer
            )

    @pytest.mark.asyncio
    async def test_non_admin_cannot_create_for_another_owner(self, db_session, photographer, make_submission):
        with pytest.raises(PermissionDeniedError):
            await self.service.create(
                db_session, make_submission("gallery", owner_id="p2"), photographer
            )


class TestPhotographerRegistration:
    """Registration validation and uniqueness."""

    def setup_method(self):
        self.service = SubmissionService()

    @pytest.mark.asyncio
    async def test_registration_is_pending_and_self_owned(self, db_session, anonymous, make_submission):
        row = await self.service.create(
            db_session,
            make_submission("photographer", title="Asha Rao", email="Asha@Example.COM"),
            anonymous,
        )
        assert row.status == "pending"
        assert row.email == "asha@example.com"
        assert row.owner_id == str(row.id)
        assert row.owner_name == "Asha Rao"

    @pytest.mark.asyncio
    async def test_missing_mobile_fails(self, db_session, anonymous, make_submission):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(
                db_session, make_submission("photographer", mobile=None), anonymous
            )
        assert exc_info.value.field == "mobile"

    @pytest.mark.asyncio
    async def test_malformed_email_fails(self, db_session, anonymous, make_submission):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(
                db_session, make_submission("photographer", email="not-an-email"), anonymous
            )
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts_and_writes_nothing(self, db_session, anonymous, make_submission):
        """A second registration with the same email (any case) is refused."""
        await self.service.create(db_session, make_submission("photographer"), anonymous)

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create(
                db_session,
                make_submission("photographer", email="STUDIO@example.com", mobile="1111111111"),
                anonymous,
            )
        assert exc_info.value.field == "email"

        count = await db_session.scalar(select(func.count(Submission.id)))
        assert count == 1

    @pytest.mark.asyncio
    async def test_duplicate_mobile_conflicts(self, db_session, anonymous, make_submission):
        await self.service.create(db_session, make_submission("photographer"), anonymous)
        with pytest.raises(ConflictError) as exc_info:
            await self.service.create(
                db_session,
                make_submission("photographer", email="other@example.com"),
                anonymous,
            )
        assert exc_info.value.field == "mobile"

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_conflicts_at_insert(self, db_session, anonymous, make_submission):
        """
        Two registrations race past the lookup; the unique index refuses the
        second insert and the caller still gets a field-level conflict.
        """
        await self.service.create(db_session, make_submission("photographer"), anonymous)
        real_check = SubmissionService._ensure_unique_registration
        calls = []

        async def _stale_check(service, db, email, mobile):
            calls.append(email)
            # First lookup ran before the other registration was written
            if len(calls) > 1:
                await real_check(service, db, email, mobile)

        with patch.object(SubmissionService, "_ensure_unique_registration", _stale_check):
            with pytest.raises(ConflictError) as exc_info:
                await self.service.create(
                    db_session,
                    make_submission("photographer", mobile="1111111111"),
                    anonymous,
                )

        assert exc_info.value.field == "email"
        assert len(calls) == 2
        count = await db_session.scalar(select(func.count(Submission.id)))
        assert count == 1

    @pytest.mark.asyncio
    async def test_other_types_may_share_an_email(self, db_session, admin, anonymous, make_submission):
        """The unique indexes only cover photographer registrations."""
        await self.service.create(db_session, make_submission("photographer"), anonymous)
        for title in ("Drone", "Aerial"):
            await self.service.create(
                db_session, make_submission("category", title=title), admin
            )

        count = await db_session.scalar(select(func.count(Submission.id)))
        assert count == 3


class TestSubmissionTransition:
    """State machine behavior."""

    def setup_method(self):
        self.service = SubmissionService()

    async def _pending(self, db, admin, make_submission, resource_type="gallery"):
        return await self.service.create(
            db, make_submission(resource_type, status="pending"), admin
        )

    @pytest.mark.asyncio
    async def test_approve_pending(self, db_session, admin, make_submission):
        row = await self._pending(db_session, admin, make_submission)
        row = await self.service.transition(db_session, row.id, "approve", "admin")
        assert row.status == "approved"
        assert row.show_on_home is True
        assert row.decided_by == "admin"
        assert row.decided_at is not None

    @pytest.mark.asyncio
    async def test_approve_already_approved_fails(self, db_session, admin, make_submission):
        """Repeating a decision is an error, not a no-op."""
        row = await self._pending(db_session, admin, make_submission)
        await self.service.transition(db_session, row.id, "approve", "admin")

        with pytest.raises(InvalidActionError) as exc_info:
            await self.service.transition(db_session, row.id, "approve", "admin")
        assert exc_info.value.current_status == "approved"

    @pytest.mark.asyncio
    async def test_reject_clears_homepage_flag(self, db_session, admin, make_submission):
        row = await self._pending(db_session, admin, make_submission, "story")
        row = await self.service.transition(db_session, row.id, "reject", "admin")
        assert row.status == "rejected"
        assert row.show_on_home is False

    @pytest.mark.asyncio
    async def test_block_and_unblock_photographer(self, db_session, admin, anonymous, make_submission):
        row = await self.service.create(db_session, make_submission("photographer"), anonymous)
        await self.service.transition(db_session, row.id, "approve", "admin")

        row = await self.service.transition(db_session, row.id, "block", "admin")
        assert row.status == "suspended"
        row = await self.service.transition(db_session, row.id, "unblock", "admin")
        assert row.status == "approved"

    @pytest.mark.asyncio
    async def test_unblock_requires_suspended(self, db_session, admin, make_submission):
        row = await self._pending(db_session, admin, make_submission)
        with pytest.raises(InvalidActionError):
            await self.service.transition(db_session, row.id, "unblock", "admin")

    @pytest.mark.asyncio
    async def test_delete_is_terminal(self, db_session, admin, make_submission):
        row = await self.service.create(db_session, make_submission("gallery"), admin)
        row = await self.service.transition(db_session, row.id, "delete", "admin")
        assert row.status == "deleted"
        assert row.show_on_home is False

        for action in TRANSITIONS:
            with pytest.raises(InvalidActionError):
                await self.service.transition(db_session, row.id, action, "admin")

    @pytest.mark.asyncio
    async def test_delete_suspended_account(self, db_session, anonymous, make_submission):
        row = await self.service.create(db_session, make_submission("photographer"), anonymous)
        await self.service.transition(db_session, row.id, "approve", "admin")
        await self.service.transition(db_session, row.id, "block", "admin")

        row = await self.service.transition(db_session, row.id, "delete", "admin")
        assert row.status == "deleted"

    @pytest.mark.asyncio
    async def test_delete_pending_fails(self, db_session, admin, make_submission):
        """Pending submissions are approved or rejected, never deleted."""
        row = await self._pending(db_session, admin, make_submission)
        with pytest.raises(InvalidActionError) as exc_info:
            await self.service.transition(db_session, row.id, "delete", "admin")
        assert exc_info.value.current_status == "pending"

    @pytest.mark.asyncio
    async def test_delete_rejected_fails(self, db_session, admin, make_submission):
        row = await self._pending(db_session, admin, make_submission)
        await self.service.transition(db_session, row.id, "reject", "admin")
        with pytest.raises(InvalidActionError):
            await self.service.transition(db_session, row.id, "delete", "admin")

    @pytest.mark.asyncio
    async def test_request_placement_from_approved(self, db_session, photographer, make_submission):
        row = await self.service.create(db_session, make_submission("gallery"), photographer)
        row = await self.service.transition(db_session, row.id, "request_placement", "p1")
        assert row.status == "pending"
        assert row.requested_at is not None
        assert row.decided_by is None

    @pytest.mark.asyncio
    async def test_request_placement_on_registration_fails(self, db_session, anonymous, admin, make_submission):
        row = await self.service.create(db_session, make_submission("photographer"), anonymous)
        await self.service.transition(db_session, row.id, "approve", "admin")
        with pytest.raises(InvalidActionError):
            await self.service.transition(db_session, row.id, "request_placement", str(row.id))

    @pytest.mark.asyncio
    async def test_unknown_action_fails(self, db_session, admin, make_submission):
        row = await self._pending(db_session, admin, make_submission)
        with pytest.raises(InvalidActionError):
            await self.service.transition(db_session, row.id, "publish", "admin")

    @pytest.mark.asyncio
    async def test_unknown_id_fails(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.transition(db_session, uuid.uuid4(), "approve", "admin")

    @pytest.mark.asyncio
    async def test_status_stays_in_vocabulary(self, db_session, admin, anonymous, make_submission):
        """Walk every action against every reachable status; nothing leaves STATUSES."""
        registration = await self.service.create(db_session, make_submission("photographer"), anonymous)
        gallery = await self._pending(db_session, admin, make_submission)

        for row in (registration, gallery):
            for action in ("approve", "block", "unblock", "request_placement", "reject", "delete"):
                try:
                    row = await self.service.transition(db_session, row.id, action, "admin")
                except InvalidActionError:
                    pass
                assert row.status in STATUSES

        result = await db_session.execute(select(Submission.status))
        assert set(result.scalars().all()) <= STATUSES


class TestSubmissionQueries:
    """list_by_status and count_pending_by_type."""

    def setup_method(self):
        self.service = SubmissionService()

    @pytest.mark.asyncio
    async def test_list_filters_by_status_and_type(self, db_session, admin, photographer, make_submission):
        pending_gallery = await self.service.create(
            db_session, make_submission("gallery", request_homepage=True), photographer
        )
        await self.service.create(db_session, make_submission("gallery"), photographer)
        await self.service.create(db_session, make_submission("story", request_homepage=True), photographer)

        rows = await self.service.list_by_status(db_session, status="pending", resource_type="gallery")
        assert [row.id for row in rows] == [pending_gallery.id]

    @pytest.mark.asyncio
    async def test_list_recent_first(self, db_session, photographer, make_submission):
        first = await self.service.create(db_session, make_submission("gallery", title="First"), photographer)
        second = await self.service.create(db_session, make_submission("gallery", title="Second"), photographer)

        rows = await self.service.list_by_status(db_session, owner_id="p1", recent_first=True)
        assert [row.id for row in rows] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_unknown_status_filter_fails(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.list_by_status(db_session, status="archived")

    @pytest.mark.asyncio
    async def test_unknown_type_filter_fails(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.list_by_status(db_session, resource_type="booking")

    @pytest.mark.asyncio
    async def test_count_pending_by_type(self, db_session, photographer, anonymous, make_submission):
        await self.service.create(db_session, make_submission("gallery", request_homepage=True), photographer)
        await self.service.create(db_session, make_submission("category"), photographer)
        await self.service.create(db_session, make_submission("city"), photographer)
        await self.service.create(db_session, make_submission("photographer"), anonymous)
        await self.service.create(db_session, make_submission("story"), photographer)

        counts = await self.service.count_pending_by_type(db_session)
        assert counts == {
            "category": 1,
            "city": 1,
            "gallery": 1,
            "photographer": 1,
            "story": 0,
            "total": 4,
        }
