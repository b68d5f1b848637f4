"""Tests for drafts and their promotion to scheduled posts."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from manypost.db.models import DraftModel
from manypost.domain.enums import PostStatus, PrivacyStatus, VideoType
from manypost.domain.errors import NotFoundError, ValidationError
from manypost.services.drafts import (
    create_draft,
    delete_draft,
    get_draft,
    list_drafts,
    promote_draft,
    update_draft,
)
from manypost.utils.time import ensure_utc, utcnow


def draft_count(session) -> int:
    return session.execute(select(func.count(DraftModel.id))).scalar_one()


class TestDraftCrud:
    def test_create_empty_draft(self, session, factory):
        user = factory.user()

        draft = create_draft(session, user.id)

        assert draft.title is None
        assert draft.privacy_status == PrivacyStatus.PUBLIC
        assert draft.notify_subscribers is True

    def test_create_sets_platform_from_integration(self, session, factory):
        user = factory.user()
        integration = factory.integration(user)

        draft = create_draft(session, user.id, integration_id=integration.id, title="Idea")

        assert draft.platform == "youtube"
        assert draft.title == "Idea"

    def test_cannot_reference_someone_elses_video(self, session, factory):
        owner, stranger = factory.user(), factory.user()
        video = factory.video(owner)

        with pytest.raises(NotFoundError):
            create_draft(session, stranger.id, video_id=video.id)

    def test_unknown_field_rejected(self, session, factory):
        with pytest.raises(ValidationError):
            create_draft(session, factory.user().id, colour="blue")

    def test_update_and_clear(self, session, factory):
        user = factory.user()
        draft = create_draft(session, user.id, title="Old", description="Desc")

        draft = update_draft(session, user.id, draft.id, title="New", description=None)

        assert draft.title == "New"
        assert draft.description is None

    def test_update_cannot_clear_defaults(self, session, factory):
        user = factory.user()
        draft = create_draft(session, user.id, privacy_status=PrivacyStatus.UNLISTED)

        draft = update_draft(session, user.id, draft.id, privacy_status=None)

        assert draft.privacy_status == PrivacyStatus.UNLISTED

    def test_list_and_delete_are_owner_scoped(self, session, factory):
        owner, stranger = factory.user(), factory.user()
        draft = create_draft(session, owner.id, title="Mine")

        assert [d.id for d in list_drafts(session, owner.id)] == [draft.id]
        assert list_drafts(session, stranger.id) == []
        with pytest.raises(NotFoundError):
            delete_draft(session, stranger.id, draft.id)

        delete_draft(session, owner.id, draft.id)
        with pytest.raises(NotFoundError):
            get_draft(session, owner.id, draft.id)


class TestPromoteDraft:
    def test_reproduces_every_field(self, session, factory):
        user = factory.user()
        integration, video = factory.integration(user), factory.video(user)
        when = utcnow() + timedelta(days=1)
        fields = {
            "integration_id": integration.id,
            "video_id": video.id,
            "scheduled_time": when,
            "title": "Full draft",
            "description": "Everything filled in",
            "tags": ["a", "b"],
            "category": "22",
            "privacy_status": PrivacyStatus.PRIVATE,
            "video_type": VideoType.SHORT,
            "thumbnail_url": "https://img/thumb.jpg",
            "made_for_kids": True,
            "notify_subscribers": False,
        }
        draft = create_draft(session, user.id, **fields)

        post = promote_draft(session, user.id, draft.id)

        assert post.status == PostStatus.PENDING
        assert post.platform == "youtube"
        assert ensure_utc(post.scheduled_time) == when
        for name, value in fields.items():
            if name != "scheduled_time":
                assert getattr(post, name) == value, name
        assert draft_count(session) == 0

    def test_overrides_fill_missing_fields(self, session, factory):
        user = factory.user()
        integration, video = factory.integration(user), factory.video(user)
        draft = create_draft(session, user.id, integration_id=integration.id, video_id=video.id)

        post = promote_draft(
            session,
            user.id,
            draft.id,
            scheduled_time=utcnow() + timedelta(hours=2),
            title="Added at schedule time",
        )

        assert post.title == "Added at schedule time"
        assert post.integration_id == integration.id

    def test_missing_required_fields(self, session, factory):
        user = factory.user()
        draft = create_draft(session, user.id, title="Only a title")

        with pytest.raises(ValidationError) as exc_info:
            promote_draft(session, user.id, draft.id)

        assert exc_info.value.details["missing"] == ["integration_id", "video_id", "scheduled_time"]
        assert draft_count(session) == 1

    def test_inactive_integration_keeps_draft(self, session, factory):
        user = factory.user()
        integration = factory.integration(user, is_active=False)
        draft = create_draft(
            session,
            user.id,
            integration_id=integration.id,
            video_id=factory.video(user).id,
            scheduled_time=utcnow(),
            title="t",
        )

        with pytest.raises(ValidationError):
            promote_draft(session, user.id, draft.id)

        session.rollback()
        assert draft_count(session) == 1
