"""Tests for API key management."""

import pytest

from manypost.domain.errors import AuthError, NotFoundError, ValidationError
from manypost.services.api_keys import (
    authenticate_api_key,
    create_api_key,
    hash_api_key,
    list_api_keys,
    revoke_api_key,
)


class TestApiKeys:
    def test_create_returns_plaintext_once(self, session, factory):
        user = factory.user()

        api_key, raw_key = create_api_key(session, user.id, "CI")

        assert raw_key.startswith("mp_")
        assert len(raw_key) == 3 + 64
        assert api_key.key_prefix == raw_key[:8]
        assert api_key.key_hash == hash_api_key(raw_key)
        assert raw_key not in (api_key.key_hash, api_key.key_prefix)

    def test_keys_are_unique(self, session, factory):
        user = factory.user()

        _, first = create_api_key(session, user.id, "one")
        _, second = create_api_key(session, user.id, "two")

        assert first != second

    def test_blank_name_rejected(self, session, factory):
        with pytest.raises(ValidationError):
            create_api_key(session, factory.user().id, "   ")

    def test_authenticate_records_use(self, session, factory):
        user = factory.user()
        api_key, raw_key = create_api_key(session, user.id, "CI")
        assert api_key.last_used_at is None

        authenticated = authenticate_api_key(session, raw_key)

        assert authenticated.user_id == user.id
        assert authenticated.last_used_at is not None

    @pytest.mark.parametrize("raw_key", ["", "not-a-key", "mp_" + "0" * 64])
    def test_authenticate_rejects_unknown(self, session, raw_key):
        with pytest.raises(AuthError):
            authenticate_api_key(session, raw_key)

    def test_revoked_key_stops_working(self, session, factory):
        user = factory.user()
        api_key, raw_key = create_api_key(session, user.id, "CI")

        revoke_api_key(session, user.id, api_key.id)

        with pytest.raises(AuthError):
            authenticate_api_key(session, raw_key)
        assert [k.is_active for k in list_api_keys(session, user.id)] == [False]

    def test_revoke_is_owner_scoped(self, session, factory):
        owner, stranger = factory.user(), factory.user()
        api_key, _ = create_api_key(session, owner.id, "CI")

        with pytest.raises(NotFoundError):
            revoke_api_key(session, stranger.id, api_key.id)
