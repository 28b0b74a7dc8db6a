"""Tests for bearer token handling."""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest

from tubely.core.media.errors import Unauthorized
from tubely.infrastructure.auth.jwt import (
    JWTIdentityExchange,
    get_bearer_token,
    issue_access_token,
)

from fakes import TEST_JWT_SECRET


class TestGetBearerToken:
    """Tests for Authorization header parsing."""

    def test_extracts_token(self):
        assert get_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert get_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz"])
    def test_rejects_missing_or_malformed(self, header):
        with pytest.raises(Unauthorized):
            get_bearer_token(header)


class TestJWTIdentityExchange:
    """Tests for token validation."""

    def test_round_trips_user_id(self, identity):
        user_id = uuid4()

        assert identity.exchange(issue_access_token(user_id, TEST_JWT_SECRET)) == user_id

    def test_expired_token_rejected(self, identity):
        token = issue_access_token(uuid4(), TEST_JWT_SECRET, expires_in=timedelta(seconds=-5))

        with pytest.raises(Unauthorized, match="expired"):
            identity.exchange(token)

    def test_wrong_secret_rejected(self, identity):
        token = issue_access_token(uuid4(), "some-other-secret")

        with pytest.raises(Unauthorized):
            identity.exchange(token)

    def test_wrong_issuer_rejected(self, identity):
        token = issue_access_token(uuid4(), TEST_JWT_SECRET, issuer="someone-else")

        with pytest.raises(Unauthorized):
            identity.exchange(token)

    def test_subject_must_be_a_uuid(self, identity):
        token = issue_access_token(uuid4(), TEST_JWT_SECRET)
        claims = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"], issuer="tubely")
        claims["sub"] = "alice"
        forged = jwt.encode(claims, TEST_JWT_SECRET, algorithm="HS256")

        with pytest.raises(Unauthorized, match="user id"):
            identity.exchange(forged)

    def test_empty_secret_is_a_configuration_error(self):
        with pytest.raises(ValueError):
            JWTIdentityExchange(secret_key="")
