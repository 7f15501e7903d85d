"""Unit tests for bearer token verification."""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from app.config import settings
from app.core.exceptions import InvalidTokenError
from app.core.security import actor_from_token, create_access_token, decode_token


def test_actor_from_token_reads_claims() -> None:
    token = create_access_token("user-1", name="Ada", is_admin=True)

    actor = actor_from_token(token)

    assert actor.id == "user-1"
    assert actor.name == "Ada"
    assert actor.is_admin is True


def test_name_defaults_to_subject() -> None:
    token = jwt.encode({"sub": "user-9"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    actor = actor_from_token(token)

    assert actor.name == "user-9"
    assert actor.is_admin is False


def test_expired_token_is_rejected() -> None:
    token = create_access_token("user-1", name="Ada", expires_delta=timedelta(seconds=-1))

    with pytest.raises(InvalidTokenError):
        decode_token(token)


def test_refresh_token_is_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-1", "type": "refresh"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(InvalidTokenError, match="Expected access token"):
        decode_token(token)


def test_token_without_subject_is_rejected() -> None:
    token = jwt.encode({"name": "Ada"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    with pytest.raises(InvalidTokenError, match="missing subject"):
        decode_token(token)


def test_token_signed_with_other_key_is_rejected() -> None:
    token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm=settings.jwt_algorithm)

    with pytest.raises(InvalidTokenError):
        decode_token(token)
