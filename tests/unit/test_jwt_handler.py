"""Unit tests for JWT handler."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.rb_common.errors import InvalidCredentialsError
from src.rb_gateway.auth.jwt_handler import create_access_token, decode_access_token


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("alice")
    # Decode without verification to inspect claims
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "alice"
    assert payload["type"] == "access"
    assert payload["exp"] > payload["iat"]


def test_decode_valid_access_token() -> None:
    assert decode_access_token(create_access_token("operator")) == "operator"


def test_expired_access_token_raises_credentials_error() -> None:
    """Expired access token must raise InvalidCredentialsError."""
    with patch(
        "src.rb_gateway.auth.jwt_handler._ACCESS_EXPIRE",
        timedelta(seconds=-1),
    ):
        token = create_access_token("alice")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_tampered_token_raises_error() -> None:
    """Tampered token signature must be rejected."""
    token = create_access_token("alice")
    tampered = token[:-4] + ("xxxx" if not token.endswith("xxxx") else "yyyy")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(tampered)


def test_token_signed_with_other_secret_raises_error() -> None:
    token = jwt.encode(
        {"sub": settings.OPERATOR_ACCOUNT_ID, "type": "access"},
        "not-the-shared-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_stripped_signature_raises_error() -> None:
    token = create_access_token(settings.OPERATOR_ACCOUNT_ID)
    head, body, _ = token.split(".")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(f"{head}.{body}.")


def test_non_access_token_raises_error() -> None:
    token = jwt.encode(
        {"sub": "alice", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


@pytest.mark.parametrize("sub", [None, "", 42])
def test_missing_or_malformed_subject_raises_error(sub: object) -> None:
    claims = {"type": "access"} if sub is None else {"sub": sub, "type": "access"}
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_garbage_raises_error() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_access_token("not-a-jwt")
