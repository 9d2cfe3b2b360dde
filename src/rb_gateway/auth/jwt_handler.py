"""JWT access token creation and verification.

HS256 with the JWT_SECRET shared with the upstream auth service. Only access
tokens are accepted here; there is no refresh flow in this service.
create_access_token exists for operator tooling and tests.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.rb_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(account_id: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": account_id,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> str:
    """Verify signature, expiry and token type. Returns the account id ("sub").

    Raises InvalidCredentialsError for anything else.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    account_id = payload.get("sub")
    if not isinstance(account_id, str) or not account_id:
        raise InvalidCredentialsError()
    return account_id
