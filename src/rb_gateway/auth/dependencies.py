"""FastAPI dependencies: caller identity and operator gate.

Usage in any router:
    from src.rb_gateway.auth.dependencies import get_account_id, require_operator

    @router.post("/markets")
    async def create(operator: str = Depends(require_operator)):
        ...

Identity is the "sub" claim of a Bearer access token signed with JWT_SECRET.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import settings
from src.rb_common.errors import ForbiddenError, InvalidCredentialsError
from src.rb_gateway.auth.jwt_handler import decode_access_token

# auto_error=False: a missing header gets the same 401 as a bad token
bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_account_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Extract and validate the Bearer token, return the account id.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        account_id = decode_access_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    # Picked up by RequestLogMiddleware after the handler returns
    request.state.account_id = account_id
    return account_id


async def require_operator(
    account_id: Annotated[str, Depends(get_account_id)],
) -> str:
    """Verify the caller is the operator account.

    Raises ForbiddenError (HTTP 403) otherwise. Protects market creation,
    closing, (de)activation, collateral sweep and the faucet.
    """
    if account_id != settings.OPERATOR_ACCOUNT_ID:
        raise ForbiddenError()
    return account_id
