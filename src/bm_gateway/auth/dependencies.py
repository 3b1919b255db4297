"""FastAPI dependency: get_current_caller.

Usage in any protected router:
    from src.bm_gateway.auth.dependencies import get_current_caller

    @router.post("/protected")
    async def protected(caller: Annotated[str, Depends(get_current_caller)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.bm_common.errors import InvalidCredentialsError
from src.bm_gateway.auth.jwt_handler import decode_token
from src.bm_ledger.domain.constants import POOL_HOLDER_ID

# Tokens come from an external issuer; tokenUrl is only used by Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

# Identities are stored in VARCHAR(64) columns (positions, accounts, ledger).
_MAX_IDENTITY_LENGTH = 64

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_caller(token: str = Depends(oauth2_scheme)) -> str:
    """Validate the Bearer token and return the caller identity (``sub``).

    Raises HTTP 401 if the token is missing, invalid or expired, if the subject
    does not fit the identity columns, or if it names the reserved pool holder.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    identity: str | None = payload.get("sub")
    if not identity or len(identity) > _MAX_IDENTITY_LENGTH or identity == POOL_HOLDER_ID:
        raise _CREDENTIALS_EXCEPTION
    return identity
