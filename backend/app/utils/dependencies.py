from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_access_token

_bearer = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    """
    Resolve the acting principal from the bearer token.

    Returns the token claims: ``{"sub": "<user id>", "role": "<role>", ...}``.
    """
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise UnauthorizedError(get_error_message("authentication_required"))

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub") or not claims.get("role"):
        raise UnauthorizedError(get_error_message("authentication_required"))
    return claims


def current_user_id(user: dict) -> int:
    return int(user.get("sub"))
