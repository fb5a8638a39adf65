import uuid
from datetime import timedelta

import jwt
from fastapi import Request, WebSocket

from .date_helper import utc_now
from .errors import AuthenticationFailure
from .settings import settings


def create_access_token(user_id: uuid.UUID, expires_minutes: int | None = None) -> str:
    """Sign a token for ``user_id``.

    Tokens are normally issued by the identity provider; this is used by
    local tooling and the test-suite.
    """
    minutes = expires_minutes or settings.ACCESS_EXPIRE_MINUTES
    payload = {
        "sub": str(user_id),
        "iat": utc_now(),
        "exp": utc_now() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailure("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationFailure("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationFailure("Token missing user ID")
    try:
        return uuid.UUID(user_id)
    except ValueError:
        raise AuthenticationFailure("Invalid user ID format in token")


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def jwt_protect(request: Request) -> uuid.UUID:
    token = _bearer_token(request.headers.get("Authorization")) or request.cookies.get(
        "access_token"
    )
    if not token:
        raise AuthenticationFailure("Not authenticated")
    return decode_access_token(token)


def ws_token(websocket: WebSocket) -> str | None:
    return (
        websocket.cookies.get("access_token")
        or websocket.query_params.get("token")
        or _bearer_token(websocket.headers.get("Authorization"))
    )
