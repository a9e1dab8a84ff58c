"""Auth dependency: resolve the caller from the bearer token.

With ``JWT_SECRET`` configured the token is an HS256 JWT issued by the auth
provider (``sub``, ``email``, ``user_metadata``). Without it, local runs and
tests use ``Bearer <user_id>:<email>`` (the e-mail part may be empty).
"""

import logging
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status

from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, settings: Settings) -> RequestContext:
    """Turn a bearer token into a RequestContext.

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    secret = settings.jwt_secret.get_secret_value()

    if secret:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience=settings.jwt_audience or None,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise _unauthorized("Session expired") from e
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected bearer token: %s", e)
            raise _unauthorized("Invalid token") from e

        return RequestContext(
            user_id=str(claims["sub"]),
            email=claims.get("email"),
            metadata=dict(claims.get("user_metadata") or {}),
        )

    # Dev format: "<user_id>:<email>"
    user_id, _, email = token.partition(":")
    if not user_id:
        raise _unauthorized("Invalid token format (expected user_id:email)")
    return RequestContext(user_id=user_id, email=email or None)


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> RequestContext:
    """Extract request context from the authorization header.

    Raises:
        HTTPException: 401 if the header is missing or invalid
    """
    if not authorization:
        raise _unauthorized("Missing authorization header")

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header format")

    return decode_token(authorization[7:], settings)
