from fastapi import Header

from app.exceptions import AuthenticationError


def require_bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Require an `Authorization: Bearer <token>` header and return the token.

    Only presence and shape are checked. Signature and expiry belong to the
    identity provider that issued the token.
    """
    if not authorization:
        raise AuthenticationError()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be a Bearer token")
    return token.strip()
