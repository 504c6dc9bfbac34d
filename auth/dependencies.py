"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The Authorization header carries the access token, either raw (the form the
login response hands out) or as "Bearer <token>" for standard API clients.
Both converge on Authenticator.validate_token(), which raises Unauthorized
on any failure; api/main.py turns that into a 401.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.tokens import Authenticator

_BEARER_PREFIX = "Bearer "


def extract_token(authorization: str) -> str:
    """Return the token part of an Authorization header value ("" if absent)."""
    authorization = authorization.strip()
    if authorization[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX.lower():
        return authorization[len(_BEARER_PREFIX) :].strip()
    return authorization


def get_current_username(request: Request) -> str:
    """Require authentication and return the caller's username.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(username: str = Depends(get_current_username)): ...
    """
    authenticator: Authenticator = request.app.state.authenticator
    token = extract_token(request.headers.get("Authorization", ""))
    return authenticator.validate_token(token)
