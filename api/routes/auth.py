"""
api/routes/auth.py -- Account signup, login, and profile endpoints.

Routes:
  POST /auth/signup   -- create an account; 202
  POST /auth/login    -- password login; returns an access token
  GET  /profile       -- current user's profile (requires auth)

Security:
  Authenticator.login() provides timing equalization -- use it, never inline
  get_user_by_username() + verify_password().
  Unknown username and wrong password return the same 401 body so the
  response does not leak which usernames exist.
  Cache-Control: no-store on login responses so tokens are not cached.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    ErrorDetail,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    SignupRequest,
)
from auth.dependencies import get_current_username
from auth.models import User
from auth.store import UserStore
from auth.tokens import Authenticator
from core.errors import InternalError, NotFound, Unauthorized

logger = logging.getLogger("bookman.api.auth")

# Auth policy:
# - POST /auth/signup: public
# - POST /auth/login:  public
# - GET  /profile:     requires auth (get_current_username)
router = APIRouter()


@router.post("/auth/signup", response_model=MessageResponse, status_code=202)
def signup(request: Request, body: SignupRequest) -> MessageResponse:
    """Register a new account. The password is hashed before it reaches the store.

    A taken username or phone number raises Conflict, which the app maps to 400
    with the store's message.
    """
    authenticator: Authenticator = request.app.state.authenticator
    user_store: UserStore = request.app.state.user_store
    user_store.create_user(
        User(
            username=body.username,
            firstname=body.firstname,
            lastname=body.lastname,
            phone_number=body.phone_number,
            hashed_password=authenticator.hash_password(body.password),
        )
    )
    logger.info("Registered user %s", body.username)
    return MessageResponse(message="user has been created successfully")


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed access token."""
    authenticator: Authenticator = request.app.state.authenticator
    try:
        token = authenticator.login(body.username, body.password)
    except (NotFound, Unauthorized) as exc:
        logger.warning("can not login %r: %s", body.username, exc)
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(error=ErrorDetail(code="bad_credentials", message="can not login")).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=int(authenticator.config.token_lifetime.total_seconds()),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/profile", response_model=ProfileResponse)
def profile(request: Request, username: str = Depends(get_current_username)) -> ProfileResponse:
    """Return the profile fields the current user submitted at signup."""
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_user_by_username(username)
    except NotFound as exc:
        # A valid token for a user that no longer exists is a server-side inconsistency.
        raise InternalError("can not retrieve the user of this token") from exc
    return ProfileResponse(
        username=user.username,
        firstname=user.firstname,
        lastname=user.lastname,
        phone_number=user.phone_number,
    )
