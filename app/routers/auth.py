"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import CurrentUser, get_current_user, require_recruiter
from app.schemas.auth import (
    MeResponse,
    RecruiterRequest,
    RecruiterResponse,
    RequestCodeRequest,
    SignupRequest,
    StatusResponse,
    TokenResponse,
    UserListResponse,
    UserResponse,
    VerifyCodeRequest,
)
from app.services.auth import get_auth_service
from app.services.mailer import Mailer, get_mailer
from app.services.otp import get_otp_service
from app.services.session import get_session_service

logger = logging.getLogger("eventpass")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

CODE_SENT_MESSAGE = "A one-time code has been sent to your email address."


@router.get("/", response_model=UserListResponse)
def list_users(
    _: CurrentUser = Depends(require_recruiter),
    db: Session = Depends(get_db),
) -> UserListResponse:
    """List every user. Recruiters only."""
    users = get_auth_service().list_users(db)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get("/me", response_model=MeResponse)
def me(current: CurrentUser = Depends(get_current_user)) -> MeResponse:
    """Return the currently logged in user."""
    return MeResponse(user=UserResponse.model_validate(current.user))


@router.post("/", response_model=StatusResponse, status_code=201)
async def signup(
    body: SignupRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> StatusResponse:
    """Register a new account and email its first one-time code."""
    user = get_auth_service().register(db, body.email, body.name)
    code = get_otp_service().generate(db, user)
    await mailer.send_otp(user.email, code, get_settings().OTP_EXPIRE_MINUTES)
    return StatusResponse(status="success", message=CODE_SENT_MESSAGE)


@router.post("/request-code", response_model=StatusResponse)
async def request_code(
    body: RequestCodeRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> StatusResponse:
    """Email a one-time code, creating the account on first contact."""
    user = get_auth_service().get_or_create(db, body.email)
    code = get_otp_service().generate(db, user)
    await mailer.send_otp(user.email, code, get_settings().OTP_EXPIRE_MINUTES)
    return StatusResponse(status="success", message=CODE_SENT_MESSAGE)


@router.post("/verify-code", response_model=TokenResponse)
def verify_code(body: VerifyCodeRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Exchange a one-time code for a session token."""
    user = get_otp_service().verify(db, body.code)
    issued = get_session_service().issue(db, user)
    return TokenResponse(
        status="success",
        message="Authentication successful. You are now logged in.",
        token=issued.token,
        expires_in=issued.expires_in,
    )


@router.post("/recruiter", response_model=RecruiterResponse, status_code=201)
def create_recruiter(body: RecruiterRequest, db: Session = Depends(get_db)) -> RecruiterResponse:
    """Create a recruiter account and log it in immediately."""
    recruiter = get_auth_service().create_recruiter(db, body.name, body.email)
    issued = get_session_service().issue(db, recruiter)
    return RecruiterResponse(
        recruiter=UserResponse.model_validate(recruiter),
        token=issued.token,
        expires_in=issued.expires_in,
    )


@router.post("/logout", response_model=StatusResponse)
def logout(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StatusResponse:
    """Revoke the token used for this request."""
    get_session_service().revoke(db, current.user, current.token)
    return StatusResponse(status="success", message="You have been logged out successfully.")


@router.post("/logout-all", response_model=StatusResponse)
def logout_all(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StatusResponse:
    """Revoke every session of the current user."""
    count = get_session_service().revoke_all(db, current.user)
    return StatusResponse(status="success", message=f"Signed out of {count} session(s).")
