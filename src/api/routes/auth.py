"""Authentication routes (signup, login, password lifecycle)."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, status

from api.dependencies import get_mail_sender, get_user_repo
from api.models import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
)
from api.security import get_current_user_required
from domain.model.user import User
from port.mail_sender import MailSender
from port.user_repository import UserRepository
from services import auth_service
from services.token_service import issue_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["auth"])

# bcrypt and SMTP calls block, so service calls run in worker threads.


def _signed_in(user: User) -> AuthResponse:
    return AuthResponse.for_user(issue_access_token(user.id), user)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignupRequest, repo: UserRepository = Depends(get_user_repo)):
    """Register a new user and sign them in.

    Raises:
        ValidationError: 400 if the password is too short or not confirmed
        DuplicateError: 400 if the email is already registered
    """
    user = await asyncio.to_thread(
        auth_service.signup,
        repo,
        name=request.name,
        email=request.email,
        password=request.password,
        password_confirm=request.password_confirm,
    )
    return _signed_in(user)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, repo: UserRepository = Depends(get_user_repo)):
    """Login user and return JWT token.

    Raises:
        ValidationError: 400 if email or password is missing
        AuthenticationError: 401 if credentials are invalid
    """
    user = await asyncio.to_thread(auth_service.login, repo, request.email, request.password)
    logger.info("User logged in", extra={"userId": user.id})
    return _signed_in(user)


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    repo: UserRepository = Depends(get_user_repo),
    mail_sender: MailSender = Depends(get_mail_sender),
):
    """Email a single-use password reset link to the account owner."""
    reset_url_base = f"{str(request.base_url).rstrip('/')}{router.prefix}/reset-password"
    await asyncio.to_thread(auth_service.forgot_password, repo, mail_sender, body.email, reset_url_base)
    return {"status": "success", "message": "Token sent to email!"}


@router.patch("/reset-password/{token}", response_model=AuthResponse)
async def reset_password(
    token: str,
    request: ResetPasswordRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    """Consume a reset token, set the new password and sign the user in."""
    user = await asyncio.to_thread(
        auth_service.reset_password, repo, token, request.password, request.password_confirm,
    )
    return _signed_in(user)


@router.patch("/update-my-password", response_model=AuthResponse)
async def update_my_password(
    request: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Change the caller's password. Older tokens stop working."""
    user = await asyncio.to_thread(
        auth_service.update_password,
        repo,
        current_user,
        password_current=request.password_current,
        password=request.password,
        password_confirm=request.password_confirm,
    )
    return _signed_in(user)
