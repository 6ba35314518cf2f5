"""Auth service: signup, login, token gate and password lifecycle.

Pure business logic with no HTTP dependencies.
Raises domain errors that the API layer maps to HTTP status codes.
"""

import logging
from collections.abc import Collection
from datetime import datetime, timedelta, timezone

from domain.model.errors import (
    AuthenticationError,
    DeliveryError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from domain.model.user import Role, User
from port.mail_sender import MailSender
from port.user_repository import UserRepository
from services.credentials import hash_password, verify_password
from services.token_service import hash_reset_token, issue_reset_token, verify_access_token

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

# Stamped slightly in the past so a token issued right after the change stays valid.
PASSWORD_CHANGE_SKEW = timedelta(seconds=1)

INVALID_RESET_TOKEN = "Token is invalid or has expired"


def _validate_new_password(password: str, password_confirm: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
    if password != password_confirm:
        raise ValidationError("Passwords are not the same")


def _store_password(repo: UserRepository, user: User, password: str, reset_token_hash: str | None = None) -> User:
    """Hash and store `password`. With `reset_token_hash` the write also consumes that token."""
    now = datetime.now(timezone.utc)
    changed_at = now - PASSWORD_CHANGE_SKEW
    password_hash = hash_password(password)
    if reset_token_hash is not None:
        if not repo.consume_reset_token(user.id, reset_token_hash, now, password_hash, changed_at):
            raise ValidationError(INVALID_RESET_TOKEN)
    elif not repo.set_password(user.id, password_hash, changed_at):
        raise DomainError("Failed to update password")

    user.password_hash = password_hash
    user.password_changed_at = changed_at
    user.password_reset_token = None
    user.password_reset_expires = None
    return user


# ── session ──────────────────────────────────────────────


def signup(
    repo: UserRepository,
    name: str,
    email: str,
    password: str,
    password_confirm: str,
) -> User:
    """Register a new user with the default role.

    Raises:
        ValidationError: password too short or confirmation mismatch
        DuplicateError: email already registered
    """
    name = name.strip()
    if not name:
        raise ValidationError("Please tell us your name!")
    _validate_new_password(password, password_confirm)

    user = repo.create(name=name, email=email, password_hash=hash_password(password), role=Role.USER)
    if not user:
        raise DomainError("Failed to create user")

    logger.info("User signed up", extra={"userId": user.id})
    return user


def login(repo: UserRepository, email: str | None, password: str | None) -> User:
    """Check credentials. Doesn't reveal whether the email exists."""
    if not email or not password:
        raise ValidationError("Please provide email and password!")

    user = repo.get_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Incorrect email or password")
    return user


def authenticate_token(repo: UserRepository, token: str | None) -> User:
    """Resolve the user behind a bearer token.

    Raises AuthenticationError (or its token subclasses) when the token is
    missing, invalid, expired, belongs to a user who no longer exists, or
    predates the user's last password change.
    """
    if not token:
        raise AuthenticationError("You are not logged in! Please log in to get access.")

    claims = verify_access_token(token)

    user = repo.get_by_id(claims.user_id)
    if not user:
        raise AuthenticationError("The user belonging to this token no longer exists.")

    if user.changed_password_after(claims.issued_at):
        raise AuthenticationError("User recently changed password! Please log in again.")
    return user


def authorize(user: User, allowed_roles: Collection[Role]) -> None:
    if user.role not in allowed_roles:
        logger.info("Role not permitted", extra={"userId": user.id, "role": user.role.value})
        raise PermissionDeniedError("You do not have permission to perform this action")


# ── password lifecycle ───────────────────────────────────


def forgot_password(
    repo: UserRepository,
    mail_sender: MailSender,
    email: str,
    reset_url_base: str,
) -> None:
    """Store a reset token hash and email the plaintext token to the user.

    If the email cannot be sent the stored token is cleared again, so no
    record keeps a token nobody received.
    """
    user = repo.get_by_email(email)
    if not user:
        raise NotFoundError("There is no user with that email address.")

    reset = issue_reset_token()
    if not repo.set_reset_token(user.id, reset.hashed, reset.expires_at):
        raise DomainError("Failed to store reset token")

    reset_url = f"{reset_url_base.rstrip('/')}/{reset.plaintext}"
    body = (
        "Forgot your password? Submit a PATCH request with your new password and "
        f"password_confirm to: {reset_url}\n"
        "If you didn't forget your password, please ignore this email!"
    )

    try:
        mail_sender.send(
            to=user.email,
            subject="Your password reset token (valid for 10 min)",
            body=body,
        )
    except DeliveryError as e:
        repo.clear_reset_token(user.id)
        logger.error("Reset email failed, token cleared", extra={"userId": user.id})
        raise DeliveryError("There was an error sending the email. Try again later!") from e

    logger.info("Password reset token sent", extra={"userId": user.id})


def reset_password(
    repo: UserRepository,
    token: str,
    password: str,
    password_confirm: str,
) -> User:
    """Consume a reset token and set a new password. Single use."""
    token_hash = hash_reset_token(token)
    user = repo.get_by_reset_token(token_hash, datetime.now(timezone.utc))
    if not user:
        raise ValidationError(INVALID_RESET_TOKEN)

    _validate_new_password(password, password_confirm)
    _store_password(repo, user, password, reset_token_hash=token_hash)

    logger.info("Password reset", extra={"userId": user.id})
    return user


def update_password(
    repo: UserRepository,
    user: User,
    password_current: str,
    password: str,
    password_confirm: str,
) -> User:
    """Change the password of an authenticated user."""
    if not verify_password(password_current, user.password_hash):
        raise AuthenticationError("Your current password is wrong.")

    _validate_new_password(password, password_confirm)
    _store_password(repo, user, password)

    logger.info("Password updated", extra={"userId": user.id})
    return user
