"""Bearer token and password-reset token lifecycle.

Access tokens are HS256 JWTs carrying the user id (`sub`), issue time (`iat`)
and expiry (`exp`). Nothing is persisted; validity is signature + expiry,
and the caller compares `iat` against the user's password change time.

Reset tokens are random values delivered out-of-band. Only a sha256 digest
is stored so the database never holds a usable token.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from domain.model.errors import ExpiredTokenError, InvalidTokenError
from domain.model.token import ResetToken, TokenClaims
from utils import config

logger = logging.getLogger(__name__)


def issue_access_token(user_id: str, expires_in: timedelta | None = None) -> str:
    """Create a signed access token for `user_id`."""
    if expires_in is None:
        expires_in = timedelta(days=config.JWT_EXPIRES_IN_DAYS)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def verify_access_token(token: str) -> TokenClaims:
    """Verify signature and expiry and return the embedded claims.

    Raises:
        ExpiredTokenError: signature is valid but `exp` has passed
        InvalidTokenError: anything else wrong with the token
    """
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.debug(f"JWT expired: {e}")
        raise ExpiredTokenError("Your token has expired! Please log in again.") from e
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        raise InvalidTokenError("Invalid token. Please log in again!") from e

    user_id = payload.get("sub")
    issued_at = payload.get("iat")
    if not isinstance(user_id, str) or not isinstance(issued_at, (int, float)):
        raise InvalidTokenError("Invalid token. Please log in again!")
    return TokenClaims(user_id=user_id, issued_at=int(issued_at))


def hash_reset_token(plaintext: str) -> str:
    """Deterministic digest used to look a reset token up by equality."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def issue_reset_token(now: datetime | None = None) -> ResetToken:
    """Generate a single-use reset token valid for a few minutes."""
    if now is None:
        now = datetime.now(timezone.utc)
    plaintext = secrets.token_hex(config.RESET_TOKEN_BYTES)
    return ResetToken(
        plaintext=plaintext,
        hashed=hash_reset_token(plaintext),
        expires_at=now + timedelta(minutes=config.RESET_TOKEN_EXPIRES_MINUTES),
    )
