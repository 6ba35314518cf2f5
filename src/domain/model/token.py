from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token."""
    user_id: str
    issued_at: int


@dataclass(frozen=True)
class ResetToken:
    """Password reset token: plaintext goes to the user, hash goes to the store."""
    plaintext: str
    hashed: str
    expires_at: datetime
