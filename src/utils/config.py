"""Runtime configuration read from environment variables.

`api.main` loads `.env` before this module is imported.
"""

import os


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


APP_ENV = os.getenv("APP_ENV", "production").strip().lower()

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    raise ValueError(
        "JWT_SECRET_KEY environment variable is required. "
        "Generate a secure key with: openssl rand -hex 32"
    )
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_IN_DAYS = _get_int("JWT_EXPIRES_IN_DAYS", 90)

# Password reset tokens
RESET_TOKEN_BYTES = 32
RESET_TOKEN_EXPIRES_MINUTES = 10

# Email (SMTP)
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = _get_int("EMAIL_PORT", 25)
EMAIL_USERNAME = os.getenv("EMAIL_USERNAME")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM", "Natours <hello@natours.io>")
EMAIL_TIMEOUT_SECONDS = 10


def is_development() -> bool:
    return APP_ENV == "development"
