"""Test environment defaults.

utils.config reads these at import time, so they must be set before any
test module imports the application.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("APP_ENV", "test")
