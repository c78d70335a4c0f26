"""Test-wide environment: set before any app module reads settings."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("BCRYPT_ROUNDS", "10")
os.environ.setdefault("APP_ENV", "dev")
