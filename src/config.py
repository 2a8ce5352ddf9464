"""Configuration module for the Attendance Access Service.

This module provides centralized configuration management, including directory
paths, API server settings, token and invite defaults, and mail transport
settings. All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/attendance_access.db"
)

# Seconds a SQLite connection waits on a locked database before failing.
DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "30"))

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
)

# Bcrypt rounds for identity passwords (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# --- Invite Configuration ---

INVITE_DEFAULT_TTL_DAYS: int = int(os.getenv("INVITE_DEFAULT_TTL_DAYS", "7"))
INVITE_MAX_TTL_DAYS: int = int(os.getenv("INVITE_MAX_TTL_DAYS", "365"))

# Page size for invite listings (newest first)
INVITE_LIST_LIMIT: int = int(os.getenv("INVITE_LIST_LIMIT", "100"))

# Page size for audit log listings
AUDIT_LIST_LIMIT: int = int(os.getenv("AUDIT_LIST_LIMIT", "200"))

# Product name used in invite emails
APP_NAME: str = os.getenv("APP_NAME", "Attendance")

# Frontend base URL; invite links point to {APP_URL}/accept-invite
APP_URL: str = os.getenv("APP_URL", "https://example.app")

# Optional mobile dynamic link domain wrapped around the invite link
DYNAMIC_LINK_DOMAIN: Optional[str] = os.getenv("DYNAMIC_LINK_DOMAIN") or None

# --- Outbox / Mail Configuration ---

OUTBOX_DEFAULT_LIMIT: int = int(os.getenv("OUTBOX_DEFAULT_LIMIT", "50"))
OUTBOX_MAX_LIMIT: int = int(os.getenv("OUTBOX_MAX_LIMIT", "500"))

SENDGRID_API_KEY: str = os.getenv("SENDGRID_API_KEY", "")
SENDGRID_API_URL: str = os.getenv(
    "SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send"
)
SEND_FROM: str = os.getenv(
    "SEND_FROM", f"no-reply@{os.getenv('APP_DOMAIN', 'example.app')}"
)

SMTP_HOST: str = os.getenv("SMTP_HOST", "")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER: str = os.getenv("SMTP_USER", "")
SMTP_PASS: str = os.getenv("SMTP_PASS", "")
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Upper bound for a single delivery attempt, in seconds
MAIL_TIMEOUT_SECONDS: float = float(os.getenv("MAIL_TIMEOUT_SECONDS", "10"))

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
