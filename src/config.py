"""Configuration module for the content licensing platform.

This module provides centralized configuration management, including directory
paths, database and API server settings, entitlement terms, and bootstrap
defaults. All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory (database file and uploaded artifacts live here)
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / "data")))

# Uploaded content files, one file per artifact reference
ARTIFACTS_DIR_NAME = "artifacts"
ARTIFACTS_DIR = Path(os.getenv("ARTIFACTS_DIR", str(DATA_DIR / ARTIFACTS_DIR_NAME)))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/content_platform.db"
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "3001"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8081,"
    "http://127.0.0.1:8081",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Authentication Configuration ---

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Absolute lifetime of a bearer token, counted from issue time
TOKEN_TTL_DAYS: int = int(os.getenv("TOKEN_TTL_DAYS", "30"))

# Bootstrap admin account, created only when no admin exists
DEFAULT_ADMIN_EMAIL: str = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@mobilelms.com")
DEFAULT_ADMIN_PASSWORD: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "Admin@123")
DEFAULT_ADMIN_NAME: str = os.getenv("DEFAULT_ADMIN_NAME", "Admin")

# --- Subscription Configuration ---

# Fixed subscription term, no proration
SUBSCRIPTION_TERM_DAYS: int = int(os.getenv("SUBSCRIPTION_TERM_DAYS", "30"))

# Static plan catalog (read-only reference data)
SUBSCRIPTION_PLANS: List[Dict[str, object]] = [
    {
        "id": "starter",
        "name": "Starter Plan",
        "price": 6.99,
        "description": "Access to core revision kits",
    },
    {
        "id": "premium",
        "name": "Premium Plan",
        "price": 9.99,
        "description": "All kits, downloads, and support",
    },
]

# --- Catalog Configuration ---

# Insert the sample catalog on startup when the catalog is empty
SEED_SAMPLE_CONTENT: bool = os.getenv("SEED_SAMPLE_CONTENT", "true").lower() == "true"

# Maximum accepted upload size in bytes
MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(50 * 1024 * 1024)))
