import os
import sys

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test suites to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Web server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT", "8080"))

# Session cookie signing secret (Starlette SessionMiddleware)
try:
    SESSION_SECRET = os.environ.get("SESSION_SECRET", "")
    if RUNTIME_ENVIRONMENT != RuntimeEnvironment.TEST and len(SESSION_SECRET) < 32:
        raise ValueError(f"SESSION_SECRET must be at least 32 characters long (currently: {len(SESSION_SECRET)})")
except ValueError as e:
    print(f"\n ERROR: Invalid SESSION_SECRET configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Generate a secure secret with: openssl rand -hex 32\n", file=sys.stderr)
    sys.exit(1)
SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "eshop_session")
SESSION_MAX_AGE_SECONDS = int(os.environ.get("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 24)))  # Default: 1 day
SESSION_HTTPS_ONLY = os.environ.get("SESSION_HTTPS_ONLY", "false") == "true"

# Admin accounts: customers whose username is listed here get the ADMIN role at login
ADMIN_USERNAME_LIST = [
    username.strip()
    for username in os.environ.get("ADMIN_USERNAME_LIST", "").split(",")
    if username.strip()
]

# Database
SUPPORTED_DB_BACKENDS = ("sqlite", "postgresql")


def db_backend_name(db_url: str) -> str:
    """Backend part of a SQLAlchemy URL; raises ValueError for anything the cart upsert cannot run on."""
    try:
        backend = make_url(db_url).get_backend_name()
    except ArgumentError as e:
        raise ValueError(f"DB_URL is not a valid SQLAlchemy URL: {e}") from e
    if backend not in SUPPORTED_DB_BACKENDS:
        raise ValueError(f"DB_URL backend '{backend}' is not supported")
    return backend


try:
    DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/eshop.db")
    db_backend_name(DB_URL)
except ValueError as e:
    print(f"\n ERROR: Invalid DB_URL configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Supported backends: {', '.join(SUPPORTED_DB_BACKENDS)}\n", file=sys.stderr)
    sys.exit(1)
DB_ECHO = os.environ.get("DB_ECHO", "false") == "true"
DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "20"))
DB_MAX_OVERFLOW = int(os.environ.get("DB_MAX_OVERFLOW", "5"))
DB_POOL_TIMEOUT = int(os.environ.get("DB_POOL_TIMEOUT", "20"))  # Seconds to wait for a free connection
DB_POOL_RECYCLE = int(os.environ.get("DB_POOL_RECYCLE", "1800"))  # Seconds before a connection is replaced

# Password hashing (bcrypt work factor)
try:
    PASSWORD_HASH_ROUNDS = int(os.environ.get("PASSWORD_HASH_ROUNDS", "12"))
    if not 4 <= PASSWORD_HASH_ROUNDS <= 31:
        raise ValueError(f"PASSWORD_HASH_ROUNDS must be between 4 and 31 (got: {PASSWORD_HASH_ROUNDS})")
except ValueError as e:
    print(f"\n ERROR: Invalid PASSWORD_HASH_ROUNDS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Current value: {os.environ.get('PASSWORD_HASH_ROUNDS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Pagination
DEFAULT_PAGE_SIZE = int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))
FEATURED_DEFAULT_LIMIT = int(os.environ.get("FEATURED_DEFAULT_LIMIT", "10"))
FEATURED_MAX_LIMIT = int(os.environ.get("FEATURED_MAX_LIMIT", "50"))

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_DIR = os.environ.get("LOG_DIR", "logs")

# Log Retention: Environment-specific defaults
# Dev: keep a month for debugging
# Prod: Use 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

# HTTP Security Configuration
SECURITY_HEADERS_ENABLED = os.environ.get("SECURITY_HEADERS_ENABLED", "true") == "true"
HSTS_ENABLED = os.environ.get("HSTS_ENABLED", "false") == "true"  # Enable HSTS (only for HTTPS)
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else []
