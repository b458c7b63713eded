"""
Password hashing for customer accounts.

bcrypt through passlib; the work factor comes from config.PASSWORD_HASH_ROUNDS.
Plaintext passwords never leave this module in any form other than a hash.
The hash and verify calls block for the full work factor; async callers run
them with asyncio.to_thread.
"""

import re

from passlib.context import CryptContext

import config

MIN_PASSWORD_LENGTH = 6
_ALNUM_PATTERN = re.compile(r"[A-Za-z0-9]")

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """Constant-time comparison; a missing or malformed hash never matches."""
    if not plain_password or not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        return False


def dummy_verify() -> None:
    """
    Burn the same CPU time as a real verification.

    Called when no account matches the login identifier so response timing does
    not reveal which usernames exist.
    """
    pwd_context.dummy_verify()


def is_valid_password(password: str | None) -> bool:
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        return False
    return _ALNUM_PATTERN.search(password) is not None
