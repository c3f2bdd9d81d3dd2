"""
Operator password hashes.

bcrypt through passlib; hashes written by older passlib releases are
flagged for rehash on the next successful login.
"""

from typing import Optional

from passlib.context import CryptContext

_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    return _context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False for a missing or unparseable stored hash instead of raising."""
    if not hashed_password:
        return False
    try:
        return _context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def needs_rehash(hashed_password: str) -> bool:
    return _context.needs_update(hashed_password)
