"""
Security: password hashing.
Challenge: No plain-text passwords at rest; the hash never leaves the persistence layer.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """One-way hash for storage. Never store plain passwords."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time comparison against a stored hash."""
    return pwd_context.verify(plain, hashed)
