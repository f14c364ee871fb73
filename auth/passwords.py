"""Password hashing (Argon2 via passlib)."""

from passlib.context import CryptContext

# Upper bound keeps a huge payload from tying up the hasher
MAX_PASSWORD_LENGTH = 1024

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password for storage."""
    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValueError(f"Password cannot exceed {MAX_PASSWORD_LENGTH} characters")
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored hash."""
    if len(plain_password) > MAX_PASSWORD_LENGTH:
        return False
    return pwd_context.verify(plain_password, password_hash)
