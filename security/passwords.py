"""Password hashing helpers."""

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    """Return a salted one-way hash of the password."""

    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """Compare a password against a stored hash in constant time."""

    return check_password_hash(password_hash, password)
