"""
Password hashing utilities for user accounts.
Uses bcrypt for secure password hashing.
"""
import hashlib
import hmac

import bcrypt

from school_directory.config import settings


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hashed password.

    Args:
        password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def password_fingerprint(hashed_password: str) -> str:
    """
    Keyed digest of a password hash, safe to embed in a signed token.

    Changes whenever the password changes, so tokens carrying it are single-use.

    Args:
        hashed_password: Stored bcrypt hash

    Returns:
        str: Hex HMAC-SHA256 of the hash keyed with the JWT secret
    """
    return hmac.new(
        settings.JWT_SECRET_KEY.encode('utf-8'),
        hashed_password.encode('utf-8'),
        hashlib.sha256,
    ).hexdigest()


def fingerprint_matches(hashed_password: str, fingerprint: str) -> bool:
    return hmac.compare_digest(password_fingerprint(hashed_password), fingerprint or "")
