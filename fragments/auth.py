"""Authentication and security utilities."""

from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from fragments.exceptions import InvalidCredentialsError

basic_scheme = HTTPBasic(auto_error=False, realm="fragments")


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash
        rounds: bcrypt cost factor

    Returns:
        Bcrypt hash of the password
    """
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Args:
        password: Plain text password to verify
        password_hash: Bcrypt hash to verify against

    Returns:
        True if password matches hash, False otherwise
    """
    password_bytes = password.encode('utf-8')
    hash_bytes = password_hash.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except ValueError:
        return False


def get_current_user(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
) -> str:
    """
    FastAPI dependency to validate Basic credentials and extract the owner id.

    Args:
        request: Incoming request (used to reach the app's AuthService)
        credentials: Parsed Authorization header, if any

    Returns:
        Owner id of the authenticated user

    Raises:
        InvalidCredentialsError: If credentials are missing or invalid
    """
    if credentials is None:
        raise InvalidCredentialsError("Authorization header is required")

    auth_service = request.app.state.auth_service
    owner_id = auth_service.authenticate(credentials.username, credentials.password)
    request.state.user_id = owner_id
    return owner_id
