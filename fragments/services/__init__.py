"""Service layer for business logic."""

from fragments.services.auth_service import AuthService
from fragments.services.fragment_service import FragmentService

__all__ = [
    "AuthService",
    "FragmentService",
]
