"""
Scan Barang Backend — Abstract Identity Provider Interface
============================================================

What:  Abstract base class for the external identity provider that issues
       and verifies bearer tokens and owns user accounts.
Why:   Routes and the auth dependency depend on this contract, not on the
       Firebase SDK, so tests substitute a fake and the provider could be
       replaced without touching callers.
How:   FirebaseIdentityService (identity_service.py) implements it.
Who:   require_owner_key (middleware/auth.py) and AuthService.

Error contract (every implementation):
    - token rejected                       → InvalidTokenError (403)
    - account already exists               → DuplicateEmailError (400)
    - unknown email                        → NotFoundError (404)
    - wrong password                       → InvalidCredentialsError (401)
    - anything else the provider reports   → UpstreamError (mapped status)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class IdentityUser:
    """The subset of a provider account record the API needs."""

    uid: str
    email: str
    email_verified: bool


@dataclass(frozen=True)
class SignInResult:
    """Tokens returned by a successful password grant."""

    uid: str
    id_token: str
    refresh_token: str


class IdentityProvider(ABC):
    """
    Abstract interface for account management and token verification.

    Implementations:
        - FirebaseIdentityService: firebase-admin SDK + Identity Toolkit REST API
    """

    @abstractmethod
    async def verify_token(self, token: str) -> str:
        """
        Verify a bearer token and return the owner key (uid) it was issued for.

        Raises:
            InvalidTokenError: expired, revoked, malformed or foreign token.
        """
        ...

    @abstractmethod
    async def create_user(self, email: str, password: str) -> str:
        """Create an account and return its uid."""
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> IdentityUser:
        ...

    @abstractmethod
    async def generate_email_verification_link(self, email: str) -> str:
        ...

    @abstractmethod
    async def generate_password_reset_link(self, email: str) -> str:
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> SignInResult:
        """
        Exchange email + password for an id token and refresh token.

        Raises:
            NotFoundError: no account for that email.
            InvalidCredentialsError: wrong password.
            UpstreamError: any other provider-reported code (400) or a
                transport failure (500).
        """
        ...

    @abstractmethod
    async def reset_password(self, oob_code: str, new_password: str) -> None:
        """Verify an out-of-band reset code, then apply the new password with it."""
        ...
