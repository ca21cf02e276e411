"""
Scan Barang Backend — Account Service
=======================================

What:  Registration, verification email, login, logout and password reset.
How:   Composes the identity provider (accounts, tokens, links), the mail
       service (link delivery) and the local `users` table (username lookup).
Who:   routes/auth.py.

Registration flow:
    provider.create_user → INSERT users (firebase_uid, email, username)

Login flow:
    provider.get_user_by_email (404 unknown)
      → email_verified? (403 otherwise)
      → password grant (404 / 401 / 400 per provider code)
      → local username lookup (404 when the row is missing)
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    EmailNotVerifiedError,
    NotFoundError,
    UpstreamError,
)
from scanbarang.models.user import User
from scanbarang.schemas.auth import LoginResponse, RegisterResponse
from scanbarang.schemas.common import MessageResponse
from scanbarang.services.identity_base import IdentityProvider
from scanbarang.services.identity_service import identity_service
from scanbarang.services.mail_service import MailService, mail_service

logger = logging.getLogger(__name__)


class AuthService:
    """
    Account workflows. Holds no per-request state; the session is passed in.

    Args:
        identity: Identity provider adapter (FirebaseIdentityService in production).
        mailer:   Outbound mail adapter.
    """

    def __init__(self, identity: IdentityProvider, mailer: MailService):
        self.identity = identity
        self.mailer = mailer

    async def register(
        self, db: AsyncSession, email: str, password: str, username: str
    ) -> RegisterResponse:
        uid = await self.identity.create_user(email, password)

        db.add(User(firebase_uid=uid, email=email, username=username))
        try:
            await db.flush()
        except IntegrityError:
            # Local row already exists for this email (provider and DB out of sync)
            raise DuplicateEmailError(email)
        except SQLAlchemyError as e:
            logger.error("Failed to store user %s: %s", uid, str(e))
            raise DatabaseError(context={"uid": uid, "error": type(e).__name__})

        logger.info("User registered: uid=%s", uid)
        return RegisterResponse(message="Registration successful!", userId=uid)

    async def send_verification_email(self, db: AsyncSession, email: str) -> MessageResponse:
        result = await db.execute(select(User.username).where(User.email == email))
        username = result.scalar_one_or_none()
        if username is None:
            raise NotFoundError(resource="email", context={"email": email})

        try:
            link = await self.identity.generate_email_verification_link(email)
        except NotFoundError:
            # Local user without a provider account
            raise UpstreamError(message="Failed to send verification email.")
        await self.mailer.send_verification_email(email, username, link)

        return MessageResponse(message="Verification email sent.")

    async def login(self, db: AsyncSession, email: str, password: str) -> LoginResponse:
        account = await self.identity.get_user_by_email(email)
        if not account.email_verified:
            raise EmailNotVerifiedError()

        tokens = await self.identity.sign_in_with_password(email, password)

        result = await db.execute(select(User.username).where(User.firebase_uid == account.uid))
        username = result.scalar_one_or_none()
        if username is None:
            raise NotFoundError(resource="user", resource_id=account.uid)

        logger.info("Login: uid=%s", account.uid)
        return LoginResponse(
            message="Login successful.",
            idToken=tokens.id_token,
            refreshToken=tokens.refresh_token,
            username=username,
            uid=account.uid,
        )

    async def logout(self) -> MessageResponse:
        # Tokens live on the client; nothing to revoke server-side
        return MessageResponse(message="Logout successful. Please delete the token on the client.")

    async def forgot_password(self, email: str) -> MessageResponse:
        try:
            await self.identity.get_user_by_email(email)
            link = await self.identity.generate_password_reset_link(email)
        except NotFoundError:
            raise UpstreamError(
                message="Failed to send password reset link.",
                context={"email": email},
            )
        await self.mailer.send_password_reset_email(email, link)

        return MessageResponse(message="Password reset link sent.")

    async def reset_password(self, oob_code: str, new_password: str) -> MessageResponse:
        await self.identity.reset_password(oob_code, new_password)
        return MessageResponse(message="Password has been reset.")


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService(identity_service, mail_service)
