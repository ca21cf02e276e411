"""
Scan Barang Backend — Firebase Identity Service Implementation
================================================================

What:  Concrete IdentityProvider backed by Firebase Authentication.
How:   Two channels, because Firebase splits its API that way:
         1. firebase-admin SDK (service account): verify id tokens, create
            users, look users up, generate verification/reset links.
         2. Identity Toolkit REST API (public web API key) over httpx:
            password sign-in and password-reset codes, which the admin SDK
            does not offer.
Who:   Singleton `identity_service`, used by require_owner_key and AuthService.

Threading:
    The admin SDK is synchronous (it does blocking HTTP to Google). Every SDK
    call runs in Starlette's thread pool so the event loop keeps serving
    other requests.

No retries: a provider failure is reported to the client immediately.
"""

import json
import logging
from typing import Any, Dict, Optional

import firebase_admin
import httpx
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions
from starlette.concurrency import run_in_threadpool

from scanbarang.config import settings
from scanbarang.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from scanbarang.services.identity_base import IdentityProvider, IdentityUser, SignInResult

logger = logging.getLogger(__name__)


class _ToolkitRejection(Exception):
    """An Identity Toolkit REST call answered with an error body."""

    def __init__(self, code: str, http_status: int):
        super().__init__(code)
        self.code = code
        self.http_status = http_status


class FirebaseIdentityService(IdentityProvider):
    """
    Firebase Authentication adapter.

    The admin app is initialized lazily on first use: importing the module
    (and starting the server) never requires credentials, so /health and the
    test suite work without them.
    """

    APP_NAME = "scanbarang"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            transport: httpx transport for the REST calls. Tests pass an
                       httpx.MockTransport; None uses the real network.
        """
        self._app: Optional[firebase_admin.App] = None
        self._transport = transport

    # ── Admin SDK ─────────────────────────────────────────────────────────

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app

        if not settings.firebase_credentials:
            raise UpstreamError(
                message="Identity provider is not configured",
                context={"missing": "FIREBASE_CREDENTIALS"},
            )

        try:
            self._app = firebase_admin.get_app(self.APP_NAME)
        except ValueError:
            try:
                cred = credentials.Certificate(json.loads(settings.firebase_credentials))
            except ValueError as e:
                raise UpstreamError(
                    message="Identity provider is not configured",
                    details=str(e),
                    context={"invalid": "FIREBASE_CREDENTIALS"},
                )
            self._app = firebase_admin.initialize_app(cred, name=self.APP_NAME)
            logger.info("Firebase admin app initialized (project=%s)", cred.project_id)
        return self._app

    async def verify_token(self, token: str) -> str:
        app = self._get_app()
        try:
            decoded = await run_in_threadpool(auth.verify_id_token, token, app=app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            # Never log the token itself
            logger.warning("Token verification failed: %s", type(e).__name__)
            raise InvalidTokenError(context={"error_type": type(e).__name__})
        return decoded["uid"]

    async def create_user(self, email: str, password: str) -> str:
        app = self._get_app()
        try:
            record = await run_in_threadpool(auth.create_user, email=email, password=password, app=app)
        except auth.EmailAlreadyExistsError:
            raise DuplicateEmailError(email)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            # ValueError: SDK-side argument checks (malformed email, short password)
            logger.error("Firebase create_user failed: %s", str(e))
            raise UpstreamError(message="Registration failed.", details=str(e))
        logger.info("Identity account created: uid=%s", record.uid)
        return record.uid

    async def get_user_by_email(self, email: str) -> IdentityUser:
        app = self._get_app()
        try:
            record = await run_in_threadpool(auth.get_user_by_email, email, app=app)
        except auth.UserNotFoundError:
            raise NotFoundError(resource="email", context={"email": email})
        except ValueError as e:
            raise ValidationError(message="Invalid email address.", field="email", details=str(e))
        except firebase_exceptions.FirebaseError as e:
            logger.error("Firebase get_user_by_email failed: %s", str(e))
            raise UpstreamError(message="Identity provider request failed.", details=str(e))
        return IdentityUser(uid=record.uid, email=record.email, email_verified=record.email_verified)

    async def _generate_link(self, generator, email: str, purpose: str) -> str:
        app = self._get_app()
        try:
            return await run_in_threadpool(generator, email, app=app)
        except auth.UserNotFoundError:
            raise NotFoundError(resource="email", context={"email": email})
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.error("Firebase %s link generation failed: %s", purpose, str(e))
            raise UpstreamError(message=f"Failed to generate {purpose} link.", details=str(e))

    async def generate_email_verification_link(self, email: str) -> str:
        return await self._generate_link(auth.generate_email_verification_link, email, "verification")

    async def generate_password_reset_link(self, email: str) -> str:
        return await self._generate_link(auth.generate_password_reset_link, email, "password reset")

    # ── Identity Toolkit REST API ─────────────────────────────────────────

    @staticmethod
    def _provider_code(response: httpx.Response) -> str:
        """
        Pull the provider error code out of an error body.

        Body shape: {"error": {"code": 400, "message": "INVALID_PASSWORD"}}.
        Some messages carry a suffix ("WEAK_PASSWORD : Password should be ...").
        """
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return f"HTTP_{response.status_code}"
        return str(message).split(" : ")[0].strip()

    async def _toolkit_post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST to `{IDENTITY_TOOLKIT_URL}/{endpoint}?key=<api key>`.

        Raises:
            _ToolkitRejection: the provider answered with an error body.
            UpstreamError: not configured, unreachable, or unreadable reply (500).
        """
        if not settings.firebase_api_key:
            raise UpstreamError(
                message="Identity provider is not configured",
                context={"missing": "FIREBASE_API_KEY"},
            )

        url = f"{settings.identity_toolkit_url.rstrip('/')}/{endpoint}"
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=settings.identity_timeout
            ) as client:
                response = await client.post(url, params={"key": settings.firebase_api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error("Identity Toolkit %s unreachable: %s", endpoint, type(e).__name__)
            raise UpstreamError(message="Identity provider is unreachable.", details=str(e))

        if response.is_error:
            code = self._provider_code(response)
            logger.warning("Identity Toolkit %s rejected: %s", endpoint, code)
            raise _ToolkitRejection(code, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(message="Identity provider returned an invalid response.", details=str(e))

    async def sign_in_with_password(self, email: str, password: str) -> SignInResult:
        try:
            data = await self._toolkit_post(
                "accounts:signInWithPassword",
                {"email": email, "password": password, "returnSecureToken": True},
            )
        except _ToolkitRejection as e:
            if e.code == "EMAIL_NOT_FOUND":
                raise NotFoundError(resource="email", context={"email": email})
            if e.code in ("INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS"):
                raise InvalidCredentialsError()
            raise UpstreamError(message="Login failed.", status_code=400, details=e.code)

        try:
            return SignInResult(
                uid=data["localId"],
                id_token=data["idToken"],
                refresh_token=data["refreshToken"],
            )
        except KeyError as e:
            raise UpstreamError(message="Identity provider returned an invalid response.", details=f"missing {e}")

    async def reset_password(self, oob_code: str, new_password: str) -> None:
        try:
            # Without newPassword the endpoint only checks the code
            await self._toolkit_post("accounts:resetPassword", {"oobCode": oob_code})
            await self._toolkit_post(
                "accounts:resetPassword", {"oobCode": oob_code, "newPassword": new_password}
            )
        except _ToolkitRejection as e:
            raise UpstreamError(message="Failed to reset password.", details=e.code)


# ── Singleton Instance ────────────────────────────────────────────────────
identity_service = FirebaseIdentityService()
