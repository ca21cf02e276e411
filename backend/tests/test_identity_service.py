"""
Scan Barang Backend — Firebase Identity Adapter Tests
=======================================================

What:  Error mapping of the Identity Toolkit REST calls and token checks.
How:   httpx.MockTransport stands in for Google; the admin SDK's
       verify_id_token is monkeypatched.

What we test:
    ✅ Password sign-in success and each mapped provider code
    ✅ Missing API key / unreachable provider → 500
    ✅ Reset password checks the code, then applies the new password
    ✅ Account creation: duplicate email → 400, anything else → 500
    ✅ Token verification failure → 403
"""

import json

import httpx
import pytest

from scanbarang.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    UpstreamError,
)
from scanbarang.services import identity_service as identity_module
from scanbarang.services.identity_service import FirebaseIdentityService


def provider_error(code: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": code}})


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(identity_module.settings, "firebase_api_key", "test-web-key")


class TestSignInWithPassword:

    @pytest.mark.asyncio
    async def test_success(self, api_key):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"localId": "uid-1", "idToken": "id-tok", "refreshToken": "ref-tok"}
            )

        service = FirebaseIdentityService(transport=httpx.MockTransport(handler))
        result = await service.sign_in_with_password("a@example.com", "secret")

        assert (result.uid, result.id_token, result.refresh_token) == ("uid-1", "id-tok", "ref-tok")
        assert seen[0].url.path.endswith("/accounts:signInWithPassword")
        assert seen[0].url.params["key"] == "test-web-key"
        assert json.loads(seen[0].content)["returnSecureToken"] is True

    @pytest.mark.asyncio
    async def test_email_not_found_is_404(self, api_key):
        service = FirebaseIdentityService(
            transport=httpx.MockTransport(lambda r: provider_error("EMAIL_NOT_FOUND"))
        )
        with pytest.raises(NotFoundError):
            await service.sign_in_with_password("nobody@example.com", "x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS"])
    async def test_wrong_password_is_401(self, api_key, code):
        service = FirebaseIdentityService(transport=httpx.MockTransport(lambda r: provider_error(code)))
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await service.sign_in_with_password("a@example.com", "wrong")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_other_code_is_400_with_details(self, api_key):
        service = FirebaseIdentityService(
            transport=httpx.MockTransport(
                lambda r: provider_error("TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled")
            )
        )
        with pytest.raises(UpstreamError) as exc_info:
            await service.sign_in_with_password("a@example.com", "x")
        assert exc_info.value.status_code == 400
        assert exc_info.value.details == "TOO_MANY_ATTEMPTS_TRY_LATER"

    @pytest.mark.asyncio
    async def test_missing_api_key_is_500(self, monkeypatch):
        monkeypatch.setattr(identity_module.settings, "firebase_api_key", "")
        service = FirebaseIdentityService(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with pytest.raises(UpstreamError) as exc_info:
            await service.sign_in_with_password("a@example.com", "x")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_unreachable_provider_is_500(self, api_key):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = FirebaseIdentityService(transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamError, match="unreachable"):
            await service.sign_in_with_password("a@example.com", "x")


class TestResetPassword:

    @pytest.mark.asyncio
    async def test_verifies_code_then_applies_password(self, api_key):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"email": "a@example.com"})

        service = FirebaseIdentityService(transport=httpx.MockTransport(handler))
        await service.reset_password("oob-1", "n3w-password")

        assert bodies == [
            {"oobCode": "oob-1"},
            {"oobCode": "oob-1", "newPassword": "n3w-password"},
        ]

    @pytest.mark.asyncio
    async def test_invalid_code_is_500(self, api_key):
        service = FirebaseIdentityService(
            transport=httpx.MockTransport(lambda r: provider_error("INVALID_OOB_CODE"))
        )
        with pytest.raises(UpstreamError) as exc_info:
            await service.reset_password("bad", "n3w-password")
        assert exc_info.value.status_code == 500
        assert exc_info.value.details == "INVALID_OOB_CODE"


class TestVerifyToken:

    @pytest.mark.asyncio
    async def test_unconfigured_admin_sdk_is_500(self, monkeypatch):
        monkeypatch.setattr(identity_module.settings, "firebase_credentials", "")
        with pytest.raises(UpstreamError, match="not configured"):
            await FirebaseIdentityService().verify_token("token")

    @pytest.mark.asyncio
    async def test_valid_token_returns_uid(self, monkeypatch):
        service = FirebaseIdentityService()
        monkeypatch.setattr(service, "_get_app", lambda: object())
        monkeypatch.setattr(identity_module.auth, "verify_id_token", lambda token, app=None: {"uid": "uid-9"})

        assert await service.verify_token("token") == "uid-9"

    @pytest.mark.asyncio
    async def test_rejected_token_is_403(self, monkeypatch):
        def reject(token, app=None):
            raise ValueError("Token expired")

        service = FirebaseIdentityService()
        monkeypatch.setattr(service, "_get_app", lambda: object())
        monkeypatch.setattr(identity_module.auth, "verify_id_token", reject)

        with pytest.raises(InvalidTokenError):
            await service.verify_token("token")


class TestCreateUser:

    @pytest.fixture
    def service(self, monkeypatch):
        service = FirebaseIdentityService()
        monkeypatch.setattr(service, "_get_app", lambda: object())
        return service

    @pytest.mark.asyncio
    async def test_duplicate_email_is_400(self, service, monkeypatch):
        def exists(**kwargs):
            raise identity_module.auth.EmailAlreadyExistsError("EMAIL_EXISTS", None, None)

        monkeypatch.setattr(identity_module.auth, "create_user", exists)

        with pytest.raises(DuplicateEmailError) as exc_info:
            await service.create_user("a@example.com", "secret123")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_rejected_arguments_are_500(self, service, monkeypatch):
        def reject(**kwargs):
            raise ValueError("Password must be a string at least 6 characters long.")

        monkeypatch.setattr(identity_module.auth, "create_user", reject)

        with pytest.raises(UpstreamError) as exc_info:
            await service.create_user("a@example.com", "123")
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Registration failed."
        assert "6 characters" in exc_info.value.details
