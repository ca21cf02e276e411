"""
Scan Barang Backend — Account Route Handlers
==============================================

What:  /api/auth endpoints: register, verification email, login, logout,
       forgot/reset password.
How:   Thin handlers: validated body in, AuthService call, response model out.
       These routes are public (no bearer token); login is what issues one.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.database import get_db_session
from scanbarang.schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
)
from scanbarang.schemas.common import ErrorResponse, MessageResponse
from scanbarang.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        400: {"description": "Missing field or email already registered", "model": ErrorResponse},
        500: {"description": "Provider or database failure", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    return await auth_service.register(db, body.email, body.password, body.username)


@router.post(
    "/send-verification-email",
    response_model=MessageResponse,
    responses={
        404: {"description": "No local user with that email", "model": ErrorResponse},
        500: {"description": "Link generation or mail delivery failed", "model": ErrorResponse},
    },
    summary="Email an account verification link",
)
async def send_verification_email(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await auth_service.send_verification_email(db, body.email)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Wrong password", "model": ErrorResponse},
        403: {"description": "Email not verified", "model": ErrorResponse},
        404: {"description": "Unknown email or missing local user", "model": ErrorResponse},
    },
    summary="Exchange email and password for tokens",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    """
    Returns the provider's idToken and refreshToken plus the local username.

    The client sends idToken as `Authorization: Bearer <idToken>` afterwards.
    """
    return await auth_service.login(db, body.email, body.password)


@router.post("/logout", response_model=MessageResponse, summary="Log out (client discards its token)")
async def logout() -> MessageResponse:
    return await auth_service.logout()


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={500: {"description": "Lookup, link or mail failure", "model": ErrorResponse}},
    summary="Email a password reset link",
)
async def forgot_password(body: EmailRequest) -> MessageResponse:
    return await auth_service.forgot_password(body.email)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={500: {"description": "Code invalid or reset rejected", "model": ErrorResponse}},
    summary="Apply a new password with an out-of-band code",
)
async def reset_password(body: ResetPasswordRequest) -> MessageResponse:
    return await auth_service.reset_password(body.oobCode, body.newPassword)
