"""
Scan Barang Backend — Account Schemas
=======================================

What:  Request/response models for /api/auth.
How:   Required fields use min_length=1 so that a missing OR empty value is
       rejected by request validation (400) before any provider call.
"""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255, description="Account email")
    password: str = Field(..., min_length=1, description="Account password")
    username: str = Field(..., min_length=1, max_length=100, description="Display name stored locally")


class RegisterResponse(BaseModel):
    message: str
    userId: str = Field(description="Owner key issued by the identity provider")


class EmailRequest(BaseModel):
    """Body of send-verification-email and forgot-password."""
    email: str = Field(..., min_length=1, max_length=255)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """
    Returned by POST /api/auth/login.

    idToken is what the client sends as `Authorization: Bearer <idToken>`
    on every other route.
    """
    message: str
    idToken: str
    refreshToken: str
    username: str
    uid: str


class ResetPasswordRequest(BaseModel):
    oobCode: str = Field(..., min_length=1, description="Out-of-band code from the reset link")
    newPassword: str = Field(..., min_length=1)
