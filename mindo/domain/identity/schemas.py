"""Request/response schemas for authentication and profile endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from mindo.domain.identity.models import UserProfile


class SignupRequest(BaseModel):
	username: str = Field(..., min_length=3, max_length=30)
	email: EmailStr
	password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
	email: EmailStr
	password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
	email: EmailStr


class ResetPasswordRequest(BaseModel):
	password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
	success: bool = True
	message: Optional[str] = None
	token: str
	user: UserProfile


class ProfileUpdateRequest(BaseModel):
	bio: Optional[str] = Field(default=None, max_length=500)
	phone_number: Optional[str] = Field(default=None, max_length=32)
	profile_picture: Optional[str] = Field(default=None, max_length=2048)
