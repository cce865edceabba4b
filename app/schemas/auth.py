"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    email: EmailStr
    name: str | None = Field(default=None, max_length=256)


class RequestCodeRequest(BaseModel):
    email: EmailStr


class VerifyCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=32)


class RecruiterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    email: EmailStr


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None
    is_recruiter: bool
    created_at: datetime
    last_login_at: datetime | None

    model_config = {"from_attributes": True}


class StatusResponse(BaseModel):
    status: str
    message: str


class TokenResponse(StatusResponse):
    token: str
    expires_in: int


class RecruiterResponse(BaseModel):
    recruiter: UserResponse
    token: str
    expires_in: int


class MeResponse(BaseModel):
    user: UserResponse


class UserListResponse(BaseModel):
    users: list[UserResponse]
