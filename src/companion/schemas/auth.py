"""Pydantic schemas for signup, signin and token exchange."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: Optional[str] = Field(None, max_length=100)


class SigninRequest(BaseModel):
    """Sign in with email or username (email wins if both are given)."""

    email: Optional[str] = None
    username: Optional[str] = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.email or self.username):
            raise ValueError("email or username is required")
        return self


class SignupResponse(BaseModel):
    message: str = "User registered successfully!"
    id: int
    username: str
    email: str


class TokenResponse(BaseModel):
    id: int
    username: str
    email: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class VerifyTokenResponse(BaseModel):
    valid: bool = True
    message: str = "Token is valid!"
    user_id: int
