# backend/app/auth/models.py
from pydantic import BaseModel, Field
from typing import Optional


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[int] = Field(None, ge=0, le=4, description="Role enum value as stored on chain.")


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SessionUser(BaseModel):
    username: str
    address: str
    role: int


class LoginResponse(BaseModel):
    success: bool = True
    user: SessionUser
    access_token: str
    token_type: str = "bearer"


class SessionResponse(BaseModel):
    loggedIn: bool
    user: Optional[SessionUser] = None
