"""Account request/response schemas."""
import uuid
from datetime import datetime
from pydantic import Field
from app.schemas.base import CamelModel, CamelORMModel


class RegisterRequest(CamelModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(CamelModel):
    email: str
    password: str


class UserResponse(CamelORMModel):
    id: uuid.UUID
    username: str
    email: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
