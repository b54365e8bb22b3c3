from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from todolist.config import PASSWORD_MIN_LENGTH


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("email and password are required")
        return v


class UserCreate(UserLogin):
    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        """Enforce the minimum length and bcrypt's 72-byte limit when UTF-8 encoded."""
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters long")
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
        return v


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str


class UserMe(UserOut):
    created_at: datetime = Field(serialization_alias="createdAt")


class AuthResponse(BaseModel):
    message: str
    user: UserOut
