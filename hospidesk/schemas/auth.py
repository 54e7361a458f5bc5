# hospidesk/schemas/auth.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field

from hospidesk.schemas.users import UserProfile


class LoginIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    # longer session ("remember me")
    remember_me: bool | None = None


class RegisterIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    sector: str = Field(min_length=1, max_length=255)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile
