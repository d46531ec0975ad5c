# backend/Auth/models.py
from enum import Enum

from pydantic import AliasChoices, BaseModel
from pydantic import Field as PydanticField
from sqlmodel import SQLModel, Field


class Role(str, Enum):
    admin = "admin"
    viewer = "viewer"


class User(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, nullable=False)
    hashed_password: str
    role: Role = Field(default=Role.viewer, index=True)   # 'admin' | 'viewer'


# ─── request / response bodies ─────────────────────────────────────────────
class Credentials(BaseModel):
    username: str = PydanticField(min_length=1)
    # the dashboard sends "secret", older clients send "password"
    secret: str = PydanticField(
        min_length=1, validation_alias=AliasChoices("secret", "password")
    )


class RegisterIn(Credentials):
    role: Role = Role.viewer


class TokenClaims(BaseModel):
    """Decoded identity carried by a bearer token."""
    username: str
    role: Role
