# backend/Auth/security.py
import os
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import jwt, JWTError
from typing import Any
from dotenv import load_dotenv

from Auth.models import Role

load_dotenv()
# argon2 cost factors are tunable per deployment
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__time_cost=int(os.getenv("HASH_TIME_COST", "3")),
    argon2__memory_cost=int(os.getenv("HASH_MEMORY_COST", "65536")),
)

PEPPER = os.getenv("PEPPER", "")      # extra secret, never stored
SECRET_KEY = os.getenv("JWT_SECRET", "")
ALGORITHM = "HS256"
# unset -> tokens carry no exp claim and live until the client drops them
_expire = os.getenv("JWT_EXPIRE_MINUTES")
ACCESS_TOKEN_EXPIRE_MINUTES = int(_expire) if _expire else None


class TokenError(Exception):
    """Token is missing claims, malformed or carries a bad signature."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password + PEPPER)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain + PEPPER, hashed)


def create_access_token(username: str, role: Role | str, expires_delta: timedelta | None = None) -> str:
    if not SECRET_KEY:
        raise RuntimeError("JWT_SECRET is not configured")
    now = datetime.now(timezone.utc)
    to_encode = {"sub": username, "role": Role(role).value, "iat": now}
    if expires_delta is None and ACCESS_TOKEN_EXPIRE_MINUTES:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    if expires_delta is not None:
        to_encode["exp"] = now + expires_delta
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify the signature and return the claims.
    Raises TokenError for anything that is not a token we issued.
    """
    if not SECRET_KEY:
        raise RuntimeError("JWT_SECRET is not configured")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise TokenError(str(exc)) from exc

    if not isinstance(payload.get("sub"), str) or not payload["sub"]:
        raise TokenError("Token has no subject")
    try:
        Role(payload.get("role"))
    except ValueError as exc:
        raise TokenError(f"Unknown role: {payload.get('role')!r}") from exc
    return payload
