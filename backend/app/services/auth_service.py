import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import bcrypt
import jwt

from app.config import access_ttl_minutes, jwt_secret

ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"


def _bcrypt_input(password: str) -> bytes:
    # Pre-hash to fixed length so bcrypt never hits the 72-byte password limit.
    return hashlib.sha256(password.encode("utf-8")).hexdigest().encode("ascii")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_bcrypt_input(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(*, user_id: str, email: str) -> tuple[str, datetime]:
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(minutes=access_ttl_minutes())
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "tokenType": TOKEN_TYPE_ACCESS,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": str(uuid4()),
    }
    return jwt.encode(payload, jwt_secret(), algorithm=ALGORITHM), expires_at


def decode_access_token(token: str) -> dict[str, Any]:
    payload = jwt.decode(token, jwt_secret(), algorithms=[ALGORITHM])
    if str(payload.get("tokenType", "")) != TOKEN_TYPE_ACCESS:
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload


def access_expires_in_seconds() -> int:
    return access_ttl_minutes() * 60
