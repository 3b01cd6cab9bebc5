# app/core/security.py
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from pydantic import BaseModel

from app.core.config import settings


class TokenData(BaseModel):
    user_id: Optional[str] = None
    role: Optional[str] = None


# Tokens are issued by the external auth service; this helper mints the same
# shape for local tooling and tests.
def create_access_token(data: dict, expires_minutes: int = 60):
    payload = dict(data)
    payload.update({"exp": datetime.utcnow() + timedelta(minutes=expires_minutes)})
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# Base decode
def _decode_raw(token: str):
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


# Decode Access Token
def decode_access_token(token: str) -> TokenData:
    payload = _decode_raw(token)
    if not payload:
        return TokenData()
    return TokenData(user_id=payload.get("sub"), role=payload.get("role"))
