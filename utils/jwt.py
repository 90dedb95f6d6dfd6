from datetime import datetime, timedelta
import os
import uuid

from jose import jwt, JWTError
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

# =========================
# CONFIG
# =========================

SECRET_KEY = os.getenv("JWT_SECRET", "aware-dev-secret-change-in-production")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))

security = HTTPBearer(auto_error=False)

# Token ids of logged-out sessions; process-local like the wallet map.
_revoked: set[str] = set()

# =========================
# TOKEN CREATE
# =========================

def create_token(data: dict) -> str:
    payload = data.copy()
    payload["jti"] = uuid.uuid4().hex
    payload["exp"] = datetime.utcnow() + timedelta(minutes=EXPIRE_MINUTES)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

# =========================
# TOKEN DECODE (LOW LEVEL)
# =========================

def decode_token(token: str) -> dict:
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("jti") in _revoked:
        raise JWTError("Session has been logged out")
    return payload


def revoke_token(token: str) -> None:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return
    if payload.get("jti"):
        _revoked.add(payload["jti"])

# =========================
# FASTAPI DEPENDENCIES
# =========================

def optional_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict | None:
    """Session payload when a valid token is presented, otherwise None."""
    if credentials is None:
        return None
    try:
        return decode_token(credentials.credentials)
    except JWTError:
        return None


def verify_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not logged in")

    try:
        return decode_token(credentials.credentials)   # {username, address, role, jti, exp}
    except JWTError:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token"
        )
