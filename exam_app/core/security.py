"""Verification of identity-provider tokens for admin routes.

Admins sign in with the external identity provider; this service only checks
the bearer token it issued (shared-secret JWT) and the role claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from exam_app.core.config import get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(subject: str | int, extra: dict[str, Any] | None = None) -> str:
    """Mint a token the way the identity provider does (tests and local tooling)."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict | None:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> dict:
    """Return token claims if the caller is an admin; 401/403 otherwise."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="missing_token")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=401, detail="invalid_token")

    role = claims.get("role") or (claims.get("app_metadata") or {}).get("role")
    if role != get_settings().admin_role:
        raise HTTPException(status_code=403, detail="forbidden")
    return claims
