"""
Admin auth: hashed admin password, JWT bearer tokens, and the access-header check
in front of every write endpoint. Passwords are never stored in plain text.
"""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Mapping

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "atlas-dev-secret-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 12


class AccessDeniedError(Exception):
    """Write attempted without acceptable credentials."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(subject: str, secret: str = SECRET_KEY) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": subject, "exp": expire}
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str = SECRET_KEY) -> str | None:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        return payload.get("sub")
    except JWTError:
        return None


def authenticate_admin(settings: Settings, username: str, password: str) -> bool:
    if not settings.admin_username or not settings.admin_password_hash:
        return False
    return username == settings.admin_username and verify_password(password, settings.admin_password_hash)


def check_write_access(settings: Settings, headers: Mapping[str, str]) -> str | None:
    """
    Return who is writing (None when the check is disabled), or raise AccessDeniedError.
    Accepted: the access header (signature-checked when access_jwt_secret is set),
    or an admin bearer token from /api/admin/login.
    """
    if not settings.access_check_enabled:
        return None

    header_token = headers.get(settings.access_header_name)
    if header_token:
        if not settings.access_jwt_secret:
            return "access-header"
        subject = decode_token(header_token, settings.access_jwt_secret)
        if subject is None:
            raise AccessDeniedError("Invalid access token")
        return subject

    authorization = headers.get("Authorization") or ""
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        subject = decode_token(credentials.strip())
        if subject is None:
            raise AccessDeniedError("Invalid or expired admin token")
        return subject

    raise AccessDeniedError("Missing access authentication")
