import hashlib
import hmac
import logging
import os
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select
from jose.exceptions import ExpiredSignatureError, JWTError

from ..database import get_session
from ..models.user import User
from .jwt import ACCESS_TOKEN_COOKIE, decode_access_token


logger = logging.getLogger(__name__)

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 100_000
SALT_BYTES = 16


def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, ITERATIONS)


def hash_password(password: str) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = _pbkdf2_hash(password, salt)
    return f"{ALGORITHM}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, salt_hex, hash_hex = stored.strip().split("$")
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    candidate = _pbkdf2_hash(password, salt)
    return hmac.compare_digest(candidate, expected)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def _raise_invalid(detail: str):
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    # Bearer header first, then the HttpOnly cookie set by /auth/login
    token = token or request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        _raise_invalid("Not authenticated")

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        _raise_invalid("Token expired")
    except JWTError:
        _raise_invalid("Invalid token")

    sub = payload.get("sub")
    if sub is None:
        _raise_invalid("Invalid token: missing subject")
    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        _raise_invalid("Invalid token: bad subject format")

    user = session.exec(select(User).where(User.id == user_id)).first()
    if user is None or not user.is_active:
        logger.info("Token subject %s has no active user", user_id)
        _raise_invalid("User not found")
    return user
