import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, Field, Session, select
from pydantic import EmailStr

from ..core.clock import utcnow
from ..database import get_session
from ..models.user import User
from ..core.security import get_current_user, hash_password, verify_password
from ..core.jwt import ACCESS_TOKEN_COOKIE, create_access_token
from ..config import settings


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


class RegisterIn(SQLModel):
    email: EmailStr
    password: str = Field(min_length=6)
    display_name: Optional[str] = Field(default=None, max_length=100)


class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LoginIn(SQLModel):
    email: EmailStr
    password: str


class TokenOut(SQLModel):
    access_token: str
    token_type: str


def _reject_whitespace(password: str) -> None:
    if any(c.isspace() for c in password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password must not contain spaces",
        )


def _authenticate(session: Session, email: str, password: str) -> User:
    email_norm = User.normalize_email(email)
    user = session.exec(select(User).where(User.email == email_norm)).first()
    if user is None or not user.is_active or not verify_password(password, user.hashed_password):
        logger.info("Failed sign-in for %s", email_norm)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return user


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
)
def register_user(
    payload: RegisterIn,
    session: Session = Depends(get_session),
):
    _reject_whitespace(payload.password)
    email_norm = User.normalize_email(payload.email)
    existing = session.exec(select(User).where(User.email == email_norm)).first()
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    now = utcnow()
    display_name = (payload.display_name or "").strip() or None
    user = User(
        id=uuid.uuid4(),
        email=email_norm,
        hashed_password=hash_password(payload.password),
        display_name=display_name,
        created_at=now,
        updated_at=now,
        deleted_at=None,
    )

    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    session.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


@router.post(
    "/login",
    response_model=UserRead,
    status_code=status.HTTP_200_OK,
)
def login(payload: LoginIn, response: Response, session: Session = Depends(get_session)):
    _reject_whitespace(payload.password)
    user = _authenticate(session, payload.email, payload.password)

    token = create_access_token({"sub": str(user.id), "email": user.email})

    # HttpOnly cookie keeps the token away from scripts; cross-site
    # production deployments need SameSite=None and Secure.
    is_prod = settings.environment.lower() == "production"
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=is_prod,
        samesite="none" if is_prod else "lax",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    return user


@router.get(
    "/me",
    response_model=UserRead,
    status_code=status.HTTP_200_OK,
)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
)
def logout(response: Response):
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, path="/")
    return None


@router.post(
    "/token",
    response_model=TokenOut,
    status_code=status.HTTP_200_OK,
)
def token(form_data: OAuth2PasswordRequestForm = Depends(), session: Session = Depends(get_session)):
    # OAuth2PasswordRequestForm carries the email in 'username'
    _reject_whitespace(form_data.password)
    user = _authenticate(session, form_data.username, form_data.password)
    access_token = create_access_token({"sub": str(user.id), "email": user.email})
    return TokenOut(access_token=access_token, token_type="bearer")
