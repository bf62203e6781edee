from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from learnhub.config import get_db, get_settings
from learnhub.models.models import User as DbUser
from learnhub.schemas.auth_schemas import AuthTokenPayload
from learnhub.schemas.user_schemas import User
from learnhub.utils.jwt import create_access_token, get_password_hash, verify_password, verify_token
from learnhub.utils.logger import get_logger

logger = get_logger("auth")

COOKIE_NAME = "access_token"


def _user_from_token(access_token: Optional[str], db: Session) -> User:
    payload = verify_token(access_token)
    user = get_user_by_email(payload.sub, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return User(id=user.id, email=user.email, preferences=user.preferences, is_admin=bool(user.is_admin))


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> User:
    return _user_from_token(access_token, db)


def get_optional_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> Optional[User]:
    """
    Like get_current_user, but callers without a usable token get None instead
    of a 401. A stale cookie (expired, bad signature, deleted user) counts as
    anonymous.
    """
    if not access_token:
        return None
    try:
        return _user_from_token(access_token, db)
    except HTTPException as e:
        logger.debug("ignoring unusable token on optional auth: %s", e.detail)
        return None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def set_auth_cookie(response: Response, user: DbUser) -> None:
    minutes = get_settings().access_token_expire_minutes
    token = create_access_token(
        AuthTokenPayload(sub=user.email, exp=datetime.now(timezone.utc) + timedelta(minutes=minutes))
    )
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=minutes * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=COOKIE_NAME, httponly=True, secure=False, samesite="lax")


def get_user_by_email(email: str, db: Session) -> Optional[DbUser]:
    return db.query(DbUser).filter(DbUser.email == email).first()


def create_user(email: str, password: str, db: Session, name: Optional[str] = None, is_admin: bool = False) -> DbUser:
    user = DbUser(
        email=email,
        hashed_password=get_password_hash(password),
        preferences={"name": name} if name else {},
        is_admin=is_admin,
    )
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("error creating user email=%s", email)
        raise
    db.refresh(user)
    logger.info("created user id=%s", user.id)
    return user


def authenticate_user(email: str, password: str, db: Session) -> Optional[DbUser]:
    user = get_user_by_email(email, db)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
