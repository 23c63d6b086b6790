import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import AuthError, ConflictError
from ..models.storage import User, UserSession
from ..utils.helpers import as_utc, generate_access_token, hash_email, hash_token, utc_now

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


@dataclass
class IssuedSession:
    user: User
    session: UserSession
    access_token: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_user(db: Session, email: str, password: str) -> User:
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("User with this email already exists") from exc
    db.refresh(user)
    logger.info("Created user %s for %s", user.id, hash_email(email))
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", hash_email(email))
        raise AuthError("Invalid email or password")
    return user


def issue_session(
    db: Session,
    user: User,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> IssuedSession:
    """Create a session row; only the token hash is stored."""
    access_token = generate_access_token()
    session = UserSession(
        user_id=user.id,
        access_token_hash=hash_token(access_token),
        user_agent=user_agent,
        ip_address=ip_address,
        expires_at=utc_now() + timedelta(days=settings.session_ttl_days),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("USER_LOGIN user_id=%s", user.id)
    return IssuedSession(user=user, session=session, access_token=access_token)


def resolve_session(db: Session, access_token: Optional[str]) -> UserSession:
    if not access_token:
        raise AuthError("Unauthorized")

    session = (
        db.query(UserSession)
        .filter(UserSession.access_token_hash == hash_token(access_token))
        .first()
    )
    if session is None:
        raise AuthError("Unauthorized")

    if as_utc(session.expires_at) <= utc_now():
        raise AuthError("Session expired")

    return session
