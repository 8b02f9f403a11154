"""Authentication utilities for JWT session tokens and password hashing."""

import os
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from src.database import get_db
from src.errors import NotAuthenticated, Forbidden
from src.models import User, RevokedToken

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
)

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    raise ValueError("JWT_SECRET_KEY must be set in .env file")

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))

# HTTP Bearer for JWT authentication; missing credentials are reported by us as 401
security = HTTPBearer(auto_error=False)

_dummy_hash: Optional[str] = None


def _truncate(password: str) -> str:
    # Bcrypt has a 72-byte limit
    password_bytes = password.encode('utf-8')[:72]
    return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Bcrypt has a maximum password length of 72 bytes. Passwords longer than
    this are truncated to prevent errors.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    logger.debug("Hashing password")
    return pwd_context.hash(_truncate(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to verify against

    Returns:
        bool: True if password matches, False otherwise
    """
    logger.debug("Verifying password")
    return pwd_context.verify(_truncate(plain_password), hashed_password)


def burn_password_check(plain_password: str) -> None:
    """Spend the same bcrypt work as a real check when there is no user to check against."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = pwd_context.hash(secrets.token_urlsafe(16))
    pwd_context.verify(_truncate(plain_password), _dummy_hash)


def create_access_token(user: User) -> str:
    """
    Create a signed session token for a user.

    The token embeds the user's identity, role and display name, and expires
    ACCESS_TOKEN_EXPIRE_HOURS after issuance.

    Args:
        user: Authenticated user

    Returns:
        str: Encoded JWT token
    """
    issued_at = datetime.utcnow()
    to_encode = {
        "sub": user.id,
        "userId": user.id,
        "email": user.email,
        "role": user.role or "staff",
        "fullName": user.full_name,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS),
        "jti": secrets.token_hex(16),
    }

    logger.info(f"Creating access token for user: {user.id}")
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT token (signature and expiry).

    Args:
        token: JWT token string

    Returns:
        Optional[dict]: Decoded token payload or None if invalid
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])
        logger.debug("Token decoded successfully")
        return payload
    except JWTError as e:
        logger.warning(f"Token decode error: {e}")
        return None


def is_token_revoked(db: Session, jti: Optional[str]) -> bool:
    if not jti:
        return False
    return db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None


def revoke_token(db: Session, claims: dict) -> None:
    """Store the token's jti so it is rejected until it would have expired anyway."""
    jti = claims.get("jti")
    if not jti or is_token_revoked(db, jti):
        return

    now = datetime.utcnow()
    # Expired revocations are no longer needed
    db.query(RevokedToken).filter(RevokedToken.expires_at < now).delete()
    db.add(RevokedToken(jti=jti, expires_at=datetime.utcfromtimestamp(claims["exp"])))
    db.commit()
    logger.info(f"Revoked session token for user: {claims.get('userId')}")


@dataclass
class SessionContext:
    """Authenticated session attached to a request."""

    user: User
    claims: dict

    @property
    def is_admin(self) -> bool:
        return self.user.role == "admin"


def _session_from_token(token: str, db: Session) -> SessionContext:
    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid token received")
        raise NotAuthenticated()

    user_id = payload.get("userId")
    if user_id is None:
        logger.warning("Token missing userId claim")
        raise NotAuthenticated()

    if is_token_revoked(db, payload.get("jti")):
        logger.warning(f"Revoked token presented for user: {user_id}")
        raise NotAuthenticated("Session has been revoked")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.warning(f"User not found: {user_id}")
        raise NotAuthenticated()

    logger.info(f"User authenticated: {user.email}")
    return SessionContext(user=user, claims=payload)


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> SessionContext:
    """
    Dependency resolving the bearer token into a verified session.

    Raises:
        NotAuthenticated: If the token is missing, forged, expired or revoked
    """
    if credentials is None:
        raise NotAuthenticated("Not authenticated")
    return _session_from_token(credentials.credentials, db)


def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[SessionContext]:
    """Like get_current_session, but anonymous requests resolve to None."""
    if credentials is None:
        return None
    return _session_from_token(credentials.credentials, db)


def get_current_user(session: SessionContext = Depends(get_current_session)) -> User:
    """Dependency to get the current authenticated user from JWT token."""
    return session.user


def require_session(session: Optional[SessionContext], admin: bool = False) -> SessionContext:
    """
    Enforce that a request is authenticated, and optionally that it is an admin's.

    Raises:
        NotAuthenticated: If there is no session
        Forbidden: If an admin session is required and the user is staff
    """
    if session is None:
        raise NotAuthenticated("Not authenticated")
    if admin and not session.is_admin:
        logger.warning(f"Admin access denied for user: {session.user.email}")
        raise Forbidden("Administrator role required")
    return session
