"""Authentication router for login, session lookup and logout."""

import logging
from fastapi import APIRouter, Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from src.auth import (
    SessionContext,
    burn_password_check,
    create_access_token,
    get_current_session,
    revoke_token,
    verify_password,
)
from src.database import get_db
from src.errors import InvalidCredentials, ValidationError, envelope, handler_boundary
from src.models import User
from src.payloads import read_payload
from src.schemas import UserLogin, UserOut

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("")
def login(payload: dict = Depends(read_payload), db: Session = Depends(get_db)):
    """
    Authenticate user and return a session token.

    Unknown email and wrong password fail identically, with the same message,
    status and bcrypt cost.

    Args:
        payload: Form fields or JSON body with email and password
        db: Database session

    Returns:
        dict: Envelope whose data holds the password-free user and the token

    Raises:
        ValidationError: If email or password is missing
        InvalidCredentials: If credentials are invalid
    """
    try:
        credentials = UserLogin.model_validate(payload)
    except PydanticValidationError:
        raise ValidationError("Email and password are required")

    logger.info(f"Login attempt for email: {credentials.email}")

    with handler_boundary("Internal server error"):
        user = db.query(User).filter(User.email == credentials.email).first()
        if not user:
            burn_password_check(credentials.password)
            logger.warning(f"Login failed: User not found - {credentials.email}")
            raise InvalidCredentials()

        if not verify_password(credentials.password, user.password_hash):
            logger.warning(f"Login failed: Invalid password - {credentials.email}")
            raise InvalidCredentials()

        token = create_access_token(user)

        logger.info(f"User logged in successfully: {credentials.email}")
        return envelope("Login successful", {
            "user": UserOut.model_validate(user).model_dump(by_alias=True, mode="json"),
            "token": token,
        })


@router.get("")
def current_session(session: SessionContext = Depends(get_current_session)):
    """Return the user behind a valid bearer token."""
    return envelope("Session is valid", {
        "user": UserOut.model_validate(session.user).model_dump(by_alias=True, mode="json"),
        "expiresAt": session.claims.get("exp"),
    })


@router.post("/logout")
def logout(
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Revoke the presented token.

    Later requests with the same token fail with 401 even though it has not
    expired yet.
    """
    with handler_boundary("Failed to log out"):
        revoke_token(db, session.claims)
        logger.info(f"User logged out: {session.user.email}")
        return envelope("Logged out successfully")
