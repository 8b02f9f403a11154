"""Database configuration and session management."""

import os
import logging
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

from src.models import Base, User

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Get database configuration from environment
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    PATH_DATABASE = os.getenv("PATH_DATABASE")
    NAME_DB = os.getenv("NAME_DB")

    if not PATH_DATABASE or not NAME_DB:
        raise ValueError("DATABASE_URL or PATH_DATABASE and NAME_DB must be set in .env file")

    # Ensure database directory exists
    db_dir = Path(PATH_DATABASE)
    db_dir.mkdir(parents=True, exist_ok=True)

    DATABASE_URL = f"sqlite:///{db_dir / NAME_DB}"

logger.info(f"Database URL: {DATABASE_URL}")

# Create engine
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # Needed for SQLite

engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Initialize the database by creating all tables."""
    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def seed_admin_user():
    """
    Create the bootstrap admin user from environment variables on startup.

    Creates a user with:
    - Email: EMAIL_ADMIN
    - Password: PASSWORD_ADMIN
    - Full name: NAME_ADMIN (defaults to "Administrator")
    - Phone: PHONE_ADMIN (defaults to "Not provided", users need a phone)

    Only creates if user doesn't already exist. Every other user is created
    through the users API, which requires an admin session.
    """
    # Import here to avoid circular import
    from src.auth import hash_password

    logger.info("Checking admin user seed...")

    admin_email = os.getenv("EMAIL_ADMIN", "").strip().lower()
    admin_password = os.getenv("PASSWORD_ADMIN", "")

    if not admin_email:
        logger.warning("EMAIL_ADMIN not configured, skipping admin user seed")
        return

    if not admin_password:
        logger.warning("PASSWORD_ADMIN not configured, skipping admin user seed")
        return

    logger.info(f"Attempting to seed admin user: {admin_email}")

    db = SessionLocal()
    try:
        existing_user = db.query(User).filter(User.email == admin_email).first()

        if existing_user:
            logger.info(f"Admin user already exists: {admin_email}")
            return

        admin_user = User(
            full_name=os.getenv("NAME_ADMIN", "Administrator"),
            email=admin_email,
            phone=os.getenv("PHONE_ADMIN", "").strip() or "Not provided",
            position="Administrator",
            role="admin",
            password_hash=hash_password(admin_password),
        )

        db.add(admin_user)
        db.commit()

        logger.info(f"Admin user created successfully: {admin_email}")

    except Exception as e:
        logger.error(f"Failed to seed admin user: {e}")
        db.rollback()
    finally:
        db.close()


def get_db():
    """
    Dependency function to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
