"""Main FastAPI application for the training & consulting CMS API."""

import os
import logging
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from src.database import init_db, seed_admin_user
from src.errors import register_exception_handlers
from src.resources import RESOURCES
from src.routers import auth, uploads
from src.routers.resources import build_router
from src.storage import UPLOADS_PATH, UPLOADS_URL_PREFIX

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(os.getenv("LOG_FILE", "cms_api.log"))
    ]
)

logger = logging.getLogger(__name__)

NAME_APP = os.getenv("NAME_APP", "TrainingCMSAPI")

# Create FastAPI application
app = FastAPI(
    title=NAME_APP,
    description="Content-management API for blogs, trainings, events, reports and the staff dashboard",
    version="1.0.0"
)

# Configure CORS (adjust origins as needed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(uploads.router)
for resource in RESOURCES:
    app.include_router(build_router(resource))
    logger.debug(f"Registered /api/{resource.name}")

# Ensure uploads directory exists
UPLOADS_PATH.mkdir(parents=True, exist_ok=True)
logger.info(f"Uploads directory: {UPLOADS_PATH}")

# Mount static files for serving uploads
app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=str(UPLOADS_PATH)), name="uploads")
logger.info(f"Mounted static files at {UPLOADS_URL_PREFIX}")


@app.on_event("startup")
def startup_event():
    """Initialize database and seed admin user on application startup."""
    logger.info(f"Starting {NAME_APP}")
    init_db()
    logger.info("Database initialized successfully")
    seed_admin_user()
    logger.info("Admin user seed completed")


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": NAME_APP,
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
