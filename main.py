"""
Volunteer Portal - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from volunteer_portal.core.config import settings
from volunteer_portal.core.db import engine, Base
from volunteer_portal.api import routes_admin, routes_public, routes_volunteer, routes_webhooks

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Volunteer Portal",
    description="Events, volunteer signups with waitlist, shipment tracking and FAQ chat",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_volunteer.router, tags=["volunteer"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
app.include_router(routes_webhooks.router, prefix="/webhooks", tags=["webhooks"])

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
