"""
Contact & Rating Engine API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Contact & Rating Engine API",
    description="Contact tracking, seller ratings and rating prompts for the marketplace directory",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# TODO: Restrict origins once the storefront domain is final
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Subject-Id"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "contact-rating-engine-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Contact & Rating Engine API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import analytics, contacts, prompts, ratings

app.include_router(contacts.router, prefix="/api/v1", tags=["Contacts"])
app.include_router(ratings.router, prefix="/api/v1", tags=["Ratings"])
app.include_router(prompts.router, prefix="/api/v1", tags=["Prompts"])
app.include_router(analytics.router, prefix="/api/v1", tags=["Analytics"])
