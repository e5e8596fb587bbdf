"""
API v1 module initialization.

This module exports API v1 routers and endpoints.
"""

from fastapi import APIRouter
from app.api.v1 import auth, people, health

# Create main API router (no prefix here - will be added in main.py)
api_router = APIRouter()

# Include sub-routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(people.router, prefix="/people", tags=["people"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
