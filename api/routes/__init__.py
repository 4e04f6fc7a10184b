"""
API Routes Package

This module consolidates all API routes for the token sender service.
"""

from fastapi import APIRouter

from . import transfers

# Create main router
router = APIRouter()

# Include all route modules
router.include_router(transfers.router, tags=["transfers"])

# Export for use in main application
__all__ = ["router"]
