"""
API Schemas Module

This module defines Pydantic models for the response bodies. Request bodies
are parsed by api.validation so that the error messages match what callers
already handle.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HealthStatus(BaseModel):
    """Schema for the unauthenticated liveness probe."""

    status: str
    service: str
    timestamp: datetime


class ServiceHealth(BaseModel):
    status: str
    app_name: str
    environment: str
    api_secret_configured: bool
    api_secret_is_default: bool


class TransferSuccess(BaseModel):
    """Schema for a confirmed transfer."""

    success: bool = True
    tx_hash: str
    block_number: int
    gas_used: str  # decimal string, as the service has always returned it


class TransferError(BaseModel):
    """Schema for every failed request."""

    success: bool = False
    error: str
    code: Optional[str] = None
    category: Optional[str] = None
    tx_hash: Optional[str] = None
