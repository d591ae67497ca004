"""Pydantic models for API request/response validation."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error body returned by every JSON endpoint."""

    error: str = Field(description="Human-readable error message")


# Link management schemas
class GenerateLinkRequest(CamelModel):
    """Schema for generating a tracking link."""

    driver_name: Optional[str] = Field(
        None, alias="driverName", description="Driver name exactly as reported upstream"
    )
    expiration_hours: Optional[int] = Field(
        None, alias="expirationHours", description="Lifetime of the link in hours"
    )


class GenerateLinkResponse(CamelModel):
    """Schema for a generated tracking link."""

    success: bool = True
    tracking_url: str = Field(alias="trackingUrl")
    expires_at: datetime = Field(alias="expiresAt")
    driver_name: str = Field(alias="driverName")


class CancelLinkRequest(CamelModel):
    """Schema for cancelling a driver's tracking link."""

    driver_name: Optional[str] = Field(None, alias="driverName")


class CancelLinkResponse(BaseModel):
    """Schema for a cancelled tracking link."""

    success: bool = True
    deactivated: int = Field(description="Number of links deactivated")


# Public tracking schemas
class TrackingResponse(CamelModel):
    """Schema for the public tracking API."""

    driver: Dict[str, Any]
    expires_at: datetime = Field(alias="expiresAt")


class ActiveLinkSummary(CamelModel):
    """An active link as shown on the dashboard."""

    link_id: str = Field(alias="linkId")
    driver_name: str = Field(alias="driverName")
    tracking_url: str = Field(alias="trackingUrl")
    expires_at: datetime = Field(alias="expiresAt")
    created_by: Optional[str] = Field(None, alias="createdBy")
