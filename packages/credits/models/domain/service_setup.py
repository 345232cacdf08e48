"""
Domain models for per-account service documents.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from packages.credits.models.domain.enums import ServiceSetupStatus


class ServiceSetup(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    service_slug: str
    status: ServiceSetupStatus
    data_json: dict = Field(default_factory=dict)
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ServiceSetupCreateModel(BaseModel):
    """Model for lazily creating a service document."""

    owner_id: str
    service_slug: str
    status: str = ServiceSetupStatus.COMPLETE.value
    data_json: dict = Field(default_factory=dict)
    version: int = 0
