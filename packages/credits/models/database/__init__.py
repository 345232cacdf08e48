"""Database models for credits."""

from packages.credits.models.database.service_setup import ServiceSetupEntity

__all__ = [
    "ServiceSetupEntity",
]
