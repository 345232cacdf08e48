"""Credits repositories."""

from packages.credits.repositories.service_setup_repository import (
    ServiceSetupRepository,
)

__all__ = [
    "ServiceSetupRepository",
]
