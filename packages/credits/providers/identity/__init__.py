"""Identity providers - resolve an account's email address."""

from packages.credits.providers.identity.interface import IdentityProviderInterface
from packages.credits.providers.identity.factory import (
    get_identity_provider,
    set_identity_provider,
)

__all__ = [
    "IdentityProviderInterface",
    "get_identity_provider",
    "set_identity_provider",
]
