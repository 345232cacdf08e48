"""
Factory for getting identity provider instance.
"""

from typing import Optional

from packages.credits.providers.identity.interface import IdentityProviderInterface
from packages.credits.providers.identity.noop_identity import NoOpIdentityProvider

_identity_provider: Optional[IdentityProviderInterface] = None


def set_identity_provider(provider: Optional[IdentityProviderInterface]) -> None:
    """Register the application's user directory. None restores the no-op default."""
    global _identity_provider
    _identity_provider = provider


def get_identity_provider() -> IdentityProviderInterface:
    """
    Get identity provider instance.

    Returns:
        IdentityProviderInterface: The registered provider, or a no-op one
    """
    if _identity_provider is None:
        return NoOpIdentityProvider()
    return _identity_provider
