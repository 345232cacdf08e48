"""
Identity providers that need no user directory.
"""

from typing import Mapping, Optional

from packages.credits.providers.identity.interface import IdentityProviderInterface


class NoOpIdentityProvider(IdentityProviderInterface):
    """
    Resolves no emails.

    Used until the host application registers its user directory. With no
    email nothing is allowlisted and auto top-ups fail closed.
    """

    async def get_email(self, owner_id: str) -> Optional[str]:
        return None


class MappingIdentityProvider(IdentityProviderInterface):
    """Resolves emails from a fixed owner_id -> email mapping."""

    def __init__(self, emails: Mapping[str, str]):
        self.emails = dict(emails)

    async def get_email(self, owner_id: str) -> Optional[str]:
        email = (self.emails.get(owner_id) or "").strip()
        return email or None
