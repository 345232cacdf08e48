"""
Interface for identity providers.

The ledger only needs an owner's email: to match the free-credits allowlist
and to find the owner's payment processor customer.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IdentityProviderInterface(ABC):
    """Abstract interface for identity providers."""

    @abstractmethod
    async def get_email(self, owner_id: str) -> Optional[str]:
        """
        Resolve the email of an account.

        Args:
            owner_id: Opaque account ID

        Returns:
            The email, or None if the account has none
        """
        pass
