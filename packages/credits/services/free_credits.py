"""
Free-credits allowlist for demo accounts.
"""

from typing import Optional

from common.core.config import settings
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.credits.providers.identity import (
    IdentityProviderInterface,
    get_identity_provider,
)

logger = get_logger(__name__)


class FreeCreditsAllowlist:
    """Accounts whose email is allowlisted never pay for metered actions."""

    def __init__(self, identity_provider: Optional[IdentityProviderInterface] = None):
        self.identity_provider = identity_provider or get_identity_provider()
        self.emails = settings.free_credits_emails

    @staticmethod
    def normalize_email(email: Optional[str]) -> str:
        return (email or "").strip().lower()

    def is_free_credits_email(self, email: Optional[str]) -> bool:
        normalized = self.normalize_email(email)
        return bool(normalized) and normalized in self.emails

    @trace_span
    async def is_free_credits_owner(self, owner_id: str) -> bool:
        """
        True if the owner's email is on the allowlist.

        A failed identity lookup counts as not allowlisted.
        """
        try:
            email = await self.identity_provider.get_email(owner_id)
        except Exception as e:
            logger.warning(
                f"Email lookup failed for owner {owner_id}: {e}",
                extra={"owner_id": owner_id},
            )
            return False
        return self.is_free_credits_email(email)
