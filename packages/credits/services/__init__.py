"""Credits services."""

from packages.credits.services.ledger_service import CreditLedgerService
from packages.credits.services.free_credits import FreeCreditsAllowlist
from packages.credits.services.auto_top_up_service import AutoTopUpService
from packages.credits.services.consumption_service import CreditConsumptionService
from packages.credits.services.topup_checkout_service import TopUpCheckoutService

__all__ = [
    "CreditLedgerService",
    "FreeCreditsAllowlist",
    "AutoTopUpService",
    "CreditConsumptionService",
    "TopUpCheckoutService",
]
