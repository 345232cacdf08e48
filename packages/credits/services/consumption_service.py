"""
Consumption gate for metered actions.
"""

from typing import Optional

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.credits.models.domain.credits import (
    ConsumeResult,
    normalize_credit_amount,
)
from packages.credits.services.auto_top_up_service import AutoTopUpService
from packages.credits.services.free_credits import FreeCreditsAllowlist
from packages.credits.services.ledger_service import CreditLedgerService

logger = get_logger(__name__)


class CreditConsumptionService:
    """
    Single entry point for charging credits for a paid action.

    The pre-check and the replenishment decision work on a possibly stale
    read; only the final debit is atomic and it re-validates the balance.
    """

    def __init__(
        self,
        ledger: Optional[CreditLedgerService] = None,
        auto_top_up: Optional[AutoTopUpService] = None,
        allowlist: Optional[FreeCreditsAllowlist] = None,
    ):
        self.ledger = ledger or CreditLedgerService()
        self.auto_top_up = auto_top_up or AutoTopUpService(ledger=self.ledger)
        self.allowlist = allowlist or FreeCreditsAllowlist()

    @trace_span
    async def consume_credits(self, owner_id: str, amount) -> ConsumeResult:
        """
        Charge `amount` credits to an account.

        Returns:
            ConsumeResult(ok=True, state) when charged (or free),
            ConsumeResult(ok=False, state) when denied
        """
        if await self.allowlist.is_free_credits_owner(owner_id):
            return ConsumeResult(ok=True, state=await self.ledger.get_state(owner_id))

        needed = max(0, normalize_credit_amount(amount))
        if needed == 0:
            return ConsumeResult(ok=True, state=await self.ledger.get_state(owner_id))

        state = await self.ledger.get_state(owner_id)

        if state.balance < needed:
            if not state.auto_top_up:
                logger.info(
                    f"Insufficient credits for owner {owner_id}: {state.balance} < {needed}",
                    extra={
                        "owner_id": owner_id,
                        "credits": needed,
                        "balance": state.balance,
                    },
                )
                return ConsumeResult(ok=False, state=state)

            top_up = await self.auto_top_up.try_auto_top_up(
                owner_id, needed=needed, current_balance=state.balance
            )
            if not top_up.ok:
                return ConsumeResult(ok=False, state=state)

        result = await self.ledger.debit(owner_id, needed)
        if result.ok:
            logger.info(
                f"Consumed {needed} credits for owner {owner_id}",
                extra={
                    "owner_id": owner_id,
                    "credits": needed,
                    "balance": result.state.balance,
                },
            )
        else:
            logger.info(
                f"Debit of {needed} credits lost to a concurrent consumer for owner {owner_id}",
                extra={"owner_id": owner_id, "credits": needed},
            )
        return result
