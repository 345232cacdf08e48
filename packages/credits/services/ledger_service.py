"""
Service for the per-account credits ledger.

The ledger is the "credits" service document of each account. It is created
lazily with the default balance and never deleted.
"""

from typing import Callable, Optional, Tuple

from common.core.config import settings
from common.core.exceptions import LedgerContentionError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.context import readonly
from packages.credits.models.domain.credits import (
    ConsumeResult,
    CreditsState,
    normalize_credit_amount,
)
from packages.credits.models.domain.enums import ServiceSlug
from packages.credits.repositories.service_setup_repository import (
    ServiceSetupRepository,
)

logger = get_logger(__name__)

LedgerChange = Callable[[CreditsState], Optional[CreditsState]]


class CreditLedgerService:
    """Reads and writes account balances; every write is a compare-and-swap."""

    def __init__(self, setup_repo: Optional[ServiceSetupRepository] = None):
        self.setup_repo = setup_repo or ServiceSetupRepository()
        self.default_balance = settings.credits_default_balance
        self.max_attempts = max(1, settings.credits_ledger_cas_max_attempts)

    def _default_document(self) -> dict:
        return CreditsState(balance=self.default_balance).to_document()

    def _parse(self, data: Optional[dict]) -> CreditsState:
        return CreditsState.from_document(data, self.default_balance)

    @trace_span
    @readonly
    async def get_state(self, owner_id: str) -> CreditsState:
        """
        Current ledger state; defaults when the account has no document yet.

        Advisory only: runs on a readonly session, callers that write must go
        through add, set_auto_top_up or debit.
        """
        setup = await self.setup_repo.get_by_owner_and_slug(
            owner_id, ServiceSlug.CREDITS.value
        )
        return self._parse(setup.data_json if setup else None)

    async def _mutate(
        self, owner_id: str, change: LedgerChange
    ) -> Tuple[CreditsState, bool]:
        """
        Apply `change` to the latest state with optimistic concurrency.

        `change` returns the next state, or None to leave the ledger untouched.
        Returns (state, applied).

        Raises:
            LedgerContentionError: every attempt lost to a concurrent writer
        """
        for attempt in range(1, self.max_attempts + 1):
            setup = await self.setup_repo.get_or_create(
                owner_id, ServiceSlug.CREDITS.value, self._default_document()
            )
            prev = self._parse(setup.data_json)

            next_state = change(prev)
            if next_state is None:
                return prev, False

            if await self.setup_repo.compare_and_set_data(
                setup.id, setup.version, next_state.to_document()
            ):
                return next_state, True

            logger.info(
                f"Credits ledger write conflict for owner {owner_id}, retrying",
                extra={"owner_id": owner_id, "attempt": attempt},
            )

        raise LedgerContentionError(
            f"Credits ledger for owner {owner_id} changed on every attempt"
        )

    @trace_span
    async def add(self, owner_id: str, amount) -> CreditsState:
        """Add credits. Amount is floored to a non-negative integer first."""
        delta = max(0, normalize_credit_amount(amount))

        state, _ = await self._mutate(
            owner_id,
            lambda prev: CreditsState(
                balance=prev.balance + delta, auto_top_up=prev.auto_top_up
            ),
        )

        logger.info(
            f"Added {delta} credits for owner {owner_id}. New balance: {state.balance}",
            extra={"owner_id": owner_id, "credits": delta, "balance": state.balance},
        )
        return state

    @trace_span
    async def set_auto_top_up(self, owner_id: str, enabled: bool) -> CreditsState:
        """Toggle automatic replenishment; the balance is preserved."""
        state, _ = await self._mutate(
            owner_id,
            lambda prev: CreditsState(balance=prev.balance, auto_top_up=bool(enabled)),
        )
        logger.info(
            f"Auto top-up {'enabled' if state.auto_top_up else 'disabled'} for owner {owner_id}",
            extra={"owner_id": owner_id, "auto_top_up": state.auto_top_up},
        )
        return state

    @trace_span
    async def debit(self, owner_id: str, amount: int) -> ConsumeResult:
        """
        Authoritative compare-and-decrement.

        Re-reads the balance and only writes `balance - amount` if the balance
        still covers it and nobody else wrote in between. A balance that no
        longer covers the amount means a concurrent consumer won: deny.
        """

        def take(prev: CreditsState) -> Optional[CreditsState]:
            if prev.balance < amount:
                return None
            return CreditsState(
                balance=prev.balance - amount, auto_top_up=prev.auto_top_up
            )

        try:
            state, applied = await self._mutate(owner_id, take)
        except LedgerContentionError:
            logger.warning(
                f"Denying debit of {amount} credits for owner {owner_id}: ledger contention",
                extra={"owner_id": owner_id, "credits": amount},
            )
            return ConsumeResult(ok=False, state=await self.get_state(owner_id))

        return ConsumeResult(ok=applied, state=state)
