"""
Monthly fee for active nurture campaigns.

The fee is charged at most once per campaign and UTC month. The claim row
for (campaign, period) decides which caller may attempt the charge:

    no row        -> insert PENDING; losing the insert means someone else holds it
    CHARGED       -> already charged
    PENDING fresh -> someone else is charging
    PENDING stale -> take the abandoned claim over (conditional update)
    FAILED fresh  -> failed recently, wait for the cooldown
    FAILED stale  -> reclaim FAILED -> PENDING (conditional update)

Only the caller holding the PENDING claim debits the owner's credits. A crash
between debit and finalisation leaves the row PENDING until its TTL expires,
so retries are delayed rather than doubled.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from common.core.config import settings
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.credits.services.consumption_service import CreditConsumptionService
from packages.nurture_billing.models.domain.enums import (
    ChargeStatus,
    ClaimState,
    MonthlyChargeOutcome,
)
from packages.nurture_billing.models.domain.monthly_charge import (
    MonthlyChargeResult,
    as_utc,
    classify_claim,
    period_key_for,
)
from packages.nurture_billing.repositories.monthly_charge_repository import (
    MonthlyChargeRepository,
)

logger = get_logger(__name__)

INSUFFICIENT_CREDITS_ERROR = "Insufficient credits"


class MonthlyChargeService:
    def __init__(
        self,
        charge_repo: Optional[MonthlyChargeRepository] = None,
        consumption: Optional[CreditConsumptionService] = None,
    ):
        self.charge_repo = charge_repo or MonthlyChargeRepository()
        self.consumption = consumption or CreditConsumptionService()
        self.monthly_credits = settings.nurture_monthly_campaign_credits
        self.pending_ttl = timedelta(
            seconds=settings.nurture_charge_pending_ttl_seconds
        )
        self.failed_retry_after = timedelta(
            seconds=settings.nurture_charge_failed_retry_after_seconds
        )

    def _result(self, outcome: MonthlyChargeOutcome, period_key: str, **kwargs):
        return MonthlyChargeResult(outcome=outcome, period_key=period_key, **kwargs)

    @trace_span
    async def ensure_campaign_monthly_charge(
        self, owner_id: str, campaign_id: str, now: Optional[datetime] = None
    ) -> MonthlyChargeResult:
        """
        Charge the campaign's monthly fee unless this period is already
        charged or claimed by another caller.

        Args:
            owner_id: Account paying for the campaign
            campaign_id: Campaign being billed
            now: Clock override; defaults to the current UTC time

        Returns:
            MonthlyChargeResult; never raises for billing failures
        """
        now = as_utc(now or datetime.now(timezone.utc))
        period_key = period_key_for(now)
        log_extra = {
            "owner_id": owner_id,
            "campaign_id": campaign_id,
            "period_key": period_key,
        }

        existing = await self.charge_repo.get_by_campaign_period(
            campaign_id, period_key
        )
        claim = classify_claim(existing, now, self.pending_ttl, self.failed_retry_after)

        match claim:
            case ClaimState.CHARGED:
                return self._result(MonthlyChargeOutcome.ALREADY_CHARGED, period_key)

            case ClaimState.PENDING_FRESH:
                return self._result(MonthlyChargeOutcome.PENDING, period_key)

            case ClaimState.FAILED_FRESH:
                return self._result(MonthlyChargeOutcome.FAILED_RECENT, period_key)

            case ClaimState.NO_ROW:
                created = await self.charge_repo.create_pending(
                    owner_id, campaign_id, period_key, self.monthly_credits, now
                )
                if created is None:
                    # Lost the insert race
                    winner = await self.charge_repo.get_by_campaign_period(
                        campaign_id, period_key
                    )
                    if winner is not None and winner.status == ChargeStatus.CHARGED:
                        return self._result(
                            MonthlyChargeOutcome.ALREADY_CHARGED, period_key
                        )
                    return self._result(MonthlyChargeOutcome.PENDING, period_key)
                charge_id = created.id

            case ClaimState.PENDING_STALE:
                if not await self.charge_repo.reclaim_stale_pending(
                    existing.id, now, self.pending_ttl
                ):
                    return self._result(MonthlyChargeOutcome.PENDING, period_key)
                logger.warning(
                    f"Taking over abandoned monthly charge claim for campaign {campaign_id}",
                    extra=log_extra,
                )
                charge_id = existing.id

            case ClaimState.FAILED_STALE:
                if not await self.charge_repo.reclaim_failed(
                    existing.id, now, self.failed_retry_after
                ):
                    return self._result(MonthlyChargeOutcome.PENDING, period_key)
                logger.info(
                    f"Retrying failed monthly charge for campaign {campaign_id}",
                    extra=log_extra,
                )
                charge_id = existing.id

        return await self._charge(owner_id, charge_id, period_key, now, log_extra)

    async def _finalise(self, finalise, log_extra: dict, charge_id: int) -> bool:
        """Run a finalisation update; a failure leaves the row PENDING until its TTL."""
        try:
            return await finalise()
        except Exception as e:
            logger.error(
                f"Could not finalise monthly charge row {charge_id}: {e}",
                extra={**log_extra, "charge_id": charge_id},
            )
            return False

    async def _charge(
        self,
        owner_id: str,
        charge_id: int,
        period_key: str,
        now: datetime,
        log_extra: dict,
    ) -> MonthlyChargeResult:
        """Debit the fee for a claim this caller holds and finalise the row."""
        try:
            consumed = await self.consumption.consume_credits(
                owner_id, self.monthly_credits
            )
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.error(
                f"Monthly charge attempt failed: {error}",
                extra={**log_extra, "error": error},
            )
            await self._finalise(
                lambda: self.charge_repo.mark_failed(charge_id, error, now),
                log_extra,
                charge_id,
            )
            return self._result(MonthlyChargeOutcome.ERROR, period_key, error=error)

        if not consumed.ok:
            await self._finalise(
                lambda: self.charge_repo.mark_failed(
                    charge_id, INSUFFICIENT_CREDITS_ERROR, now
                ),
                log_extra,
                charge_id,
            )
            logger.info(
                f"Insufficient credits for monthly campaign charge, balance {consumed.state.balance}",
                extra={**log_extra, "balance": consumed.state.balance},
            )
            return self._result(
                MonthlyChargeOutcome.INSUFFICIENT_CREDITS,
                period_key,
                state=consumed.state,
            )

        if not await self._finalise(
            lambda: self.charge_repo.mark_charged(charge_id, self.monthly_credits, now),
            log_extra,
            charge_id,
        ):
            logger.warning(
                "Monthly charge row left PENDING after a successful debit",
                extra={**log_extra, "charge_id": charge_id},
            )

        logger.info(
            f"Charged {self.monthly_credits} credits for campaign month",
            extra={**log_extra, "credits": self.monthly_credits},
        )
        return self._result(MonthlyChargeOutcome.CHARGED, period_key)
