"""
Repository for nurture campaign monthly charge claims.
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.nurture_billing.models.database.monthly_charge import (
    NurtureCampaignMonthlyChargeEntity,
)
from packages.nurture_billing.models.domain.enums import ChargeStatus
from packages.nurture_billing.models.domain.monthly_charge import (
    MonthlyCharge,
    MonthlyChargeCreateModel,
)

Charge = NurtureCampaignMonthlyChargeEntity


class MonthlyChargeRepository(BaseRepository[Charge, MonthlyCharge]):
    """
    Claim rows for monthly campaign charges.

    Every state transition is a conditional update returning whether this
    caller's write took effect; exactly one of several racing callers wins.
    """

    def __init__(self, db_session=None):
        super().__init__(Charge, MonthlyCharge, db_session)

    @trace_span
    async def get_by_campaign_period(
        self, campaign_id: str, period_key: str
    ) -> Optional[MonthlyCharge]:
        async with self._get_session() as session:
            result = await session.execute(
                select(Charge).where(
                    Charge.campaign_id == campaign_id,
                    Charge.period_key == period_key,
                )
                .execution_options(populate_existing=True)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def create_pending(
        self,
        owner_id: str,
        campaign_id: str,
        period_key: str,
        credits: int,
        now: datetime,
    ) -> Optional[MonthlyCharge]:
        """Insert a PENDING claim. None if the (campaign, period) row already exists."""
        return await self.create_unique(
            MonthlyChargeCreateModel(
                owner_id=owner_id,
                campaign_id=campaign_id,
                period_key=period_key,
                credits=credits,
                updated_at=now,
            )
        )

    async def _transition(self, charge_id: int, *conditions, **values) -> bool:
        async with self._get_session() as session:
            result = await session.execute(
                update(Charge)
                .where(Charge.id == charge_id, *conditions)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await session.flush()
            return result.rowcount == 1

    @trace_span
    async def reclaim_stale_pending(
        self, charge_id: int, now: datetime, pending_ttl: timedelta
    ) -> bool:
        """Take over a PENDING claim untouched for at least `pending_ttl`."""
        return await self._transition(
            charge_id,
            Charge.status == ChargeStatus.PENDING.value,
            Charge.updated_at <= now - pending_ttl,
            updated_at=now,
        )

    @trace_span
    async def reclaim_failed(
        self, charge_id: int, now: datetime, retry_after: timedelta
    ) -> bool:
        """FAILED -> PENDING once the retry cooldown has passed."""
        return await self._transition(
            charge_id,
            Charge.status == ChargeStatus.FAILED.value,
            Charge.updated_at <= now - retry_after,
            status=ChargeStatus.PENDING.value,
            last_error=None,
            updated_at=now,
        )

    @trace_span
    async def mark_charged(self, charge_id: int, credits: int, now: datetime) -> bool:
        return await self._transition(
            charge_id,
            Charge.status == ChargeStatus.PENDING.value,
            status=ChargeStatus.CHARGED.value,
            credits=credits,
            charged_at=now,
            last_error=None,
            updated_at=now,
        )

    @trace_span
    async def mark_failed(self, charge_id: int, error: str, now: datetime) -> bool:
        return await self._transition(
            charge_id,
            Charge.status == ChargeStatus.PENDING.value,
            status=ChargeStatus.FAILED.value,
            last_error=error,
            updated_at=now,
        )
