"""
Unit tests for MonthlyChargeRepository.

Tests the conditional claim transitions against the database.
"""

import pytest
from datetime import timedelta

from packages.nurture_billing.models.domain.enums import ChargeStatus
from packages.nurture_billing.repositories.monthly_charge_repository import (
    MonthlyChargeRepository,
)

TTL = timedelta(minutes=10)


@pytest.mark.asyncio
class TestMonthlyChargeRepository:
    async def test_create_pending(self, fixed_now):
        repo = MonthlyChargeRepository()

        row = await repo.create_pending("owner_1", "c1", "2024-05", 29, fixed_now)

        assert row.id is not None
        assert row.status == ChargeStatus.PENDING
        assert row.credits == 29
        assert row.charged_at is None
        assert row.last_error is None
        assert row.updated_at == fixed_now

    async def test_create_pending_is_unique_per_campaign_period(self, fixed_now):
        repo = MonthlyChargeRepository()

        first = await repo.create_pending("owner_1", "c1", "2024-05", 29, fixed_now)
        duplicate = await repo.create_pending("owner_1", "c1", "2024-05", 29, fixed_now)
        other_period = await repo.create_pending(
            "owner_1", "c1", "2024-06", 29, fixed_now
        )
        other_campaign = await repo.create_pending(
            "owner_1", "c2", "2024-05", 29, fixed_now
        )

        assert first is not None
        assert duplicate is None
        assert other_period is not None
        assert other_campaign is not None

    async def test_get_by_campaign_period(self, fixed_now, seed_charge):
        seeded = await seed_charge("c1", "2024-05", "CHARGED", fixed_now)
        repo = MonthlyChargeRepository()

        row = await repo.get_by_campaign_period("c1", "2024-05")

        assert row.id == seeded.id
        assert row.status == ChargeStatus.CHARGED
        assert await repo.get_by_campaign_period("c1", "2024-04") is None

    async def test_reclaim_failed_has_one_winner(self, fixed_now, seed_charge):
        seeded = await seed_charge(
            "c1",
            "2024-05",
            "FAILED",
            fixed_now - timedelta(minutes=11),
            last_error="Insufficient credits",
        )
        repo = MonthlyChargeRepository()

        results = [
            await repo.reclaim_failed(seeded.id, fixed_now, TTL) for _ in range(3)
        ]

        assert results == [True, False, False]
        row = await repo.get_by_campaign_period("c1", "2024-05")
        assert row.status == ChargeStatus.PENDING
        assert row.last_error is None
        assert row.updated_at == fixed_now

    async def test_reclaim_failed_respects_cooldown(self, fixed_now, seed_charge):
        seeded = await seed_charge(
            "c1", "2024-05", "FAILED", fixed_now - timedelta(minutes=9)
        )
        repo = MonthlyChargeRepository()

        assert await repo.reclaim_failed(seeded.id, fixed_now, TTL) is False
        row = await repo.get_by_campaign_period("c1", "2024-05")
        assert row.status == ChargeStatus.FAILED

    async def test_reclaim_stale_pending_has_one_winner(self, fixed_now, seed_charge):
        seeded = await seed_charge(
            "c1", "2024-05", "PENDING", fixed_now - timedelta(minutes=11)
        )
        repo = MonthlyChargeRepository()

        assert await repo.reclaim_stale_pending(seeded.id, fixed_now, TTL) is True
        # The takeover refreshed updated_at, so the claim is fresh again
        assert await repo.reclaim_stale_pending(seeded.id, fixed_now, TTL) is False

    async def test_reclaim_stale_pending_ignores_fresh_claims(
        self, fixed_now, seed_charge
    ):
        seeded = await seed_charge(
            "c1", "2024-05", "PENDING", fixed_now - timedelta(minutes=2)
        )

        assert (
            await MonthlyChargeRepository().reclaim_stale_pending(
                seeded.id, fixed_now, TTL
            )
            is False
        )

    async def test_mark_charged(self, fixed_now, seed_charge):
        seeded = await seed_charge("c1", "2024-05", "PENDING", fixed_now)
        repo = MonthlyChargeRepository()
        later = fixed_now + timedelta(seconds=5)

        assert await repo.mark_charged(seeded.id, 29, later) is True
        row = await repo.get_by_campaign_period("c1", "2024-05")
        assert row.status == ChargeStatus.CHARGED
        assert row.charged_at == later
        assert row.updated_at == later

    async def test_finalisation_requires_pending(self, fixed_now, seed_charge):
        """CHARGED is immutable."""
        seeded = await seed_charge(
            "c1", "2024-05", "CHARGED", fixed_now, charged_at=fixed_now
        )
        repo = MonthlyChargeRepository()

        assert await repo.mark_failed(seeded.id, "late failure", fixed_now) is False
        assert await repo.mark_charged(seeded.id, 29, fixed_now) is False
        assert await repo.reclaim_failed(seeded.id, fixed_now, timedelta(0)) is False
        assert (
            await repo.reclaim_stale_pending(seeded.id, fixed_now, timedelta(0))
            is False
        )

        row = await repo.get_by_campaign_period("c1", "2024-05")
        assert row.status == ChargeStatus.CHARGED
        assert row.last_error is None

    async def test_mark_failed(self, fixed_now, seed_charge):
        seeded = await seed_charge("c1", "2024-05", "PENDING", fixed_now)
        repo = MonthlyChargeRepository()

        assert await repo.mark_failed(seeded.id, "Insufficient credits", fixed_now)
        row = await repo.get_by_campaign_period("c1", "2024-05")
        assert row.status == ChargeStatus.FAILED
        assert row.last_error == "Insufficient credits"
        assert row.charged_at is None
