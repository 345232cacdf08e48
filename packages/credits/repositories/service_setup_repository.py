"""
Repository for per-account JSON service documents.
"""

from typing import Optional
from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from packages.credits.models.database.service_setup import ServiceSetupEntity
from packages.credits.models.domain.service_setup import (
    ServiceSetup,
    ServiceSetupCreateModel,
)
from common.core.otel_axiom_exporter import trace_span


class ServiceSetupRepository(BaseRepository[ServiceSetupEntity, ServiceSetup]):
    """
    Document store keyed by (owner_id, service_slug).

    Plain reads are best effort. The only write primitive is
    compare_and_set_data, which succeeds for exactly one of any number of
    writers holding the same version.
    """

    def __init__(self, db_session=None):
        super().__init__(ServiceSetupEntity, ServiceSetup, db_session)

    @trace_span
    async def get_by_owner_and_slug(
        self, owner_id: str, service_slug: str
    ) -> Optional[ServiceSetup]:
        async with self._get_session() as session:
            result = await session.execute(
                select(ServiceSetupEntity).where(
                    ServiceSetupEntity.owner_id == owner_id,
                    ServiceSetupEntity.service_slug == service_slug,
                )
                .execution_options(populate_existing=True)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_or_create(
        self, owner_id: str, service_slug: str, default_data: dict
    ) -> ServiceSetup:
        """
        Get a document, inserting `default_data` when absent.

        Losing the insert race to another caller is fine: the winner's row is
        re-read and returned.
        """
        existing = await self.get_by_owner_and_slug(owner_id, service_slug)
        if existing:
            return existing

        created = await self.create_unique(
            ServiceSetupCreateModel(
                owner_id=owner_id,
                service_slug=service_slug,
                data_json=dict(default_data),
            )
        )
        if created:
            return created

        winner = await self.get_by_owner_and_slug(owner_id, service_slug)
        if winner is None:
            raise RuntimeError(
                f"Service document {service_slug} for owner {owner_id} vanished after insert conflict"
            )
        return winner

    @trace_span
    async def compare_and_set_data(
        self, setup_id: int, expected_version: int, data: dict
    ) -> bool:
        """
        Replace the document only if nobody wrote it since `expected_version`.

        Returns True if this call's write won.
        """
        async with self._get_session() as session:
            result = await session.execute(
                update(ServiceSetupEntity)
                .where(
                    ServiceSetupEntity.id == setup_id,
                    ServiceSetupEntity.version == expected_version,
                )
                .values(data_json=dict(data), version=expected_version + 1)
                .execution_options(synchronize_session=False)
            )
            await session.flush()
            return result.rowcount == 1
