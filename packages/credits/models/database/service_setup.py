"""
Database entity for per-account service documents.
"""

from sqlalchemy import Column, String, DateTime, Index, Integer, JSON, UniqueConstraint
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class ServiceSetupEntity(Base):
    """
    Per-account JSON document keyed by (owner_id, service_slug).

    The credits ledger lives in the "credits" document. Every write bumps
    `version`, which is what compare-and-swap updates are conditioned on.
    """

    __tablename__ = "portal_service_setups"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(String(255), nullable=False, index=True)
    service_slug = Column(String(100), nullable=False)

    status = Column(
        String(50), nullable=False, server_default="COMPLETE"
    )  # NOT_STARTED, IN_PROGRESS, COMPLETE

    data_json = Column(JSON, nullable=False, server_default="{}")
    version = Column(Integer, nullable=False, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "owner_id", "service_slug", name="uq_service_setup_owner_slug"
        ),
        Index("idx_service_setup_slug", "service_slug"),
    )
