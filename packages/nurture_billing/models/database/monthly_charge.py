"""
Database entity for nurture campaign monthly charge claims.
"""

from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    Integer,
    Index,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class NurtureCampaignMonthlyChargeEntity(Base):
    """
    One claim per (campaign_id, period_key).

    updated_at is written by the application clock on every transition; the
    PENDING and FAILED windows are measured against it.
    """

    __tablename__ = "nurture_campaign_monthly_charges"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(String(255), nullable=False, index=True)
    campaign_id = Column(String(255), nullable=False)
    period_key = Column(String(7), nullable=False)  # UTC "YYYY-MM"

    status = Column(String(20), nullable=False)  # PENDING, CHARGED, FAILED
    credits = Column(Integer, nullable=False)
    charged_at = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "campaign_id", "period_key", name="uq_nurture_charge_campaign_period"
        ),
        Index("idx_nurture_charge_period_status", "period_key", "status"),
    )
