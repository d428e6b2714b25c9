import datetime
import uuid
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin


class Campaign(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "campaigns"

    campaign_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # email, social, display, search
    target_segment: Mapped[str] = mapped_column(String(255), nullable=False)
    budget: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # active, paused, completed

    imported_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )


class CampaignPerformance(Base, UUIDMixin, TimestampMixin):
    """Daily performance figures for one campaign, with derived ratios."""

    __tablename__ = "campaign_performance"

    campaign_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("campaigns.campaign_id"), nullable=False, index=True
    )
    impressions: Mapped[int] = mapped_column(Integer, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, nullable=False)
    conversions: Mapped[int] = mapped_column(Integer, nullable=False)
    revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    ctr: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=0)  # click-through rate, %
    cpc: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=0)  # cost per click
    roas: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=0)  # return on ad spend
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)

    imported_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
