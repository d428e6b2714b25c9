"""SQL record store for the import pipeline.

Each record is inserted inside its own SAVEPOINT so a constraint violation
only discards that row; the importer commits once per chunk.
"""
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.ingest.records import ValidatedRecord
from app.ingest.templates import EntityKind
from app.models.campaign import Campaign, CampaignPerformance
from app.models.customer import Customer, Purchase

logger = logging.getLogger(__name__)

MODELS = {
    EntityKind.customers: Customer,
    EntityKind.purchases: Purchase,
    EntityKind.campaigns: Campaign,
    EntityKind.performance: CampaignPerformance,
}

IDENTIFIER_COLUMNS = {
    EntityKind.customers: Customer.customer_id,
    EntityKind.campaigns: Campaign.campaign_id,
}

_RATIO = Decimal("0.0001")
_CENTS = Decimal("0.01")


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    return (numerator / denominator).quantize(_RATIO, rounding=ROUND_HALF_UP)


def derive_performance_metrics(
    impressions: int,
    clicks: int,
    revenue: Decimal,
    cost: Decimal,
) -> dict[str, Decimal]:
    """CTR (%), CPC and ROAS; each is 0 when its denominator is 0.

    Money is taken at the cents its columns store, so the ratios agree with
    the persisted row and always fit their Numeric(20, 4) columns.
    """
    zero = Decimal("0")
    revenue = Decimal(revenue).quantize(_CENTS, rounding=ROUND_HALF_UP)
    cost = Decimal(cost).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return {
        "ctr": _ratio(Decimal(clicks) * 100, Decimal(impressions)) if impressions > 0 else zero,
        "cpc": _ratio(cost, Decimal(clicks)) if clicks > 0 else zero,
        "roas": _ratio(revenue, cost) if cost > 0 else zero,
    }


class SqlRecordStore:
    def __init__(self, db: AsyncSession, actor_id: uuid.UUID | None = None):
        self.db = db
        self.actor_id = actor_id

    async def identifiers(self, kind: EntityKind) -> set[str]:
        column = IDENTIFIER_COLUMNS.get(kind)
        if column is None:
            raise ValueError(f"{kind.value} records have no identifier column")
        result = await self.db.execute(select(column))
        return set(result.scalars().all())

    async def persist(self, record: ValidatedRecord) -> None:
        values: dict[str, Any] = dict(record.fields)
        if record.kind is EntityKind.performance:
            values.update(
                derive_performance_metrics(
                    values["impressions"], values["clicks"], values["revenue"], values["cost"]
                )
            )

        async with self.db.begin_nested():
            self.db.add(MODELS[record.kind](**values, imported_by=self.actor_id))
            await self.db.flush()
            if record.kind is EntityKind.purchases:
                await self._bump_customer_metrics(
                    values["customer_id"], values["amount"], values["purchase_date"]
                )

    async def _bump_customer_metrics(self, customer_id: str, amount: Decimal, purchase_date) -> None:
        await self.db.execute(
            update(Customer)
            .where(Customer.customer_id == customer_id)
            .values(
                total_spent=Customer.total_spent + amount,
                purchase_frequency=Customer.purchase_frequency + 1,
                last_purchase_date=func.greatest(
                    func.coalesce(Customer.last_purchase_date, purchase_date), purchase_date
                ),
            )
        )

    async def commit(self) -> None:
        await self.db.commit()
        logger.debug("record store: committed")
