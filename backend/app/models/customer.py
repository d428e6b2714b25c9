import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin


class Customer(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "customers"

    customer_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)  # Male, Female, Other
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    income_range: Mapped[str] = mapped_column(String(50), nullable=False)
    registration_date: Mapped[date] = mapped_column(Date, nullable=False)
    preferred_category: Mapped[str] = mapped_column(String(100), nullable=False)

    # maintained from purchases
    last_purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_spent: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    purchase_frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    imported_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )


class Purchase(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "purchases"

    customer_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("customers.customer_id"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    channel: Mapped[str] = mapped_column(String(20), nullable=False)  # online, store

    imported_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
