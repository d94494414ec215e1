"""Read-only view of the CRM customer store.

The table belongs to the CRM module; this engine only joins against it for
audience statistics and never creates or writes it.
"""

from decimal import Decimal

from sqlalchemy import Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from persona_engine.database import Base


class Customer(Base):
    """Subset of ``customers`` columns the audience aggregator reads."""

    __tablename__ = "customers"
    __table_args__ = {"info": {"external": True}}

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    lifetime_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
