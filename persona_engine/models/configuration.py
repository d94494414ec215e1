"""Configuration models - parameters, lists, maps and persona rules."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from persona_engine.database import Base


class Parameter(Base):
    """Scalar rule operand, e.g. AGE_MIN_MILL. Value is stored as text."""

    __tablename__ = "persona_parameters"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    data_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="string"
    )  # string|number|boolean|json
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class ConfigList(Base):
    """Ordered list of strings, e.g. COUNTRIES_NAT_MILL."""

    __tablename__ = "persona_lists"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    values: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class ConfigMap(Base):
    """Two-level lookup entry: map_key selects the namespace, lookup_key the entry."""

    __tablename__ = "persona_maps"

    map_key: Mapped[str] = mapped_column(Text, primary_key=True)
    lookup_key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class PersonaRule(Base):
    """Declarative rule: condition tree that yields persona_id when it holds."""

    __tablename__ = "persona_rules"

    rule_id: Mapped[str] = mapped_column(Text, primary_key=True)
    persona_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    condition: Mapped[dict] = mapped_column(JSONB, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
