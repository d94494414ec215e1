"""Persona assignment model."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from persona_engine.database import Base


class Assignment(Base):
    """Profile -> persona link. One row per (profile_id, persona_id)."""

    __tablename__ = "persona_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    persona_id: Mapped[str] = mapped_column(Text, nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False, default="auto")  # auto|manual
    score: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    __table_args__ = (
        UniqueConstraint("profile_id", "persona_id", name="uq_persona_assignments_profile_persona"),
    )
