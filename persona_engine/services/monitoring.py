"""Liveness and capacity probe."""

import time

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.storage.assignments import count_assignments

OPERATIONAL = "Operational"
DEGRADED = "Degraded"


class HealthMonitor:
    """Reports process uptime, datastore round-trip latency and assignment volume."""

    def __init__(self) -> None:
        self.started_at = time.monotonic()

    def uptime(self) -> float:
        return round(time.monotonic() - self.started_at, 3)

    async def check(self, db: AsyncSession) -> dict:
        """Raises whatever the datastore raises; the route turns that into Degraded."""
        start = time.perf_counter()
        await db.execute(text("SELECT 1"))
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        total = await count_assignments(db)
        return {
            "uptime": self.uptime(),
            "dbLatency": latency_ms,
            "profilesProcessed": total,
            "status": OPERATIONAL,
        }


health_monitor = HealthMonitor()
