"""Best-effort audit logger.

Audit rows are written in their own session, after the primary operation has
committed, as background tasks. A failed audit write is logged and counted and
never reaches the caller of the operation it describes.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.database import async_session_maker
from persona_engine.storage.audit import insert_audit_entry

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "SYSTEM"

ASSIGNED = "ASSIGNED"
UPDATE_PARAM = "UPDATE_PARAM"
UPDATE_LIST = "UPDATE_LIST"
UPDATE_MAP = "UPDATE_MAP"
UPDATE_RULE = "UPDATE_RULE"
RIGHT_TO_OBJECT = "RIGHT_TO_OBJECT"


class AuditLogger:
    """Writes audit entries outside the caller's transaction."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session_maker) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task] = set()
        self.written = 0
        self.failed = 0

    async def record(
        self,
        profile_id: str | None,
        action: str,
        details: dict[str, Any],
        changed_by: str,
        reason: str | None = None,
    ) -> bool:
        """Write one entry now. Returns False (and logs) instead of raising."""
        try:
            async with self._session_factory() as session:
                await insert_audit_entry(
                    session,
                    profile_id=profile_id,
                    action=action,
                    details=details,
                    changed_by=changed_by,
                    reason=reason,
                    timestamp=datetime.now(timezone.utc),
                )
                await session.commit()
        except Exception:
            self.failed += 1
            logger.exception("Audit write failed: action=%s profile_id=%s", action, profile_id)
            return False
        self.written += 1
        return True

    def submit(
        self,
        profile_id: str | None,
        action: str,
        details: dict[str, Any],
        changed_by: str,
        reason: str | None = None,
    ) -> asyncio.Task:
        """Schedule ``record`` on the running loop and return immediately."""
        task = asyncio.create_task(self.record(profile_id, action, details, changed_by, reason))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def stats(self) -> dict[str, int]:
        return {"written": self.written, "failed": self.failed, "pending": len(self._pending)}


audit_logger = AuditLogger()


def get_audit_logger() -> AuditLogger:
    """Dependency returning the process-wide audit logger."""
    return audit_logger
