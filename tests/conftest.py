"""Pytest configuration and fixtures.

HTTP tests run the real app over httpx's ASGI transport. The datastore is
replaced by ``InMemoryStore``, whose coroutines are patched in place of the
storage functions the services and routes import, so no Postgres is needed.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from persona_engine.auth.middleware import get_caller
from persona_engine.database import get_db
from persona_engine.engine.snapshot import ConfigSnapshot
from persona_engine.main import app
from persona_engine.services.audit import AuditLogger, get_audit_logger


class FakeSession:
    """Stands in for AsyncSession: usable as ``async with`` and records commits."""

    def __init__(self) -> None:
        self.execute = AsyncMock()
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.flush = AsyncMock()
        self.added: list = []

    def add(self, obj) -> None:
        self.added.append(obj)

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


class InMemoryStore:
    """Assignment and audit rows kept in dicts, with storage-function signatures."""

    def __init__(self) -> None:
        self.snapshot = ConfigSnapshot()
        self.assignments: dict[tuple[str, str], SimpleNamespace] = {}
        self.audit: list[SimpleNamespace] = []

    async def load_snapshot(self, db) -> ConfigSnapshot:
        return self.snapshot

    async def upsert_assignments(self, db, profile_id, persona_ids, method, assigned_at) -> None:
        for persona_id in persona_ids:
            row = self.assignments.get((profile_id, persona_id))
            if row is None:
                self.assignments[(profile_id, persona_id)] = SimpleNamespace(
                    profile_id=profile_id,
                    persona_id=persona_id,
                    assigned_at=assigned_at,
                    method=method,
                    score=1.0,
                )
            else:
                row.assigned_at = assigned_at
                row.method = method

    async def list_for_profile(self, db, profile_id) -> list[SimpleNamespace]:
        return [row for (pid, _), row in sorted(self.assignments.items()) if pid == profile_id]

    async def delete_for_profile(self, db, profile_id) -> list[str]:
        removed = sorted(persona for (pid, persona) in self.assignments if pid == profile_id)
        for persona in removed:
            del self.assignments[(profile_id, persona)]
        return removed

    async def insert_audit_entry(self, db, profile_id, action, details, changed_by, reason, timestamp):
        entry = SimpleNamespace(
            id=len(self.audit) + 1,
            profile_id=profile_id,
            action=action,
            details=details,
            changed_by=changed_by,
            reason=reason,
            timestamp=timestamp,
        )
        self.audit.append(entry)
        return entry

    async def query_audit(self, db, filters, limit) -> list[SimpleNamespace]:
        rows = [
            e
            for e in self.audit
            if (not filters.profile_id or e.profile_id == filters.profile_id)
            and (not filters.action or e.action == filters.action)
            and (not filters.changed_by or e.changed_by == filters.changed_by)
            and (not filters.date_start or e.timestamp >= filters.date_start)
            and (not filters.date_end or e.timestamp <= filters.date_end)
        ]
        return sorted(rows, key=lambda e: (e.timestamp, e.id), reverse=True)[:limit]

    def rows_for(self, profile_id: str) -> list[SimpleNamespace]:
        return [row for (pid, _), row in self.assignments.items() if pid == profile_id]


@pytest.fixture
def store(monkeypatch) -> InMemoryStore:
    """Patch the storage layer with an in-memory store."""
    mem = InMemoryStore()
    patches = {
        "persona_engine.services.personas.load_snapshot": mem.load_snapshot,
        "persona_engine.services.personas.upsert_assignments": mem.upsert_assignments,
        "persona_engine.services.personas.delete_for_profile": mem.delete_for_profile,
        "persona_engine.services.audit.insert_audit_entry": mem.insert_audit_entry,
        "persona_engine.api.personas.list_for_profile": mem.list_for_profile,
        "persona_engine.api.personas.query_audit": mem.query_audit,
        "persona_engine.api.audit.query_audit": mem.query_audit,
    }
    for target, replacement in patches.items():
        monkeypatch.setattr(target, replacement)
    return mem


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger(session_factory=FakeSession)


@pytest.fixture
def db_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def caller() -> SimpleNamespace:
    return SimpleNamespace(client_id="c-1", name="ops-admin", tenant_id="demo")


@pytest.fixture
async def client(db_session, audit_logger, caller) -> AsyncClient:
    """Async HTTP client against the FastAPI app with auth and DB overridden."""

    async def override_db():
        yield db_session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_caller] = lambda: caller
    app.dependency_overrides[get_audit_logger] = lambda: audit_logger
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await audit_logger.drain()
    app.dependency_overrides.clear()
