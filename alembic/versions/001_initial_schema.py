"""Initial schema - api_clients, configuration, persona_rules, assignments, audit logs.

Seeds the reference thresholds, country list and the two reference rules.

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from persona_engine.engine.rules import DEFAULT_LISTS, DEFAULT_PARAMETERS, DEFAULT_RULES

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _last_updated() -> sa.Column:
    return sa.Column(
        "last_updated", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "api_clients",
        sa.Column("client_id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("tenant_id", sa.Text(), nullable=True),
        sa.Column("api_key_hash", sa.String(255), unique=True, nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    parameters = op.create_table(
        "persona_parameters",
        sa.Column("key", sa.Text(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("data_type", sa.String(20), nullable=False, server_default="string"),
        _last_updated(),
    )

    lists = op.create_table(
        "persona_lists",
        sa.Column("key", sa.Text(), primary_key=True),
        sa.Column("values", postgresql.JSONB(), nullable=False, server_default="[]"),
        _last_updated(),
    )

    op.create_table(
        "persona_maps",
        sa.Column("map_key", sa.Text(), primary_key=True),
        sa.Column("lookup_key", sa.Text(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        _last_updated(),
    )

    rules = op.create_table(
        "persona_rules",
        sa.Column("rule_id", sa.Text(), primary_key=True),
        sa.Column("persona_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("condition", postgresql.JSONB(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        _last_updated(),
    )

    op.create_table(
        "persona_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("profile_id", sa.Text(), nullable=False),
        sa.Column("persona_id", sa.Text(), nullable=False),
        sa.Column("assigned_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("method", sa.String(10), nullable=False, server_default="auto"),
        sa.Column("score", sa.Float(), nullable=False, server_default="1.0"),
        sa.UniqueConstraint("profile_id", "persona_id", name="uq_persona_assignments_profile_persona"),
    )
    op.create_index("ix_persona_assignments_profile_id", "persona_assignments", ["profile_id"])

    op.create_table(
        "persona_audit_logs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("profile_id", sa.Text(), nullable=True),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("details", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("changed_by", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_persona_audit_logs_profile_id", "persona_audit_logs", ["profile_id"])
    op.create_index("ix_persona_audit_logs_action", "persona_audit_logs", ["action"])
    op.create_index("ix_persona_audit_logs_timestamp", "persona_audit_logs", ["timestamp"])

    op.bulk_insert(
        parameters,
        [
            {"key": key, "value": value, "data_type": data_type}
            for key, (value, data_type) in DEFAULT_PARAMETERS.items()
        ],
    )
    op.bulk_insert(lists, [{"key": key, "values": values} for key, values in DEFAULT_LISTS.items()])
    op.bulk_insert(
        rules,
        [
            {
                "rule_id": rule["rule_id"],
                "persona_id": rule["persona_id"],
                "name": rule["name"],
                "priority": rule["priority"],
                "condition": rule["when"],
                "enabled": True,
            }
            for rule in DEFAULT_RULES
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_persona_audit_logs_timestamp", table_name="persona_audit_logs")
    op.drop_index("ix_persona_audit_logs_action", table_name="persona_audit_logs")
    op.drop_index("ix_persona_audit_logs_profile_id", table_name="persona_audit_logs")
    op.drop_table("persona_audit_logs")
    op.drop_index("ix_persona_assignments_profile_id", table_name="persona_assignments")
    op.drop_table("persona_assignments")
    op.drop_table("persona_rules")
    op.drop_table("persona_maps")
    op.drop_table("persona_lists")
    op.drop_table("persona_parameters")
    op.drop_table("api_clients")
