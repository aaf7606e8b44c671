"""Add audit_events immutability trigger.

Revision ID: 002
Revises: 001
Create Date: 2025-03-01 00:01:00.000000

Rejects UPDATE and DELETE on audit_events at the database level.
PostgreSQL only; other backends are left unchanged.
"""

from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add immutability trigger to audit_events table."""
    if op.get_bind().dialect.name != "postgresql":
        return

    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_audit_modification()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'Audit events are append-only (% on event %)', TG_OP, OLD.id;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        DROP TRIGGER IF EXISTS audit_immutability_trigger ON audit_events
    """)

    op.execute("""
        CREATE TRIGGER audit_immutability_trigger
        BEFORE UPDATE OR DELETE ON audit_events
        FOR EACH ROW
        EXECUTE FUNCTION prevent_audit_modification()
    """)


def downgrade() -> None:
    """Remove immutability trigger."""
    if op.get_bind().dialect.name != "postgresql":
        return

    op.execute("""
        DROP TRIGGER IF EXISTS audit_immutability_trigger ON audit_events;
    """)
    op.execute("""
        DROP FUNCTION IF EXISTS prevent_audit_modification();
    """)
