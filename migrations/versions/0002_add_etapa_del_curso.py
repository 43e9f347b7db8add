"""add etapa_del_curso to contact_verifications

Revision ID: 0002
Revises: 0001
Create Date: 2025-07-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = [c["name"] for c in insp.get_columns("contact_verifications")]
    if "etapa_del_curso" not in cols:
        op.add_column(
            "contact_verifications",
            sa.Column(
                "etapa_del_curso", sa.String(255), nullable=False, server_default=""
            ),
        )


def downgrade() -> None:
    op.drop_column("contact_verifications", "etapa_del_curso")
