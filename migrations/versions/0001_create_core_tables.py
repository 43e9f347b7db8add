"""create users, settings, trainers, contact index and ledgers

Revision ID: 0001
Revises: 
Create Date: 2025-05-12 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_users_email_lower", "users", [sa.text("lower(email)")], unique=True
    )

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("crm_api_url", sa.String(512), nullable=True),
        sa.Column("crm_api_username", sa.String(255), nullable=True),
        sa.Column("crm_api_pass_enc", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "trainers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("license", sa.String(255), nullable=False, server_default=""),
        sa.Column("signature_url", sa.String(1024), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "contact_index",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("subscriber_id", sa.BigInteger(), nullable=False),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.UniqueConstraint(
            "subscriber_id", "key", name="uix_contact_index_subscriber_key"
        ),
    )
    op.create_index("ix_contact_index_key_value", "contact_index", ["key", "value"])

    op.create_table(
        "issued_certificates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cedula", sa.String(255), nullable=False),
        sa.Column("external_contact_id", sa.BigInteger(), nullable=True),
        sa.Column("course_name", sa.String(255), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("issued_at", sa.DateTime(), nullable=False),
        sa.Column("validation_id", sa.String(255), nullable=True),
        sa.Column("extra_data", sa.JSON(), nullable=True),
    )
    op.create_index(
        "ix_issued_certificates_cedula", "issued_certificates", ["cedula"]
    )

    op.create_table(
        "contact_verifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cedula", sa.String(255), nullable=False),
        sa.Column("external_contact_id", sa.BigInteger(), nullable=True),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("course_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("employer_nit", sa.String(255), nullable=False, server_default=""),
        sa.Column("employer_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("verified_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_contact_verifications_cedula", "contact_verifications", ["cedula"]
    )


def downgrade() -> None:
    op.drop_index("ix_contact_verifications_cedula", table_name="contact_verifications")
    op.drop_table("contact_verifications")
    op.drop_index("ix_issued_certificates_cedula", table_name="issued_certificates")
    op.drop_table("issued_certificates")
    op.drop_index("ix_contact_index_key_value", table_name="contact_index")
    op.drop_table("contact_index")
    op.drop_table("trainers")
    op.drop_table("settings")
    op.drop_index("ix_users_email_lower", table_name="users")
    op.drop_table("users")
