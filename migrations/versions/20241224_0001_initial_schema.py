"""initial schema: client registrations, applications, components, permissions

Revision ID: 0001
Revises:
Create Date: 2024-12-24 00:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "client_registrations",
        sa.Column("client_id", sa.String(length=255), primary_key=True),
        sa.Column("client_secret_hash", sa.String(length=255), nullable=False),
        sa.Column("secret_hint", sa.String(length=16), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("scopes", sa.JSON(), nullable=False),
        sa.Column("registered_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_applications_name", "applications", ["name"], unique=True)

    op.create_table(
        "application_components",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "application_id", sa.String(length=36),
            sa.ForeignKey("applications.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("component_type", sa.String(length=50), nullable=False),
        sa.Column("component_id", sa.String(length=255), nullable=False),
        sa.Column("component_name", sa.String(length=255), nullable=False),
        sa.Column("scopes", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "application_id", "component_type", "component_id", name="uq_application_components_member"
        ),
    )
    op.create_index("ix_application_components_application_id", "application_components", ["application_id"])
    op.create_index("ix_application_components_component_type", "application_components", ["component_type"])

    op.create_table(
        "application_client_permissions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "client_id", sa.String(length=255),
            sa.ForeignKey("client_registrations.client_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "application_id", sa.String(length=36),
            sa.ForeignKey("applications.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("component_scopes", sa.JSON(), nullable=False),
        sa.Column("granted_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("client_id", "application_id", name="uq_application_client_permissions_pair"),
    )
    op.create_index(
        "ix_application_client_permissions_client_id", "application_client_permissions", ["client_id"]
    )
    op.create_index(
        "ix_application_client_permissions_application_id", "application_client_permissions", ["application_id"]
    )


def downgrade() -> None:
    op.drop_table("application_client_permissions")
    op.drop_table("application_components")
    op.drop_index("ix_applications_name", table_name="applications")
    op.drop_table("applications")
    op.drop_table("client_registrations")
