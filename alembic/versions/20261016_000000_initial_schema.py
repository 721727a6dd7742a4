"""Initial schema for Takt

Revision ID: 20261016_000000
Revises: None
Create Date: 2026-10-16 00:00:00.000000

Creates every table of the Takt backend:
- Tenancy (organizations, domains, settings, memberships, invitations)
- Users and their credentials (sessions, password reset tokens, OTP codes)
- Platform administration (platform admins, admin audit logs)
- Activity stream and organization audit trail
- Master data (parties, locations, planning weeks, demand categories, truck types)
- Planning (demand forecasts with truck types, supply commitments)

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261016_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(64), nullable=False)


def _org_fk() -> sa.Column:
    return sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False)


def upgrade() -> None:
    """Create all tables."""

    # Tenancy
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("country", sa.String(2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("suspended_at", sa.DateTime(), nullable=True),
        sa.Column("suspended_reason", sa.String(500), nullable=True),
        sa.Column("suspended_by", sa.String(64), nullable=True),
        sa.Column("subscription_tier", sa.String(32), nullable=False),
        sa.Column("subscription_status", sa.String(32), nullable=False),
        sa.Column("trial_ends_at", sa.DateTime(), nullable=True),
        sa.Column("price_override", sa.Float(), nullable=True),
        sa.Column("seat_limit", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_organizations_slug", "slug", unique=True),
        sa.Index("ix_organizations_status", "status"),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("mobile_number", sa.String(20), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("email_verified_at", sa.DateTime(), nullable=True),
        sa.Column("current_org_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("mobile_number"),
        sa.Index("ix_users_email", "email", unique=True),
        sa.Index("ix_users_current_org_id", "current_org_id"),
    )

    op.create_table(
        "organization_domains",
        _id(),
        _org_fk(),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_organization_domains_organization_id", "organization_id"),
        sa.Index("ix_organization_domains_domain", "domain", unique=True),
    )

    op.create_table(
        "organization_settings",
        _id(),
        _org_fk(),
        sa.Column("demand_category_enabled", sa.Boolean(), nullable=False),
        sa.Column("demand_category_required", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_organization_settings_organization_id", "organization_id", unique=True),
    )

    op.create_table(
        "organization_memberships",
        _id(),
        _org_fk(),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "user_id", name="uq_membership_org_user"),
        sa.Index("ix_organization_memberships_organization_id", "organization_id"),
        sa.Index("ix_organization_memberships_user_id", "user_id"),
    )

    op.create_table(
        "invitations",
        _id(),
        _org_fk(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("invited_by_id", sa.String(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_invitations_organization_id", "organization_id"),
        sa.Index("ix_invitations_email", "email"),
        sa.Index("ix_invitations_token", "token", unique=True),
    )

    # Credentials
    op.create_table(
        "user_sessions",
        _id(),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_user_sessions_user_id", "user_id"),
        sa.Index("ix_user_sessions_token", "token", unique=True),
    )

    op.create_table(
        "password_reset_tokens",
        _id(),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_password_reset_tokens_user_id", "user_id"),
        sa.Index("ix_password_reset_tokens_token", "token", unique=True),
    )

    op.create_table(
        "otp_codes",
        _id(),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("code_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_otp_codes_user_id", "user_id"),
    )

    # Platform administration
    op.create_table(
        "platform_admins",
        _id(),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("granted_by", sa.String(64), nullable=True),
        sa.Column("granted_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("revoked_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_platform_admins_user_id", "user_id", unique=True),
    )

    op.create_table(
        "admin_audit_logs",
        _id(),
        sa.Column("admin_user_id", sa.String(64), nullable=False),
        sa.Column("admin_email", sa.String(255), nullable=False),
        sa.Column("action_type", sa.String(100), nullable=False),
        sa.Column("target_type", sa.String(64), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=True),
        sa.Column("target_name", sa.String(255), nullable=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("reason", sa.String(1000), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_admin_audit_logs_admin_user_id", "admin_user_id"),
        sa.Index("ix_admin_audit_logs_action_type", "action_type"),
        sa.Index("ix_admin_audit_logs_target_id", "target_id"),
        sa.Index("ix_admin_audit_logs_created_at", "created_at"),
    )

    # Activity and audit
    op.create_table(
        "activity_events",
        _id(),
        sa.Column("organization_id", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.String(64), nullable=True),
        sa.Column("actor_email", sa.String(255), nullable=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=True),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_activity_events_organization_id", "organization_id"),
        sa.Index("ix_activity_events_actor_user_id", "actor_user_id"),
        sa.Index("ix_activity_events_event_type", "event_type"),
        sa.Index("ix_activity_events_created_at", "created_at"),
    )

    op.create_table(
        "audit_logs",
        _id(),
        sa.Column("organization_id", sa.String(64), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=True),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_audit_logs_organization_id", "organization_id"),
        sa.Index("ix_audit_logs_user_id", "user_id"),
        sa.Index("ix_audit_logs_action", "action"),
        sa.Index("ix_audit_logs_created_at", "created_at"),
    )

    # Master data
    op.create_table(
        "parties",
        _id(),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("party_type", sa.String(16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_parties_organization_id", "organization_id"),
        sa.Index("ix_parties_party_type", "party_type"),
    )

    op.create_table(
        "locations",
        _id(),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_locations_organization_id", "organization_id"),
    )

    op.create_table(
        "planning_weeks",
        _id(),
        _org_fk(),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("week_end", sa.Date(), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "year", "week_number", name="uq_planning_week"),
        sa.Index("ix_planning_weeks_organization_id", "organization_id"),
    )

    op.create_table(
        "demand_categories",
        _id(),
        _org_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_demand_categories_organization_id", "organization_id"),
    )

    op.create_table(
        "truck_types",
        _id(),
        _org_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("capacity_tons", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_truck_types_organization_id", "organization_id"),
    )

    # Planning
    day_qty = [sa.Column(f"day{i}_qty", sa.Integer(), nullable=False) for i in range(1, 8)]
    week_qty = [sa.Column(f"week{i}_qty", sa.Integer(), nullable=False) for i in range(1, 6)]
    op.create_table(
        "demand_forecasts",
        _id(),
        _org_fk(),
        sa.Column("planning_week_id", sa.String(), sa.ForeignKey("planning_weeks.id"), nullable=False),
        sa.Column("party_id", sa.String(), sa.ForeignKey("parties.id"), nullable=False),
        sa.Column("pickup_location_id", sa.String(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("dropoff_location_id", sa.String(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("demand_category_id", sa.String(), sa.ForeignKey("demand_categories.id"), nullable=True),
        sa.Column("business_type", sa.String(16), nullable=False),
        sa.Column("route_key", sa.String(255), nullable=False),
        *day_qty,
        *week_qty,
        sa.Column("total_qty", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_demand_forecasts_organization_id", "organization_id"),
        sa.Index("ix_demand_forecasts_planning_week_id", "planning_week_id"),
        sa.Index("ix_demand_forecasts_party_id", "party_id"),
        sa.Index("ix_demand_forecasts_route_key", "route_key"),
        sa.Index("ix_demand_forecasts_created_by_id", "created_by_id"),
    )

    op.create_table(
        "demand_forecast_truck_types",
        sa.Column("demand_forecast_id", sa.String(), sa.ForeignKey("demand_forecasts.id"), nullable=False),
        sa.Column("truck_type_id", sa.String(), sa.ForeignKey("truck_types.id"), nullable=False),
        sa.PrimaryKeyConstraint("demand_forecast_id", "truck_type_id"),
    )

    day_committed = [sa.Column(f"day{i}_committed", sa.Integer(), nullable=False) for i in range(1, 8)]
    op.create_table(
        "supply_commitments",
        _id(),
        _org_fk(),
        sa.Column("planning_week_id", sa.String(), sa.ForeignKey("planning_weeks.id"), nullable=False),
        sa.Column("party_id", sa.String(), sa.ForeignKey("parties.id"), nullable=False),
        sa.Column("truck_type_id", sa.String(), sa.ForeignKey("truck_types.id"), nullable=True),
        sa.Column("route_key", sa.String(255), nullable=False),
        *day_committed,
        sa.Column("total_committed", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_supply_commitments_organization_id", "organization_id"),
        sa.Index("ix_supply_commitments_planning_week_id", "planning_week_id"),
        sa.Index("ix_supply_commitments_party_id", "party_id"),
        sa.Index("ix_supply_commitments_route_key", "route_key"),
        sa.Index("ix_supply_commitments_created_by_id", "created_by_id"),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "supply_commitments",
        "demand_forecast_truck_types",
        "demand_forecasts",
        "truck_types",
        "demand_categories",
        "planning_weeks",
        "locations",
        "parties",
        "audit_logs",
        "activity_events",
        "admin_audit_logs",
        "platform_admins",
        "otp_codes",
        "password_reset_tokens",
        "user_sessions",
        "invitations",
        "organization_memberships",
        "organization_settings",
        "organization_domains",
        "users",
        "organizations",
    ):
        op.drop_table(table)
