"""Initial schema for the NAMC NorCal member portal

Revision ID: 20260301_000000
Revises: None
Create Date: 2026-03-01 00:00:00.000000

Creates every portal table:
- Members and authentication state (users)
- Messaging, events and event registrations
- Projects, service requests, announcements and resources
- The California contractor registry, TECH projects and the admin audit log

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260301_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.String(32)


def _timestamps(*, updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def upgrade() -> None:
    """Create all tables."""

    # Create users table
    op.create_table(
        "users",
        sa.Column("id", ID, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("company", sa.String(100), nullable=True),
        sa.Column("title", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("linkedin", sa.String(255), nullable=True),
        sa.Column("skills", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("member_type", sa.String(20), nullable=False, server_default="REGULAR"),
        sa.Column("member_since", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.DateTime(), nullable=True),
        sa.Column("last_failed_login", sa.DateTime(), nullable=True),
        sa.Column("last_successful_login", sa.DateTime(), nullable=True),
        sa.Column("email_verification_token", sa.String(128), nullable=True),
        sa.Column("email_verification_expires", sa.DateTime(), nullable=True),
        sa.Column("password_reset_token", sa.String(128), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(), nullable=True),
        sa.Column("hubspot_contact_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_email", "email", unique=True),
        sa.Index("ix_users_email_verification_token", "email_verification_token"),
        sa.Index("ix_users_password_reset_token", "password_reset_token"),
    )

    # Create messages table
    op.create_table(
        "messages",
        sa.Column("id", ID, nullable=False),
        sa.Column("sender_id", ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("receiver_id", ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("subject", sa.String(200), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SENT"),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_messages_sender_id", "sender_id"),
        sa.Index("ix_messages_receiver_id", "receiver_id"),
    )

    # Create events and event_registrations tables
    op.create_table(
        "events",
        sa.Column("id", ID, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="NETWORKING"),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("registration_deadline", sa.DateTime(), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("current_capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("is_virtual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("virtual_url", sa.String(500), nullable=True),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("member_price", sa.Float(), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="DRAFT"),
        sa.Column("created_by_id", ID, sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_events_status", "status"),
    )
    op.create_table(
        "event_registrations",
        sa.Column("id", ID, nullable=False),
        sa.Column("event_id", ID, sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="REGISTERED"),
        sa.Column("registered_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_registrations_event_user"),
        sa.Index("ix_event_registrations_event_id", "event_id"),
        sa.Index("ix_event_registrations_user_id", "user_id"),
    )

    # Create projects and service_requests tables
    op.create_table(
        "projects",
        sa.Column("id", ID, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("budget_min", sa.Float(), nullable=True),
        sa.Column("budget_max", sa.Float(), nullable=True),
        sa.Column("estimated_value", sa.Float(), nullable=True),
        sa.Column("deadline_date", sa.DateTime(), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("bonding_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.String(20), nullable=False, server_default="MEDIUM"),
        sa.Column("client_name", sa.String(200), nullable=True),
        sa.Column("skills_required", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("visibility", sa.String(20), nullable=False, server_default="MEMBERS_ONLY"),
        sa.Column("application_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by_id", ID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("hubspot_deal_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_projects_status", "status"),
    )
    op.create_table(
        "service_requests",
        sa.Column("id", ID, nullable=False),
        sa.Column("requester_id", ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("service_type", sa.String(100), nullable=False),
        sa.Column("urgency", sa.String(20), nullable=False, server_default="MEDIUM"),
        sa.Column("expected_start_date", sa.DateTime(), nullable=True),
        sa.Column("min_budget", sa.Float(), nullable=True),
        sa.Column("max_budget", sa.Float(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        sa.Column("estimated_savings", sa.Float(), nullable=True),
        sa.Column("actual_savings", sa.Float(), nullable=True),
        sa.Column("hubspot_deal_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_service_requests_requester_id", "requester_id"),
    )

    # Create announcements and resources tables
    op.create_table(
        "announcements",
        sa.Column("id", ID, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False, server_default="NORMAL"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_by_id", ID, sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "resources",
        sa.Column("id", ID, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by_id", ID, sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create california_contractors table
    op.create_table(
        "california_contractors",
        sa.Column("id", ID, nullable=False),
        sa.Column("license_number", sa.String(32), nullable=False),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("dba_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("email_validated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_confidence", sa.Float(), nullable=True),
        sa.Column("email_source", sa.String(64), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("phone_validated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("phone_source", sa.String(64), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(2), nullable=False, server_default="CA"),
        sa.Column("zip_code", sa.String(10), nullable=True),
        sa.Column("county", sa.String(100), nullable=True),
        sa.Column("license_status", sa.String(32), nullable=False, server_default="ACTIVE"),
        sa.Column("license_type", sa.String(64), nullable=True),
        sa.Column("issue_date", sa.DateTime(), nullable=True),
        sa.Column("expire_date", sa.DateTime(), nullable=True),
        sa.Column("primary_classification", sa.String(16), nullable=True),
        sa.Column("classifications", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("business_type", sa.String(64), nullable=True),
        sa.Column("years_in_business", sa.Integer(), nullable=True),
        sa.Column("employee_count", sa.Integer(), nullable=True),
        sa.Column("priority_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("data_quality_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("outreach_status", sa.String(20), nullable=False, server_default="NOT_CONTACTED"),
        sa.Column("last_contact_date", sa.DateTime(), nullable=True),
        sa.Column("contact_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("campaign_tags", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("lead_score", sa.Integer(), nullable=True),
        sa.Column("membership_interest", sa.String(32), nullable=True),
        sa.Column("is_namc_member", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("namc_member_id", ID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_california_contractors_license_number", "license_number", unique=True),
        sa.Index("ix_california_contractors_business_name", "business_name"),
        sa.Index("ix_california_contractors_city", "city"),
        sa.Index("ix_california_contractors_outreach_status", "outreach_status"),
    )

    # Create tech_projects table
    op.create_table(
        "tech_projects",
        sa.Column("id", ID, nullable=False),
        sa.Column("contractor_id", ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="hvac"),
        sa.Column("status", sa.String(30), nullable=False, server_default="inquiry"),
        sa.Column("customer_id", sa.String(64), nullable=True),
        sa.Column("estimated_incentive", sa.Float(), nullable=False, server_default="0"),
        sa.Column("installation_street", sa.String(255), nullable=True),
        sa.Column("installation_city", sa.String(100), nullable=True),
        sa.Column("installation_state", sa.String(50), nullable=True),
        sa.Column("installation_zip", sa.String(20), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_tech_projects_contractor_id", "contractor_id"),
    )

    # Create admin_actions table
    op.create_table(
        "admin_actions",
        sa.Column("id", ID, nullable=False),
        sa.Column("admin_id", ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("target_type", sa.String(64), nullable=True),
        sa.Column("target_id", sa.String(64), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_admin_actions_admin_id", "admin_id"),
        sa.Index("ix_admin_actions_action", "action"),
        sa.Index("ix_admin_actions_created_at", "created_at"),
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("admin_actions")
    op.drop_table("tech_projects")
    op.drop_table("california_contractors")
    op.drop_table("resources")
    op.drop_table("announcements")
    op.drop_table("service_requests")
    op.drop_table("projects")
    op.drop_table("event_registrations")
    op.drop_table("events")
    op.drop_table("messages")
    op.drop_table("users")
