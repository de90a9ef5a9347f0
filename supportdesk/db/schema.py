"""Relational schema (SQLAlchemy Core), portable across PostgreSQL and SQLite."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("email", String(255), index=True),
    Column("phone", String(50)),
    Column("password_hash", String(255)),
    Column("name", String(255)),
    Column("role", String(50), nullable=False, default="customer"),
    Column("auth_provider", String(50), nullable=False, default="credentials"),
    Column("auth_provider_id", String(255)),
    Column("fingerprint_id", String(255)),
    Column("email_verified", Boolean, nullable=False, default=False),
    Column("metadata", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

tenants = Table(
    "tenants",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("owner_id", String(64), ForeignKey("users.id"), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(100), nullable=False, unique=True),
    Column("settings", JSON, nullable=False, default=dict),
    Column("metadata", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

customers = Table(
    "customers",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("tenant_id", String(64), ForeignKey("tenants.id"), nullable=False),
    Column("user_id", String(64), ForeignKey("users.id"), index=True),
    Column("visitor_id", String(255), nullable=False),
    Column("email", String(255)),
    Column("name", String(255)),
    Column("metadata", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("tenant_id", "visitor_id", name="uq_customers_tenant_visitor"),
)

conversations = Table(
    "conversations",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("tenant_id", String(64), ForeignKey("tenants.id"), index=True),
    Column("customer_id", String(64), ForeignKey("customers.id", ondelete="CASCADE"), index=True),
    Column("status", String(50), nullable=False, default="active"),
    Column("is_lead", Boolean, nullable=False, default=False),
    Column("lead_converted_at", DateTime(timezone=True)),
    Column("metadata", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_conversations_tenant_lead", "tenant_id", "is_lead"),
)

# sender is "user" or "ai"
messages = Table(
    "messages",
    metadata,
    Column("id", String(64), primary_key=True),
    Column(
        "conversation_id",
        String(64),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("sender", String(50), nullable=False),
    Column("text", Text, nullable=False),
    Column("metadata", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
)
