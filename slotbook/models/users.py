"""User table. Only identity and account state matter to scheduling."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID

from slotbook.models.metadata import metadata

users = Table(
    "users",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("full_name", Text),
    # Account state
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)
