"""Provider and weekly availability tables using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Table,
    Text,
    Time,
    text,
)
from sqlalchemy.dialects.postgresql import UUID

from slotbook.models.metadata import metadata

providers = Table(
    "providers",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    # Display names
    Column("name_en", Text, nullable=False),
    Column("name_ar", Text),
    Column("specialty_en", String(200), nullable=False),
    Column("specialty_ar", String(200)),
    Column("is_active", Boolean, nullable=False, server_default=text("true"), index=True),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

# Recurring weekly windows; day_of_week 0 = Sunday ... 6 = Saturday
provider_availability = Table(
    "provider_availability",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("day_of_week", SmallInteger, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint("day_of_week BETWEEN 0 AND 6", name="provider_availability_day_check"),
    CheckConstraint("start_time < end_time", name="provider_availability_window_check"),
    Index("idx_provider_availability_provider_day", "provider_id", "day_of_week"),
)
