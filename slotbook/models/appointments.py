"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    UniqueConstraint,
    event,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID, VARCHAR

from slotbook.models.metadata import metadata

appointments = Table(
    "appointments",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("appointment_number", VARCHAR(32), nullable=False),
    # Ownership / references
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("providers.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    # Time window, end stored so overlap checks stay index friendly
    Column("appointment_at", TIMESTAMP(timezone=True), nullable=False),
    Column("duration_minutes", Integer, nullable=False),
    Column("appointment_end_at", TIMESTAMP(timezone=True), nullable=False),
    # Status management
    Column(
        "status",
        Text,
        nullable=False,
        server_default="scheduled",
    ),
    # Patient intake
    Column("patient_name", Text, nullable=False),
    Column("patient_age", Integer, nullable=False),
    Column("medical_history", Text, nullable=True),
    Column("current_concerns", Text, nullable=True),
    Column("emergency_contact", Text, nullable=True),
    Column("emergency_phone", VARCHAR(20), nullable=True),
    # External meeting
    Column("meeting_id", Text, nullable=True),
    Column("meeting_url", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("cancelled_at", TIMESTAMP(timezone=True), nullable=True),
    # Constraints
    UniqueConstraint("appointment_number", name="uq_appointments_appointment_number"),
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint("duration_minutes > 0", name="appointments_duration_check"),
    CheckConstraint("appointment_end_at > appointment_at", name="appointments_window_check"),
    CheckConstraint("patient_age BETWEEN 0 AND 150", name="appointments_patient_age_check"),
    Index("idx_appointments_provider_window", "provider_id", "appointment_at"),
    Index("idx_appointments_user_id", "user_id"),
)

# Storage-level double-booking guard: no two live appointments of one provider overlap.
# Needs the btree_gist extension for the UUID equality operator.
NO_OVERLAP_CONSTRAINT = "appointments_no_overlap"

create_no_overlap_constraint = DDL(
    f"""
    ALTER TABLE appointments
    ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT}
    EXCLUDE USING gist (
        provider_id WITH =,
        tstzrange(appointment_at, appointment_end_at, '[)') WITH &&
    )
    WHERE (status <> 'cancelled')
    """
)

event.listen(
    appointments,
    "after_create",
    create_no_overlap_constraint.execute_if(dialect="postgresql"),
)
