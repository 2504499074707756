# agenda/db/models/appointment.py

from __future__ import annotations
import uuid
from datetime import datetime, timezone
from decimal import Decimal
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from agenda.db.session import Base
from agenda.db.types import UTCDateTime

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.CheckConstraint("end_at > start_at", name="ck_appointments_end_after_start"),
        sa.CheckConstraint("amount IS NULL OR amount >= 0", name="ck_appointments_amount_non_negative"),
        sa.Index("ix_appointments_start_at", "start_at"),
        sa.Index("ix_appointments_patient_id", "patient_id"),
    )

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Soft reference: patient records live outside the scheduling core
    patient_id: Mapped[str | None] = mapped_column(sa.String(64))

    # Stored as timezone-aware UTC
    start_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    status: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="booked", server_default="booked")
    is_paid: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())

    location: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="studio", server_default="studio")
    clinic_site: Mapped[str | None] = mapped_column(sa.String(120))
    domicile_address: Mapped[str | None] = mapped_column(sa.String(255))

    treatment_type: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="seduta", server_default="seduta")
    price_type: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="invoiced", server_default="invoiced")
    amount: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2))

    calendar_note: Mapped[str | None] = mapped_column(sa.Text)
    reminder_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime())
    whatsapp_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime())

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Appointment {self.id} {self.start_at.isoformat()} {self.status}>"
