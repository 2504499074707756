# agenda/db/models/patient.py

from __future__ import annotations
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from agenda.db.session import Base

class Patient(Base):
    """Read-only view of the patient registry; the core never writes it."""

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(sa.String(64), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(sa.String(120))
    last_name: Mapped[str | None] = mapped_column(sa.String(120))
    phone: Mapped[str | None] = mapped_column(sa.String(32))

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()
