# agenda/db/models/practice_settings.py

from __future__ import annotations
from decimal import Decimal
from typing import Any
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from agenda.db.session import Base

class PracticeSettings(Base):
    __tablename__ = "practice_settings"

    owner_id: Mapped[str] = mapped_column(sa.String(64), primary_key=True)

    standard_invoice: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2))
    standard_cash: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2))
    machine_invoice: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2))
    machine_cash: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2))
    auto_apply_prices: Mapped[bool | None] = mapped_column(sa.Boolean, server_default=sa.true())

    # Older clients wrote prices under other key shapes; kept verbatim
    extra: Mapped[dict[str, Any] | None] = mapped_column(sa.JSON)
