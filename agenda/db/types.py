# agenda/db/types.py

from __future__ import annotations
from datetime import datetime, timezone

import sqlalchemy as sa

class UTCDateTime(sa.types.TypeDecorator):
    """
    Timezone-aware datetime column that always hands back UTC.

    Postgres keeps the offset; SQLite drops it, so naive values read back
    are tagged as UTC. Naive values written are rejected: callers must
    resolve wall time to an instant first.
    """

    impl = sa.DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored; attach a timezone")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
