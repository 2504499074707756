"""
Alembic environment for the agenda schema.

The URL comes from agenda settings (DATABASE_URL or the POSTGRES_* parts),
never from alembic.ini. Pass `-x url=...` to migrate another database.
"""
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

# `alembic` is run from the project root
sys.path.insert(0, os.getcwd())

from agenda.core.config import settings  # noqa: E402
import agenda.db.base  # noqa: E402,F401
from agenda.db.session import Base  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

def migration_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.sync_db_uri

def configure(**kwargs) -> None:
    url = kwargs.pop("url", None)
    connection = kwargs.get("connection")
    dialect = connection.dialect.name if connection is not None else url.split(":", 1)[0]
    context.configure(
        url=url,
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER constraints in place
        render_as_batch=dialect.startswith("sqlite"),
        **kwargs,
    )

if context.is_offline_mode():
    configure(url=migration_url(), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    connectable = create_engine(migration_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
