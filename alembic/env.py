"""Migration environment for the users table; the URL comes from accounts settings."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy.pool import NullPool

os.environ.setdefault("APP_ENV", "dev")
from accounts.core.config import settings  # noqa: E402
from accounts.core.database import make_engine  # noqa: E402
from accounts.models import Base  # noqa: E402

config = context.config
# alembic.ini may omit logging sections; fileConfig raises KeyError then.
if config.config_file_name is not None:
    try:
        fileConfig(config.config_file_name)
    except KeyError:
        pass

DATABASE_URL = settings.DATABASE_URL
# SQLite cannot ALTER most columns in place.
BATCH = DATABASE_URL.startswith("sqlite")


def offline() -> None:
    """Emit SQL to stdout without a connection."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=BATCH,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def online() -> None:
    engine = make_engine(DATABASE_URL, poolclass=NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=Base.metadata,
            render_as_batch=BATCH,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    offline()
else:
    online()
