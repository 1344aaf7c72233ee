from logging.config import fileConfig
from sqlalchemy import create_engine, pool
from alembic import context

# Base, the app engine and every model, so autogenerate sees the full schema
from mysterybox.platform.database import Base, engine as app_engine
from mysterybox.models import *  # noqa: F401, F403

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Same URL resolution as the app (DATABASE_PUBLIC_URL, DATABASE_URL, .env); alembic.ini is unused
database_url = app_engine.url.render_as_string(hide_password=False)
# SQLite cannot ALTER constraints in place
render_as_batch = app_engine.dialect.name == "sqlite"


def run_migrations_offline() -> None:
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=render_as_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(database_url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
