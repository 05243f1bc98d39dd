# alembic/env.py

import sys
import os
from logging.config import fileConfig
from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from alembic import context
from dotenv import load_dotenv


# --- Path Handling ---
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, PROJECT_ROOT)

# Load the .env file before the settings are read
DOTENV_PATH = os.path.join(PROJECT_ROOT, ".env")
load_dotenv(DOTENV_PATH)

# --- Model Imports ---
from app.data.database import Base
from app.models.database_models.unique_message import UniqueMessage
from app.models.database_models.message_feed import MessageFeed
from app.models.database_models.message_score import MessageScore
from app.models.database_models.synth_data import SynthData

from app.core.config import settings

# --- Alembic Configuration ---
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def sync_database_url(database_url: str) -> str:
    """Migrations run on a synchronous driver, so drop the asyncpg suffix."""
    url = make_url(database_url)
    if url.drivername == "postgresql+asyncpg":
        url = url.set(drivername="postgresql+psycopg2")
    return url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url") or sync_database_url(settings.DATABASE_URL)
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    if settings.DATABASE_URL is None:
        raise ValueError("DATABASE_URL environment variable not set.")
    connectable = create_engine(sync_database_url(settings.DATABASE_URL))
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
