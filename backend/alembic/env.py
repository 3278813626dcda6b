import importlib
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.core.config import settings
from app.db.base import Base

# every table the ledger reads has to be on Base.metadata before autogenerate
MODEL_MODULES = (
    "project",
    "worker",
    "material",
    "fund_transfer",
    "worker_attendance",
    "transportation_expense",
    "worker_transfer",
    "worker_misc_expense",
    "material_purchase",
    "project_fund_transfer",
)
for name in MODEL_MODULES:
    importlib.import_module(f"app.models.{name}")

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# configparser treats % as interpolation
config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=settings.database_url.startswith("sqlite"),
        **kwargs,
    )


def run_offline() -> None:
    _configure(url=settings.database_url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
