from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[3]

TABLES = {"users", "patients", "appointments", "clinical_notes", "prescriptions"}


@pytest.fixture
def alembic_config(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrations.db'}"
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", url)
    # Leave pytest's log capture alone
    config.attributes["configure_logger"] = False
    return config, url


def test_upgrade_creates_schema_and_downgrade_removes_it(alembic_config):
    config, url = alembic_config

    command.upgrade(config, "head")
    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert TABLES <= set(inspector.get_table_names())
        patient_columns = {c["name"] for c in inspector.get_columns("patients")}
        assert {"first_name", "last_name", "status", "created_at", "updated_at"} <= patient_columns
        assert any(index["unique"] for index in inspector.get_indexes("users"))
    finally:
        engine.dispose()

    command.downgrade(config, "base")
    engine = create_engine(url)
    try:
        assert not TABLES & set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
