from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


def _config() -> Config:
    # no ini file, so env.py leaves logging alone
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    return config


def test_upgrade_and_downgrade(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'schema.db'}"
    monkeypatch.setenv("ALEMBIC_DATABASE_URL", url)
    engine = create_engine(url)

    command.upgrade(_config(), "head")
    inspector = inspect(engine)
    assert {"users", "submissions", "progress"} <= set(inspector.get_table_names())

    unique_columns = {
        tuple(ix["column_names"]) for ix in inspector.get_indexes("users") if ix["unique"]
    }
    assert {("username",), ("email",)} <= unique_columns
    for table in ("submissions", "progress"):
        [fk] = inspector.get_foreign_keys(table)
        assert fk["referred_table"] == "users"
        assert fk["options"].get("ondelete") == "CASCADE"

    command.downgrade(_config(), "base")
    assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    engine.dispose()
