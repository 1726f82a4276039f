from __future__ import annotations

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

import homely
from homely.cli.__main__ import main as cli_main
from homely.cli.seed_demo import seed_demo
from homely.db import Base, SessionLocal
from homely.models import User


def _load_revision(name: str):
    path = Path(homely.__file__).parent / "alembic" / "versions" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"homely_rev_{name}", path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _run(engine, fn):
    with engine.begin() as conn:
        ctx = MigrationContext.configure(conn)
        with Operations.context(ctx):
            fn()


def test_initial_migration_matches_models(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    rev = _load_revision("0001_init")
    assert rev.down_revision is None

    _run(engine, rev.upgrade)

    insp = inspect(engine)
    assert set(Base.metadata.tables) <= set(insp.get_table_names())
    for name, table in Base.metadata.tables.items():
        migrated = {c["name"] for c in insp.get_columns(name)}
        assert migrated == {c.name for c in table.columns}, name

    _run(engine, rev.downgrade)
    assert inspect(engine).get_table_names() == []


def test_seed_demo_is_idempotent():
    first = seed_demo()
    second = seed_demo()
    assert first == second
    assert len(first.users) == 5
    assert len(first.unit_ids) == 2

    db = SessionLocal()
    try:
        roles = sorted(u.role for u in db.query(User).all())
    finally:
        db.close()
    assert roles == ["admin", "landlord", "tenant", "workman", "workman"]


def test_cli_commands(capsys):
    cli_main(["init-db"])
    assert "init-db" in capsys.readouterr().out

    cli_main(["seed-demo", "--domain", "example.test"])
    out = capsys.readouterr().out
    assert "landlord@example.test" in out
