from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from srms.scripts import check_db_connectivity as connectivity_script
from srms.scripts import insert_test_student as insert_script
from srms.services.student_probe import STUDENT_COLUMNS, insert_test_student
from srms.tests._fakes import FakeConnection, FakeEngine, FakeResult


@pytest.mark.asyncio
async def test_insert_uses_bound_parameters() -> None:
    def handler(sql, params):  # noqa: ANN001
        return FakeResult(rows=[{"id": 42, **params}])

    connection = FakeConnection(handler)

    row = await insert_test_student(connection, {"name": "Asha Rai", "roll_no": "7"})

    sql, params = connection.executed[0]
    assert sql.startswith("INSERT INTO students (student_system_id, school_id")
    assert sql.endswith("RETURNING *")
    assert "Asha Rai" not in sql
    assert set(params) == set(STUDENT_COLUMNS)
    assert row["id"] == 42
    assert row["name"] == "Asha Rai"


def _now_handler(sql, params):  # noqa: ANN001
    if "NOW()" in sql:
        return FakeResult(scalar="2024-01-01T00:00:00+00:00")
    return FakeResult(scalar="PostgreSQL 15.4")


@pytest.mark.asyncio
async def test_connectivity_script_ok(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    engine = FakeEngine(FakeConnection(_now_handler))
    monkeypatch.setattr(connectivity_script, "create_pool", lambda config: engine)
    monkeypatch.setenv("DB_PASSWORD", "hunter2")
    monkeypatch.delenv("SUPABASE_DB_URL", raising=False)
    monkeypatch.setenv("ENV_FILE", "/nonexistent/srms.env")

    exit_code = await connectivity_script.run()

    out = capsys.readouterr().out
    assert exit_code == 0
    assert '"status": "ok"' in out
    assert "hunter2" not in out
    assert engine.disposed is True


@pytest.mark.asyncio
async def test_connectivity_script_exits_one_when_unreachable(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    engine = FakeEngine(fail_with=ConnectionRefusedError("Connect call failed"))
    monkeypatch.setattr(connectivity_script, "create_pool", lambda config: engine)
    monkeypatch.setenv("ENV_FILE", "/nonexistent/srms.env")

    assert await connectivity_script.run() == 1
    assert '"status": "error"' in capsys.readouterr().out


def _insert_handler(sql, params):  # noqa: ANN001
    if sql.startswith("INSERT INTO students"):
        return FakeResult(rows=[{"id": 7, **params}])
    return _now_handler(sql, params)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("argv", "expected_state"),
    [([], "rolled_back"), (["--commit"], "committed")],
)
async def test_insert_script_rolls_back_unless_committed(
    monkeypatch: pytest.MonkeyPatch, argv: list[str], expected_state: str
) -> None:
    connection = FakeConnection(_insert_handler)
    engine = FakeEngine(connection)
    monkeypatch.setattr(insert_script, "load_env_profile", lambda: None)
    monkeypatch.setattr(insert_script, "create_pool", lambda config: engine)

    assert await insert_script.run(argv) == 0
    assert [t.state for t in connection.transactions] == [expected_state]
    assert engine.disposed is True


@pytest.mark.asyncio
async def test_insert_script_exits_one_on_database_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def handler(sql, params):  # noqa: ANN001
        if sql.startswith("INSERT INTO students"):
            raise IntegrityError(sql, params, Exception("duplicate key value"))
        return _now_handler(sql, params)

    engine = FakeEngine(FakeConnection(handler))
    monkeypatch.setattr(insert_script, "load_env_profile", lambda: None)
    monkeypatch.setattr(insert_script, "create_pool", lambda config: engine)

    assert await insert_script.run([]) == 1
    assert engine.disposed is True


@pytest.mark.asyncio
async def test_connectivity_script_rejects_malformed_connection_string(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _unexpected(config):  # noqa: ANN001
        raise AssertionError("no connection should be attempted")

    monkeypatch.setattr(connectivity_script, "create_pool", _unexpected)
    monkeypatch.setenv("ENV_FILE", "/nonexistent/srms.env")
    monkeypatch.setenv("SUPABASE_DB_URL", "not a url")

    assert await connectivity_script.run() == 1
    assert "SUPABASE_DB_URL is not a valid" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_insert_script_rejects_malformed_connection_string(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _unexpected(config):  # noqa: ANN001
        raise AssertionError("no connection should be attempted")

    monkeypatch.setattr(insert_script, "load_env_profile", lambda: None)
    monkeypatch.setattr(insert_script, "create_pool", _unexpected)
    monkeypatch.setenv("SUPABASE_DB_URL", "postgresql://u:p@db.example.supabase.co:abc/postgres")

    assert await insert_script.run([]) == 1
