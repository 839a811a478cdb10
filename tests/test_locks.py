from unittest.mock import AsyncMock, MagicMock

import pytest
from rolloutscorer.core.errors import BlockedError, ExitCode
from rolloutscorer.db.locks import advisory_lock


def mock_engine(dialect="postgresql", acquired=True):
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=MagicMock(scalar=MagicMock(return_value=acquired)))
    connect = MagicMock()
    connect.__aenter__ = AsyncMock(return_value=conn)
    connect.__aexit__ = AsyncMock(return_value=False)

    engine = MagicMock()
    engine.dialect.name = dialect
    engine.connect.return_value = connect
    return engine, conn


def executed_sql(conn):
    return [str(call.args[0]) for call in conn.execute.call_args_list]


@pytest.mark.asyncio
async def test_lock_acquired_and_released():
    engine, conn = mock_engine()

    async with advisory_lock(engine, 42):
        assert executed_sql(conn) == ["SELECT pg_try_advisory_lock(:key)"]

    assert executed_sql(conn)[-1] == "SELECT pg_advisory_unlock(:key)"
    assert conn.execute.call_args.args[1] == {"key": 42}


@pytest.mark.asyncio
async def test_lock_released_when_body_fails():
    engine, conn = mock_engine()

    with pytest.raises(RuntimeError):
        async with advisory_lock(engine, 42):
            raise RuntimeError("cycle failed")

    assert executed_sql(conn)[-1] == "SELECT pg_advisory_unlock(:key)"


@pytest.mark.asyncio
async def test_lock_held_elsewhere_blocks():
    engine, conn = mock_engine(acquired=False)
    entered = False

    with pytest.raises(BlockedError) as exc_info:
        async with advisory_lock(engine, 42):
            entered = True

    assert not entered
    assert exc_info.value.exit_code == ExitCode.BLOCKED
    assert executed_sql(conn) == ["SELECT pg_try_advisory_lock(:key)"]


@pytest.mark.asyncio
async def test_non_postgres_dialect_is_not_locked():
    engine, _ = mock_engine(dialect="sqlite")

    async with advisory_lock(engine, 42):
        pass

    engine.connect.assert_not_called()
