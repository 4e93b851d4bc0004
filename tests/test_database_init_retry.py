from types import SimpleNamespace

import pytest

from nephrowatch import database


class _FakeConn:
    def __init__(self) -> None:
        self.synced = []

    async def run_sync(self, fn) -> None:
        self.synced.append(fn)


class _FakeBeginFactory:
    def __init__(self, fail_times: int) -> None:
        self.fail_times = fail_times
        self.calls = 0
        self.conn = _FakeConn()

    def __call__(self):
        self.calls += 1
        call_number = self.calls
        factory = self

        class _Ctx:
            async def __aenter__(self_nonlocal):
                if call_number <= factory.fail_times:
                    raise ConnectionError("db not ready")
                return factory.conn

            async def __aexit__(self_nonlocal, exc_type, exc, tb):
                return False

        return _Ctx()


@pytest.fixture()
def fast_retries(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(database.settings, "database_init_retry_delay_seconds", 0.01)

    async def _noop_sleep(_seconds: float) -> None:
        return None

    monkeypatch.setattr(database.asyncio, "sleep", _noop_sleep)
    monkeypatch.setattr(database.settings, "seed_default_thresholds_on_startup", False)


@pytest.mark.anyio
async def test_init_db_retries_until_success(monkeypatch: pytest.MonkeyPatch, fast_retries) -> None:
    begin_factory = _FakeBeginFactory(fail_times=2)
    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=begin_factory))
    monkeypatch.setattr(database.settings, "debug", False)
    monkeypatch.setattr(database.settings, "database_init_retries", 3)

    await database.init_db()

    assert begin_factory.calls == 3
    assert begin_factory.conn.synced == []


@pytest.mark.anyio
async def test_init_db_creates_tables_in_debug(monkeypatch: pytest.MonkeyPatch, fast_retries) -> None:
    begin_factory = _FakeBeginFactory(fail_times=0)
    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=begin_factory))
    monkeypatch.setattr(database.settings, "debug", True)

    await database.init_db()

    assert begin_factory.conn.synced == [database.Base.metadata.create_all]


@pytest.mark.anyio
async def test_init_db_raises_after_retries_exhausted(
    monkeypatch: pytest.MonkeyPatch, fast_retries
) -> None:
    begin_factory = _FakeBeginFactory(fail_times=10)
    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=begin_factory))
    monkeypatch.setattr(database.settings, "debug", False)
    monkeypatch.setattr(database.settings, "database_init_retries", 1)

    with pytest.raises(ConnectionError, match="db not ready"):
        await database.init_db()

    assert begin_factory.calls == 2


@pytest.mark.anyio
async def test_init_db_bootstraps_thresholds_once_ready(
    monkeypatch: pytest.MonkeyPatch, fast_retries
) -> None:
    begin_factory = _FakeBeginFactory(fail_times=1)
    calls = []

    async def _bootstrap() -> int:
        calls.append(begin_factory.calls)
        return 2

    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=begin_factory))
    monkeypatch.setattr(database, "bootstrap_thresholds", _bootstrap)
    monkeypatch.setattr(database.settings, "debug", False)
    monkeypatch.setattr(database.settings, "database_init_retries", 2)
    monkeypatch.setattr(database.settings, "seed_default_thresholds_on_startup", True)

    await database.init_db()

    # Seeding runs after the successful connection attempt, exactly once.
    assert calls == [2]


@pytest.mark.anyio
async def test_init_db_survives_bootstrap_failure(
    monkeypatch: pytest.MonkeyPatch, fast_retries, caplog
) -> None:
    async def _bootstrap() -> int:
        raise RuntimeError("alert_thresholds table missing")

    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=_FakeBeginFactory(fail_times=0)))
    monkeypatch.setattr(database, "bootstrap_thresholds", _bootstrap)
    monkeypatch.setattr(database.settings, "debug", False)
    monkeypatch.setattr(database.settings, "seed_default_thresholds_on_startup", True)

    await database.init_db()

    assert "Failed to bootstrap default thresholds" in caplog.text


@pytest.mark.anyio
async def test_init_db_skips_bootstrap_when_disabled(
    monkeypatch: pytest.MonkeyPatch, fast_retries
) -> None:
    async def _bootstrap() -> int:
        raise AssertionError("bootstrap should not run")

    monkeypatch.setattr(database, "engine", SimpleNamespace(begin=_FakeBeginFactory(fail_times=0)))
    monkeypatch.setattr(database, "bootstrap_thresholds", _bootstrap)
    monkeypatch.setattr(database.settings, "debug", False)

    await database.init_db()
