from codetrail.db.session import engine_options


def test_sqlite_shares_connection_across_threads():
    options = engine_options("sqlite+aiosqlite://")
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_pre_ping" not in options


def test_postgres_pings_pooled_connections():
    options = engine_options("postgresql+asyncpg://codetrail:secret@db:5432/codetrail")
    assert options["pool_pre_ping"] is True
    assert "connect_args" not in options
