from reintro.utils.db import DatabaseManager


def test_connect_is_lazy_and_reused(tmp_path):
    db_mgr = DatabaseManager(tmp_path / "study.duckdb")
    assert db_mgr.conn is None

    conn = db_mgr.connect()
    assert db_mgr.connect() is conn, "Second connect() should reuse the open connection"
    assert conn.execute("SELECT 1").fetchone() == (1,)

    db_mgr.close()
    assert db_mgr.conn is None
    db_mgr.close()


def test_memory_limit_is_applied(tmp_path):
    db_mgr = DatabaseManager(str(tmp_path / "study.duckdb"), memory_limit="1GB")
    conn = db_mgr.connect()

    limit = conn.execute("SELECT current_setting('memory_limit')").fetchone()[0]
    assert limit not in (None, ""), "memory_limit should be set on the connection"
    db_mgr.close()


def test_memory_limit_unset_keeps_default(tmp_path):
    db_mgr = DatabaseManager(tmp_path / "study.duckdb", memory_limit="")
    conn = db_mgr.connect()
    assert conn.execute("SELECT 42").fetchone() == (42,)
    db_mgr.close()
