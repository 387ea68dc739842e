import sqlite3

from booking.database import init_db


def _columns(db_path, table):
    conn = sqlite3.connect(str(db_path))
    cols = [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]
    conn.close()
    return cols


def test_init_db_is_idempotent(tmp_data):
    db_path = tmp_data / "booking.sqlite"
    init_db(db_path)
    init_db(db_path)
    assert "ignore_expired" in _columns(db_path, "jobs")
    assert "not_get_nighttime" in _columns(db_path, "user_meta")


def test_init_db_upgrades_user_meta_without_nighttime_flag(tmp_data):
    db_path = tmp_data / "booking.sqlite"
    conn = sqlite3.connect(str(db_path))
    conn.executescript("""
        CREATE TABLE users (id TEXT PRIMARY KEY, name TEXT NOT NULL, email TEXT NOT NULL UNIQUE,
                            user_type TEXT NOT NULL, status INTEGER NOT NULL DEFAULT 1,
                            created_at TEXT NOT NULL);
        CREATE TABLE user_meta (user_id TEXT PRIMARY KEY, consumer_type TEXT, customer_type TEXT,
                                city TEXT, translator_type TEXT, gender TEXT, translator_level TEXT,
                                town TEXT, not_get_notification TEXT NOT NULL DEFAULT 'no',
                                not_get_emergency TEXT NOT NULL DEFAULT 'no');
        INSERT INTO users VALUES ('u1', 'Tolk', 't@example.com', 'translator', 1, '2026-01-01T00:00:00Z');
        INSERT INTO user_meta (user_id, translator_type) VALUES ('u1', 'volunteer');
    """)
    conn.close()

    init_db(db_path)

    conn = sqlite3.connect(str(db_path))
    flag = conn.execute("SELECT not_get_nighttime FROM user_meta WHERE user_id = 'u1'").fetchone()[0]
    conn.close()
    assert flag == "no"
