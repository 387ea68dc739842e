import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from booking.config import settings


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


engine = get_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


SCHEMA_SQL = """\
-- ============================================================
-- USERS
-- ============================================================
CREATE TABLE IF NOT EXISTS users (
    id         TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    email      TEXT NOT NULL UNIQUE,
    user_type  TEXT NOT NULL
               CHECK(user_type IN ('customer','translator','superadmin')),
    status     INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_users_type_status ON users(user_type, status);

CREATE TABLE IF NOT EXISTS user_meta (
    user_id              TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
    consumer_type        TEXT,
    customer_type        TEXT,
    city                 TEXT,
    translator_type      TEXT,
    gender               TEXT,
    translator_level     TEXT,
    town                 TEXT,
    not_get_notification TEXT NOT NULL DEFAULT 'no',
    not_get_emergency    TEXT NOT NULL DEFAULT 'no',
    not_get_nighttime    TEXT NOT NULL DEFAULT 'no'
);

-- ============================================================
-- LANGUAGES
-- ============================================================
CREATE TABLE IF NOT EXISTS languages (
    id       TEXT PRIMARY KEY,
    language TEXT NOT NULL,
    active   INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS user_languages (
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    lang_id TEXT NOT NULL REFERENCES languages(id) ON DELETE CASCADE,
    PRIMARY KEY (user_id, lang_id)
);

CREATE TABLE IF NOT EXISTS users_blacklist (
    user_id       TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    translator_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    PRIMARY KEY (user_id, translator_id)
);

-- ============================================================
-- JOBS
-- ============================================================
CREATE TABLE IF NOT EXISTS jobs (
    id                     TEXT PRIMARY KEY,
    user_id                TEXT NOT NULL REFERENCES users(id),
    from_language_id       TEXT NOT NULL REFERENCES languages(id),
    immediate              TEXT NOT NULL DEFAULT 'no' CHECK(immediate IN ('yes','no')),
    due                    TEXT NOT NULL,
    duration               INTEGER NOT NULL,
    status                 TEXT NOT NULL DEFAULT 'pending'
                           CHECK(status IN ('pending','assigned','started','completed',
                                            'withdrawn_before_24','withdrawn_after_24',
                                            'timed_out','not_carried_out_by_customer')),
    gender                 TEXT CHECK(gender IN ('male','female')),
    certified              TEXT CHECK(certified IN ('normal','yes','law','health','both')),
    job_type               TEXT NOT NULL DEFAULT 'unpaid'
                           CHECK(job_type IN ('paid','rws','unpaid')),
    customer_phone_type    TEXT NOT NULL DEFAULT 'no',
    customer_physical_type TEXT NOT NULL DEFAULT 'no',
    will_expire_at         TEXT NOT NULL,
    b_created_at           TEXT,
    end_at                 TEXT,
    session_time           INTEGER,
    by_admin               TEXT NOT NULL DEFAULT 'no',
    admin_comments         TEXT,
    cust_16_hour_email     INTEGER NOT NULL DEFAULT 0,
    cust_48_hour_email     INTEGER NOT NULL DEFAULT 0,
    "ignore"               INTEGER NOT NULL DEFAULT 0,
    ignore_expired         INTEGER NOT NULL DEFAULT 0,
    ignore_feedback        INTEGER NOT NULL DEFAULT 0,
    ignore_physical        INTEGER NOT NULL DEFAULT 0,
    ignore_physical_phone  INTEGER NOT NULL DEFAULT 0,
    ignore_flagged         INTEGER NOT NULL DEFAULT 0,
    flagged                INTEGER NOT NULL DEFAULT 0,
    created_at             TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at             TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_user ON jobs(user_id);
CREATE INDEX IF NOT EXISTS idx_jobs_due ON jobs(due);
CREATE INDEX IF NOT EXISTS idx_jobs_will_expire ON jobs(will_expire_at);
CREATE INDEX IF NOT EXISTS idx_jobs_language ON jobs(from_language_id);

-- ============================================================
-- TRANSLATOR ASSIGNMENTS
-- ============================================================
CREATE TABLE IF NOT EXISTS translator_job_rel (
    id             TEXT PRIMARY KEY,
    job_id         TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    user_id        TEXT NOT NULL REFERENCES users(id),
    will_expire_at TEXT,
    cancel_at      TEXT,
    completed_at   TEXT,
    completed_by   TEXT,
    created_at     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_assignments_job ON translator_job_rel(job_id);
CREATE INDEX IF NOT EXISTS idx_assignments_user ON translator_job_rel(user_id);

-- ============================================================
-- FEEDBACK
-- ============================================================
CREATE TABLE IF NOT EXISTS feedback (
    id         TEXT PRIMARY KEY,
    job_id     TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    rating     INTEGER NOT NULL CHECK(rating BETWEEN 1 AND 5),
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_feedback_job ON feedback(job_id);
"""


MIGRATIONS = [
    # v0.2: nighttime push opt-out
    "ALTER TABLE user_meta ADD COLUMN not_get_nighttime TEXT NOT NULL DEFAULT 'no'",
]


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA_SQL)
    # Run migrations idempotently (ALTER TABLE fails if column exists)
    for migration in MIGRATIONS:
        try:
            conn.execute(migration)
            conn.commit()
        except sqlite3.OperationalError:
            pass  # column already exists
    conn.close()
