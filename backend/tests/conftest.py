import itertools
import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from booking.database import get_db, init_db
from booking.dependencies import get_notifier
from booking.main import app
from booking.models import (
    Feedback,
    Job,
    Language,
    TranslatorAssignment,
    User,
    UserMeta,
    users_blacklist,
)
from booking.services.notification_service import DeliveryReceipt
from booking.utils.timeutil import now_utc, to_iso

NOW = now_utc()


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def send(self, recipients, job_id, payload, message, delay):
        self.calls.append({
            "recipients": list(recipients),
            "job_id": job_id,
            "payload": payload,
            "message": message,
            "delay": delay,
        })
        return DeliveryReceipt(job_id=job_id, recipients=list(recipients), delayed=delay)


class Seeder:
    """Inserts rows through the test session and commits each one."""

    def __init__(self, db):
        self.db = db
        self._tick = itertools.count()

    def _stamp(self) -> str:
        # distinct, increasing created_at so enumeration order is predictable
        return to_iso(NOW - timedelta(days=30) + timedelta(seconds=next(self._tick)))

    def _save(self, *objs):
        self.db.add_all(objs)
        self.db.commit()

    def language(self, name="Swedish") -> Language:
        lang = Language(id=str(uuid.uuid4()), language=name, active=1)
        self._save(lang)
        return lang

    def customer(self, consumer_type="paid", city="Stockholm", customer_type="private", email=None) -> User:
        user_id = str(uuid.uuid4())
        user = User(
            id=user_id,
            name="Customer",
            email=email or f"customer-{user_id[:8]}@example.com",
            user_type="customer",
            status=1,
            created_at=self._stamp(),
        )
        meta = UserMeta(user_id=user_id, consumer_type=consumer_type, city=city, customer_type=customer_type)
        self._save(user, meta)
        return user

    def translator(
        self,
        languages,
        translator_type="volunteer",
        gender="female",
        level="certified",
        town="Stockholm",
        status=1,
        email=None,
        **flags,
    ) -> User:
        user_id = str(uuid.uuid4())
        user = User(
            id=user_id,
            name="Translator",
            email=email or f"translator-{user_id[:8]}@example.com",
            user_type="translator",
            status=status,
            created_at=self._stamp(),
        )
        user.languages = list(languages)
        meta = UserMeta(
            user_id=user_id,
            translator_type=translator_type,
            gender=gender,
            translator_level=level,
            town=town,
            not_get_notification=flags.get("not_get_notification", "no"),
            not_get_emergency=flags.get("not_get_emergency", "no"),
            not_get_nighttime=flags.get("not_get_nighttime", "no"),
        )
        self._save(user, meta)
        return user

    def job(self, customer, language, due=None, **fields) -> Job:
        due = due or NOW + timedelta(days=2)
        values = dict(
            id=str(uuid.uuid4()),
            user_id=customer.id,
            from_language_id=language.id,
            immediate="no",
            due=to_iso(due),
            duration=60,
            status="pending",
            job_type="unpaid",
            customer_phone_type="yes",
            customer_physical_type="no",
            will_expire_at=to_iso(due - timedelta(hours=48)),
            created_at=self._stamp(),
            updated_at=self._stamp(),
        )
        values.update(fields)
        job = Job(**values)
        self._save(job)
        return job

    def assignment(self, job, translator, cancel_at=None, completed_at=None) -> TranslatorAssignment:
        stamp = self._stamp()
        rel = TranslatorAssignment(
            id=str(uuid.uuid4()),
            job_id=job.id,
            user_id=translator.id,
            will_expire_at=job.will_expire_at,
            cancel_at=cancel_at,
            completed_at=completed_at,
            created_at=stamp,
            updated_at=stamp,
        )
        self._save(rel)
        return rel

    def feedback(self, job, rating) -> Feedback:
        fb = Feedback(id=str(uuid.uuid4()), job_id=job.id, rating=rating, created_at=self._stamp())
        self._save(fb)
        return fb

    def blacklist(self, customer, translator):
        self.db.execute(users_blacklist.insert().values(user_id=customer.id, translator_id=translator.id))
        self.db.commit()


@pytest.fixture
def tmp_data(tmp_path):
    data_path = tmp_path / "TestBooking"
    data_path.mkdir()
    return data_path


@pytest.fixture
def test_db(tmp_data):
    db_path = tmp_data / "booking.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    init_db(db_path)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestSession
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def db(test_db):
    session = test_db()
    yield session
    session.close()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(test_db, notifier):
    app.dependency_overrides[get_notifier] = lambda: notifier
    return TestClient(app)
