import json
from datetime import datetime, timezone

import httpx
import pytest

from booking.config import Settings
from booking.errors import NotificationDeliveryError
from booking.services.notification_service import (
    PushConfig,
    PushNotifier,
    build_push_config,
    build_user_filters,
    pick_sound,
)
from booking.utils.timeutil import next_business_time

CONFIG = PushConfig(app_id="app-123", api_key="secret", environment="dev", api_url="https://push.test/notifications")
PAYLOAD = {"immediate": "no", "notification_type": "suitable_job", "language": "Swedish"}


def _at(hour, minute=0):
    moment = datetime(2026, 3, 2, hour, minute, tzinfo=timezone.utc)
    return lambda: moment


def _notifier(handler, clock=_at(12)):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PushNotifier(CONFIG, client=client, clock=clock)


class Capture:
    def __init__(self, status=200, body=None):
        self.requests = []
        self.status = status
        self.body = body if body is not None else {"id": "notif-1", "recipients": 2}

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def fields(self):
        return json.loads(self.requests[-1].content)


def test_user_filters_are_or_joined():
    assert build_user_filters(["a", "b"]) == [
        {"field": "tag", "key": "user_id", "relation": "=", "value": "a"},
        {"operator": "OR"},
        {"field": "tag", "key": "user_id", "relation": "=", "value": "b"},
    ]
    assert build_user_filters([]) == []


def test_sound_depends_on_urgency():
    assert pick_sound(PAYLOAD) == "normal_booking"
    assert pick_sound({**PAYLOAD, "immediate": "yes"}) == "emergency_booking"


class TestSend:
    def test_immediate_send(self):
        capture = Capture()
        receipt = _notifier(capture).send(["t1", "t2"], "job-1", PAYLOAD, "New booking", delay=False)

        request = capture.requests[0]
        assert request.method == "POST"
        assert str(request.url) == CONFIG.api_url
        assert request.headers["Authorization"] == "Basic secret"

        fields = capture.fields
        assert fields["app_id"] == "app-123"
        assert fields["contents"] == {"en": "New booking"}
        assert fields["data"]["job_id"] == "job-1"
        assert fields["android_sound"] == "normal_booking"
        assert fields["ios_sound"] == "normal_booking.mp3"
        assert len(fields["filters"]) == 3
        assert "send_after" not in fields

        assert receipt.notification_id == "notif-1"
        assert receipt.recipients == ["t1", "t2"]
        assert not receipt.skipped

    def test_delayed_send_at_night_waits_for_morning(self):
        capture = Capture()
        receipt = _notifier(capture, clock=_at(22, 40)).send(["t1"], "job-1", PAYLOAD, "m", delay=True)

        assert capture.fields["send_after"] == "2026-03-03 08:00:00 GMT+0000"
        assert receipt.send_after == "2026-03-03 08:00:00 GMT+0000"
        assert receipt.delayed

    def test_delayed_send_early_morning_same_day(self):
        capture = Capture()
        _notifier(capture, clock=_at(5, 10)).send(["t1"], "job-1", PAYLOAD, "m", delay=True)
        assert capture.fields["send_after"] == "2026-03-02 08:00:00 GMT+0000"

    def test_empty_recipients_are_not_posted(self):
        capture = Capture()
        receipt = _notifier(capture).send([], "job-1", PAYLOAD, "m", delay=False)
        assert capture.requests == []
        assert receipt.skipped

    def test_http_error_raises_delivery_error(self):
        capture = Capture(status=500, body={"errors": ["down"]})
        with pytest.raises(NotificationDeliveryError):
            _notifier(capture).send(["t1"], "job-1", PAYLOAD, "m", delay=False)

    def test_transport_error_raises_delivery_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(NotificationDeliveryError) as exc_info:
            _notifier(handler).send(["t1"], "job-1", PAYLOAD, "m", delay=False)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestConfig:
    def test_dev_credentials_by_default(self, tmp_path):
        settings = Settings(
            data_path=tmp_path,
            onesignal_dev_app_id="dev-app",
            onesignal_dev_api_key="dev-key",
            onesignal_prod_app_id="prod-app",
            onesignal_prod_api_key="prod-key",
        )
        config = build_push_config(settings)
        assert (config.app_id, config.api_key, config.environment) == ("dev-app", "dev-key", "dev")

    def test_prod_credentials(self, tmp_path):
        settings = Settings(
            data_path=tmp_path,
            app_env="prod",
            onesignal_prod_app_id="prod-app",
            onesignal_prod_api_key="prod-key",
        )
        config = build_push_config(settings)
        assert (config.app_id, config.api_key, config.environment) == ("prod-app", "prod-key", "prod")

    def test_settings_read_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BOOKING_DATA_PATH", str(tmp_path))
        monkeypatch.setenv("BOOKING_BUSINESS_HOURS_START", "7")
        settings = Settings()
        assert settings.db_path == tmp_path / "booking.sqlite"
        assert build_push_config(settings).business_hours_start == 7


class TestNextBusinessTime:
    def test_inside_window_is_unchanged(self):
        moment = _at(9, 30)()
        assert next_business_time(moment, 8, 20) == moment

    def test_after_close_moves_to_next_day(self):
        assert next_business_time(_at(20)(), 8, 20) == datetime(2026, 3, 3, 8, 0, tzinfo=timezone.utc)

    def test_before_open_moves_to_same_day(self):
        assert next_business_time(_at(0, 1)(), 8, 20) == datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
