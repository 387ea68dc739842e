"""
Push delivery to translator devices through a OneSignal-compatible API.

Recipients are addressed by the `user_id` tag each device registers with.
Delayed sends are handed to the provider with a `send_after` instant; nothing
here sleeps or schedules.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import httpx

from booking.config import Settings
from booking.errors import NotificationDeliveryError
from booking.utils.timeutil import next_business_time, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushConfig:
    app_id: str
    api_key: str
    environment: str
    api_url: str = "https://onesignal.com/api/v1/notifications"
    timeout_seconds: float = 10.0
    business_hours_start: int = 8
    business_hours_end: int = 20


def build_push_config(settings: Settings) -> PushConfig:
    env = "prod" if settings.app_env == "prod" else "dev"
    return PushConfig(
        app_id=getattr(settings, f"onesignal_{env}_app_id"),
        api_key=getattr(settings, f"onesignal_{env}_api_key"),
        environment=env,
        api_url=settings.onesignal_api_url,
        timeout_seconds=settings.push_timeout_seconds,
        business_hours_start=settings.business_hours_start,
        business_hours_end=settings.business_hours_end,
    )


@dataclass
class DeliveryReceipt:
    job_id: str
    recipients: list[str]
    delayed: bool
    notification_id: str | None = None
    send_after: str | None = None
    skipped: bool = False
    response: dict = field(default_factory=dict)


def build_user_filters(recipients: list[str]) -> list[dict]:
    filters: list[dict] = []
    for user_id in recipients:
        if filters:
            filters.append({"operator": "OR"})
        filters.append({"field": "tag", "key": "user_id", "relation": "=", "value": user_id})
    return filters


def pick_sound(payload: dict) -> str:
    if payload.get("notification_type") == "suitable_job" and payload.get("immediate") == "no":
        return "normal_booking"
    return "emergency_booking"


class PushNotifier:
    def __init__(
        self,
        config: PushConfig,
        client: httpx.Client | None = None,
        log: logging.Logger | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.config = config
        self._client = client
        self.log = log or logger
        self.clock = clock

    def _build_fields(self, recipients: list[str], job_id: str, payload: dict, message: str, delay: bool) -> dict:
        data = {**payload, "job_id": job_id}
        sound = pick_sound(data)
        fields = {
            "app_id": self.config.app_id,
            "filters": build_user_filters(recipients),
            "data": data,
            "headings": {"en": "Interpreter booking"},
            "contents": {"en": message},
            "ios_badgeType": "Increase",
            "ios_badgeCount": 1,
            "android_sound": sound,
            "ios_sound": f"{sound}.mp3",
        }
        if delay:
            send_after = next_business_time(
                self.clock(), self.config.business_hours_start, self.config.business_hours_end
            )
            fields["send_after"] = send_after.strftime("%Y-%m-%d %H:%M:%S GMT+0000")
        return fields

    def send(self, recipients: list[str], job_id: str, payload: dict, message: str, delay: bool) -> DeliveryReceipt:
        if not recipients:
            self.log.info("Push skipped for job %s: no recipients (delay=%s)", job_id, delay)
            return DeliveryReceipt(job_id=job_id, recipients=[], delayed=delay, skipped=True)

        fields = self._build_fields(recipients, job_id, payload, message, delay)
        self.log.info("Push notification initiated for job %s to %d users (delay=%s)", job_id, len(recipients), delay)

        headers = {"Authorization": f"Basic {self.config.api_key}"}
        client = self._client or httpx.Client(timeout=self.config.timeout_seconds)
        try:
            response = client.post(self.config.api_url, json=fields, headers=headers)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise NotificationDeliveryError(f"Push delivery failed for job {job_id}: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

        self.log.info("Push notification sent for job %s: %s", job_id, body.get("id"))
        return DeliveryReceipt(
            job_id=job_id,
            recipients=list(recipients),
            delayed=delay,
            notification_id=body.get("id"),
            send_after=fields.get("send_after"),
            response=body,
        )
