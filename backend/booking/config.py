from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_path: Path = Path.home() / "BookingDispatch"
    api_prefix: str = "/api/v1"
    host: str = "127.0.0.1"
    port: int = 8000
    # "prod" selects the production push credentials, anything else dev.
    app_env: str = "dev"
    onesignal_api_url: str = "https://onesignal.com/api/v1/notifications"
    onesignal_prod_app_id: str = ""
    onesignal_prod_api_key: str = ""
    onesignal_dev_app_id: str = ""
    onesignal_dev_api_key: str = ""
    push_timeout_seconds: float = 10.0
    notify_empty_batches: bool = True
    # Delayed pushes are held until the next window start (UTC hours).
    business_hours_start: int = 8
    business_hours_end: int = 20
    immediate_due_minutes: int = 5
    page_size: int = 15

    @property
    def db_path(self) -> Path:
        return self.data_path / "booking.sqlite"

    model_config = {"env_prefix": "BOOKING_"}


settings = Settings()
