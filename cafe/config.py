from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class DrainStrategy(str, Enum):
    # Head of queue doubles as a connectivity probe, then the rest is fanned out best-effort.
    PROBE = "probe"
    # Each entry leaves the durable queue only after its own confirmed send.
    ONE_AT_A_TIME = "one_at_a_time"


class Settings(BaseSettings):
    remote_db_url: str = "https://moacoffee-9fa33-default-rtdb.asia-southeast1.firebasedatabase.app"
    log_level: str = "INFO"

    # Remote store
    request_timeout: float = 5.0

    # Sync engine
    poll_interval: float = 5.0
    bootstrap_retry_interval: float = 30.0
    drain_strategy: DrainStrategy = DrainStrategy.PROBE

    # Local durable store
    local_db_path: str = "data/cafe_local.db"

    # Network presence (hosts without a platform online/offline signal)
    start_online: bool = True
    presence_host: str | None = None
    presence_port: int = 443
    presence_interval: float = 10.0

    # Local HTTP surface for the UI
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Observability
    otlp_endpoint: str | None = None

    model_config = SettingsConfigDict(env_prefix="CAFE_", env_file=".env", extra="ignore")


settings = Settings()
