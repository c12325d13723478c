"""Application configuration via environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "lakay-risk-engine"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    redis_url: str = "redis://localhost:6379/0"

    # Risk events stream; publishing is disabled when no bootstrap servers are set
    kafka_bootstrap_servers: str = ""
    risk_events_topic: str = "lakay.risk.evaluations"

    # IP geolocation (ip-api.com compatible)
    geoip_api_url: str = "http://ip-api.com/json/{ip}"
    geoip_timeout_seconds: float = 2.0
    geoip_cache_ttl_seconds: int = 6 * 60 * 60

    # "fail_closed" aborts the evaluation on any infrastructure failure,
    # "degrade" scores the remaining checks and forces verification
    failure_policy: Literal["fail_closed", "degrade"] = "fail_closed"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
