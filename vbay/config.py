from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    storage_dir: Path = Path("data")
    log_level: str = "INFO"

    # mock CAS round trip
    sso_service_url: str = "http://localhost:8000/api/v1/auth/sso/callback"
    sso_redirect_delay: float = 1.0
    sso_validation_delay: float = 1.5

    # simulated latency on listing create / edit
    submit_delay: float = 0.8

    model_config = SettingsConfigDict(env_prefix="VBAY_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
