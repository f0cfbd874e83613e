"""Configuration management using Pydantic Settings"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from ``PAYCALC_*`` environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="PAYCALC_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Accelerated runtime
    accelerated_enabled: bool = True
    accelerated_backend: str = "paycalc.accelerated:AcceleratedBackend"

    # Logging
    service_name: str = "paycalc"
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
