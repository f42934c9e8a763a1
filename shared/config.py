"""Central configuration loaded from environment variables / .env file.

All Kuberhealthy checks inherit these base settings. Individual checks can
extend by subclassing Settings and adding their own fields.

Usage:
    from shared.config import Settings
    settings = Settings()
    print(settings.kh_reporting_url)

To extend in a check:
    from shared.config import Settings as BaseSettings

    class MyCheckSettings(BaseSettings):
        my_custom_var: str = "default"
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Kuberhealthy (injected into the checker pod) ---
    kh_reporting_url: str = ""
    kh_run_uuid: str = ""
    kh_check_run_deadline: str = ""  # Unix seconds
    kh_debug: bool = False  # Verbose client request logging

    # --- General ---
    log_level: str = "INFO"
    log_format: str = "auto"  # auto | json | console
