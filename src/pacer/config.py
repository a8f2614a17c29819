from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./pacer.db"
    log_level: str = "INFO"

    # System-wide smoothing defaults; courses may override each one.
    grade_window_m: float = 100.0  # Wg, 0 = raw adjacent-point slope
    pace_smoothing_m: float = 300.0  # Wp, display only
    sample_step_m: float = 50.0  # Δ, 0 = use the default step

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
