"""Global configuration — loaded from environment variables."""

from pydantic_settings import BaseSettings


class FfrunSettings(BaseSettings):
    ffmpeg_path: str = "ffmpeg"
    log_level: str = "INFO"

    # Cancellation behaviour for the CLI
    graceful_cancel: bool = False  # SIGINT instead of SIGKILL
    default_timeout: float = 0.0  # seconds, 0 disables

    model_config = {"env_prefix": "FFRUN_"}


settings = FfrunSettings()
