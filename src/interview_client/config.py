"""Runtime configuration for the interview client."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from interview_client.audio.recorder import DEFAULT_RECORDING_MIME_KIND
from interview_client.exchange import DEFAULT_SERVICE_URL


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="INTERVIEW_CLIENT_", env_file=".env", extra="ignore")

    app_name: str = "interview-client"
    log_level: str = "INFO"
    service_url: str = Field(
        default=DEFAULT_SERVICE_URL,
        description="Endpoint accepting one encoded answer per POST.",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    session_id: str | None = None
    recording_mime_kind: str = DEFAULT_RECORDING_MIME_KIND
    reply_mime_kind: str = "audio/wav"
    sample_rate: int = Field(default=16_000, gt=0)
    channels: int = Field(default=1, ge=1)
    block_size: int = Field(default=1024, gt=0)
    input_device: str | None = Field(default=None, description="Input device name fragment or index.")
    output_device: str | None = None
    max_exchange_retries: int = Field(default=0, ge=0)
    retry_delay_seconds: float = Field(default=0.5, ge=0)
    playback_enabled: bool = True
    reply_dir: str | None = Field(default=None, description="Directory receiving reply audio files.")


settings = Settings()
