"""Configuration settings loaded from .env file."""

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings

from config.exceptions import InvalidConfigError


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Endpoint paths are joined onto ``api_base_url``. The defaults are
    placeholders for a local proxy; real deployments set them in .env.
    Retry and polling budgets are fixed per client and live next to the
    code that uses them, not here.
    """

    # Upstream proxy
    api_base_url: str = "http://localhost:8000"
    app_id: str = ""
    request_timeout: float = 120.0

    # Chat completion (SSE)
    chat_endpoint: str = "/api/chat/stream"
    enable_thinking: bool = False

    # Image generation (cover)
    cover_submit_endpoint: str = "/api/image/submit"
    cover_query_endpoint: str = "/api/image/query"

    # Speech synthesis
    tts_create_endpoint: str = "/api/tts/create"
    tts_query_endpoint: str = "/api/tts/query"

    # Chapter
    continuity_tail_chars: int = 800

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v

    @field_validator("continuity_tail_chars")
    @classmethod
    def validate_tail_chars(cls, v: int) -> int:
        if v < 0:
            raise ValueError("continuity_tail_chars must be non-negative")
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    def endpoint_url(self, path: str) -> str:
        """Join an endpoint path onto the base URL (absolute URLs pass through)."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.api_base_url}/{path.lstrip('/')}"


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        InvalidConfigError: The environment or .env holds an invalid value.
    """
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InvalidConfigError("Invalid configuration", {"errors": problems}) from e
    return _settings_instance
