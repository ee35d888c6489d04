from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtrack.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Runtime configuration for SubTrack.

    All settings are loaded from environment variables with the
    `SUBTRACK_` prefix and optional `.env` support.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBTRACK_",
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    store_path: str = Field(
        default=".subtrack/store.json",
        description="JSON file backing the key-value store.",
    )
    session_key: str = Field(
        default="subtitle",
        min_length=1,
        description="Store key holding the current track.",
    )
    sample_path: str | None = Field(
        default=None,
        description="Fallback track (JSON records). Defaults to the bundled sample.",
    )

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    history_limit: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of undo snapshots kept per session.",
    )
    max_text_length: int = Field(
        default=200,
        ge=1,
        description="Longest cue text accepted by the CLI content rule.",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )

    def to_public_dict(self) -> dict:
        """Return settings suitable for logging or CLI display."""
        return {
            "store_path": self.store_path,
            "session_key": self.session_key,
            "sample_path": self.sample_path,
            "history_limit": self.history_limit,
            "max_text_length": self.max_text_length,
            "log_level": self.log_level,
        }


def load_settings(**overrides) -> Settings:
    """Build Settings, reporting invalid values as a ConfigurationError."""
    clean = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**clean)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid settings ({problems})") from exc
