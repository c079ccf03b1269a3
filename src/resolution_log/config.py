"""Resolution log configuration using pydantic-settings."""

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class UnmatchedTracePolicy(str, Enum):
    """What to do with a sub-action trace that has no headline line to nest under."""

    DISCARD = "discard"  # Drop the nested diff (legacy behaviour)
    APPEND = "append"  # Append a sub-action line plus its diff at the end


class Settings(BaseSettings):
    """Rendering settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RESOLUTION_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Line markers
    primary_marker: str = "•"  # Depth 1
    nested_marker: str = "↳"  # Depth 2 and deeper
    indent_width: int = 2  # Spaces per nesting level in plain text

    # Fixed labels
    cost_header_text: str = "💲 Action cost"
    cost_section_text: str = "💲 Cost"
    effects_section_text: str = "🪄 Effects"
    developed_keyword: str = "Developed"

    # Sub-action integration
    unmatched_trace_policy: UnmatchedTracePolicy = UnmatchedTracePolicy.DISCARD

    # Log sink
    max_log_entries: int = 250


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
