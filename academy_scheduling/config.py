"""Engine configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from academy_scheduling.domain.models import SessionPrecedence


class EngineSettings(BaseSettings):
    """Conflict engine settings.

    Every field can be overridden with a ``SCHEDULING_``-prefixed environment
    variable or a local ``.env`` file.
    """

    session_precedence: SessionPrecedence = Field(
        default=SessionPrecedence.SESSION_SUPERSEDES,
        description=(
            "How a generated session relates to its template on the same date: "
            "'session_supersedes' checks only the session, 'both' checks both"
        ),
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "SCHEDULING_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


_settings: EngineSettings | None = None


def get_settings() -> EngineSettings:
    """Return the process-wide settings singleton."""
    global _settings
    if _settings is None:
        _settings = EngineSettings()
    return _settings
