"""
Runtime configuration for sift.

Values come from environment variables. The runners call load_dotenv()
before anything reads them, so a local .env file works as well.
"""

import os
from typing import Optional

from pydantic import BaseModel

from . import __version__

DEFAULT_USER_AGENT = f"sift/{__version__} (+https://github.com/sift)"


class Settings(BaseModel):
    """Process-wide settings, read once at start-up."""
    user_agent: str = DEFAULT_USER_AGENT
    # None disables the client timeout entirely; the fetch layer has no
    # timeout or retry policy of its own.
    timeout: Optional[float] = None
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from SIFT_* environment variables."""
        values = {}
        env_map = {
            "user_agent": "SIFT_USER_AGENT",
            "timeout": "SIFT_TIMEOUT",
            "host": "SIFT_HOST",
            "port": "SIFT_PORT",
            "log_level": "SIFT_LOG_LEVEL",
        }
        for field_name, env_name in env_map.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        return cls(**values)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
