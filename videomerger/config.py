"""Configuration settings for videomerger

This module centralizes all configuration settings including:
- The external merge tool and the accepted media extension
- Log, preference and retention folder locations
- Process supervision timeouts
- Retention threshold bounds

Paths and the tool name can be overridden with environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# External concatenation tool, resolved on PATH
MERGE_TOOL = os.environ.get("VIDEOMERGER_TOOL", "yamdi")

# Optional login shell used to run the tool (e.g. "/bin/zsh")
LOGIN_SHELL = os.environ.get("VIDEOMERGER_SHELL") or None

# Accepted segment container
MEDIA_EXTENSION = "flv"
DEFAULT_OUTPUT_NAME = f"output.{MEDIA_EXTENSION}"

# LOG_DIR: user definable with default of "$HOME/videomerger_logs"
LOG_DIR = Path(os.environ.get("VIDEOMERGER_LOG_DIR", str(Path.home() / "videomerger_logs")))

# Persisted preferences live here
CONFIG_DIR = Path(os.environ.get("VIDEOMERGER_CONFIG_DIR", str(Path.home() / ".config" / "videomerger")))
PREFERENCES_FILE = CONFIG_DIR / "preferences.json"

# Where merged sources go when no retention folder has been chosen
DEFAULT_RETENTION_ROOT = Path.home() / "Documents" / ".UselessVideos"

# Process supervision
KILL_TIMEOUT = 5.0  # Seconds between terminate and kill after a cancel

# Retention threshold bounds (GB)
RETENTION_THRESHOLD_MIN_GB = 8
RETENTION_THRESHOLD_MAX_GB = 1000
RETENTION_THRESHOLD_DEFAULT_GB = 10

# Logging configuration
LOG_LEVEL = "INFO"  # Default logging level; valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL


@dataclass
class MergeSettings:
    """Static configuration for the merge controller.

    Attributes:
        program: Executable name of the concatenation tool
        extension: Accepted media extension (without dot)
        login_shell: Shell used to run the rendered command, None to exec directly
        kill_timeout: Seconds to wait after terminate before killing
    """
    program: str = MERGE_TOOL
    extension: str = MEDIA_EXTENSION
    login_shell: Optional[str] = LOGIN_SHELL
    kill_timeout: float = KILL_TIMEOUT

    def __post_init__(self) -> None:
        if not self.program:
            raise ValueError("Merge tool must not be empty")
        self.extension = self.extension.lstrip(".").lower()
        if not self.extension.isalnum():
            raise ValueError(f"Media extension '{self.extension}' must be alphanumeric")
        if self.kill_timeout <= 0:
            raise ValueError(f"Kill timeout must be positive: {self.kill_timeout}")
