"""Utility functions for videomerger"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from .exceptions import DependencyError

logger = logging.getLogger(__name__)

def get_file_size(path: Union[str, Path]) -> Optional[int]:
    """Get file size in bytes, None if the file cannot be stat'ed"""
    try:
        return Path(path).stat().st_size
    except OSError as e:
        logger.debug("Cannot stat %s: %s", path, e)
        return None

def get_timestamp() -> str:
    """Get current timestamp in YYYYMMDD_HHMMSS format"""
    return datetime.now().strftime("%Y%m%d_%H%M%S")

def format_size(size: Optional[int]) -> str:
    """Format file size for display"""
    if size is None:
        return "unknown"
    for unit in ['B', 'KiB', 'MiB', 'GiB', 'TiB']:
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}TiB"

def check_dependencies(required: Iterable[str]) -> None:
    """Check that every required command is on PATH

    Raises:
        DependencyError: If a command cannot be found
    """
    for cmd in required:
        if shutil.which(cmd) is None:
            logger.error("Required dependency not found: %s", cmd)
            raise DependencyError(
                f"{cmd} is required for merging but was not found on PATH",
                module="utils"
            )
