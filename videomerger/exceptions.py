"""Custom exceptions for videomerger"""

from pathlib import Path
from typing import Optional


class VideoMergerError(Exception):
    """Base exception for all videomerger errors"""
    def __init__(self, message: str, module: str = None):
        self.message = message
        self.module = module or "unknown"
        super().__init__(f"[{self.module}] {self.message}")

class DiscoveryError(VideoMergerError):
    """Source folder could not be listed"""

class FileSetLockedError(VideoMergerError):
    """File set mutation attempted while a merge is running"""

class MergeError(VideoMergerError):
    """Base class for merge-related errors"""

class EmptyInputError(MergeError):
    """No input files to merge"""

class OutputCollisionError(MergeError):
    """Output file already exists"""
    def __init__(self, output: Path, module: str = None):
        self.output = output
        super().__init__(f"Output file already exists: {output}", module)

class MergeInProgressError(MergeError):
    """A merge is already running"""

class SpawnError(MergeError):
    """The merge tool could not be started"""

class ProcessFailure(MergeError):
    """The merge tool exited with a non-zero status"""
    def __init__(self, message: str, exit_code: int, stderr: str = "", module: str = None):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message, module)

class RetentionError(VideoMergerError):
    """Base class for retention folder errors"""

class RetentionMoveError(RetentionError):
    """A source file could not be moved into the retention folder"""
    def __init__(self, message: str, source: Optional[Path] = None, module: str = None):
        self.source = source
        super().__init__(message, module)

class EvictionError(RetentionError):
    """A retention folder entry could not be deleted"""
    def __init__(self, message: str, entry: Optional[Path] = None, module: str = None):
        self.entry = entry
        super().__init__(message, module)

class ConfigurationError(VideoMergerError):
    """Error in configuration/preferences"""

class DependencyError(VideoMergerError):
    """Missing required dependencies"""
