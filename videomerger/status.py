"""Merge status tracking for videomerger.

The controller moves through IDLE -> RUNNING -> SUCCESS | ERROR, and back
to IDLE when a running merge is cancelled. Every finished run leaves a
MergeOutcome describing how it ended.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

class MergeStatus(Enum):
    """Lifecycle states of the merge controller."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def description(self) -> str:
        """Human readable label for the status."""
        return {
            MergeStatus.IDLE: "Ready",
            MergeStatus.RUNNING: "Merging...",
            MergeStatus.SUCCESS: "Merge complete",
            MergeStatus.ERROR: "Merge failed",
        }[self]

    @property
    def style(self) -> str:
        """Rich style used for the status indicator."""
        return {
            MergeStatus.IDLE: "grey50",
            MergeStatus.RUNNING: "dark_orange",
            MergeStatus.SUCCESS: "green",
            MergeStatus.ERROR: "red",
        }[self]

@dataclass
class MergeOutcome:
    """Result of one merge run.
    
    Attributes:
        status: Final status (SUCCESS, ERROR or IDLE when cancelled)
        output: Output path of the run
        exit_code: Tool exit code, None if it never ran
        cancelled: Whether the run was cancelled by the caller
        error: Exception describing the failure, if any
        output_size: Size of the merged file, if it could be read
        moved: Sources moved into the retention folder
        move_failures: Sources that could not be moved
        finished: When the run resolved
    """
    status: MergeStatus
    output: Path
    exit_code: Optional[int] = None
    cancelled: bool = False
    error: Optional[Exception] = None
    output_size: Optional[int] = None
    moved: list = field(default_factory=list)
    move_failures: list = field(default_factory=list)
    finished: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.finished is None:
            self.finished = datetime.now()
