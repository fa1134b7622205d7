"""Helper functions for building merge tool commands"""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from .config import MERGE_TOOL

log = logging.getLogger(__name__)

@dataclass(frozen=True)
class MergeCommand:
    """An external tool invocation: program plus argument vector."""
    program: str
    args: Tuple[str, ...]

    @property
    def argv(self) -> List[str]:
        return [self.program, *self.args]

    def render(self) -> str:
        """Shell-quoted command line, as shown in previews and run by a login shell."""
        return shlex.join(self.argv)

    def shell_argv(self, shell: str) -> List[str]:
        """Argument vector that runs the rendered line through a login shell."""
        return [shell, "-il", "-c", self.render()]

    def __str__(self) -> str:
        return self.render()

def build_merge_command(
    inputs: Sequence[Path],
    output_file: Path,
    program: str = MERGE_TOOL
) -> MergeCommand:
    """Build the concatenation command: one -i per input in order, then -o output.

    Raises:
        ValueError: If inputs is empty
    """
    if not inputs:
        raise ValueError("At least one input file is required")

    args: List[str] = []
    for input_file in inputs:
        args.extend(["-i", str(input_file)])
    args.extend(["-o", str(output_file)])

    return MergeCommand(program=program, args=tuple(args))
