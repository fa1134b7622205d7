"""
command_jobs.py

Runs the merge tool as a supervised child process. Completion is
reported through a callback from a watcher thread; cancellation is
signalled through a per-job token that the callback consumer reads.
"""

import logging
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import psutil

from .command_builders import MergeCommand
from .exceptions import SpawnError

logger = logging.getLogger(__name__)

OUTPUT_TAIL_LINES = 20

class MergeJob:
    """
    One invocation of the merge tool.

    Attributes:
        command (MergeCommand): The command being executed
        inputs (List[Path]): Snapshot of the input paths
        output (Path): Resolved output path
        cancel_token (threading.Event): Set when the caller cancels the job
        returncode (Optional[int]): Exit status once the process has ended
    """
    def __init__(
        self,
        command: MergeCommand,
        inputs: Sequence[Path],
        output: Path,
        login_shell: Optional[str] = None,
        kill_timeout: float = 5.0
    ):
        self.command = command
        self.inputs = list(inputs)
        self.output = output
        self.login_shell = login_shell
        self.kill_timeout = kill_timeout
        self.cancel_token = threading.Event()
        self.process: Optional[subprocess.Popen] = None
        self.returncode: Optional[int] = None
        self._output_tail = deque(maxlen=OUTPUT_TAIL_LINES)
        self._watcher: Optional[threading.Thread] = None
        self._kill_timer: Optional[threading.Timer] = None

    @property
    def argv(self) -> List[str]:
        if self.login_shell:
            return self.command.shell_argv(self.login_shell)
        return self.command.argv

    @property
    def output_tail(self) -> str:
        """Last lines the tool printed, for error reports."""
        return "\n".join(self._output_tail)

    @property
    def cancelled(self) -> bool:
        return self.cancel_token.is_set()

    def start(self, on_exit: Callable[["MergeJob", int], None]) -> None:
        """
        Spawn the process and start watching it.

        Args:
            on_exit: Called from the watcher thread with (job, returncode)

        Raises:
            SpawnError: If the process cannot be started
        """
        logger.info("Running merge command: %s", self.command.render())
        try:
            self.process = subprocess.Popen(
                self.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                bufsize=1
            )
        except (OSError, ValueError) as e:
            raise SpawnError(
                f"Unable to run {self.command.program}: {e}",
                module="command_jobs"
            ) from e

        self._watcher = threading.Thread(
            target=self._watch,
            args=(self.process, on_exit),
            name=f"merge-watch-{self.process.pid}",
            daemon=True
        )
        self._watcher.start()

    def _read_output(self, stream) -> None:
        try:
            for line in iter(stream.readline, ''):
                line = line.rstrip()
                if line:
                    self._output_tail.append(line)
                    logger.debug("%s: %s", self.command.program, line)
        except (OSError, ValueError) as e:
            logger.debug("Stopped reading %s output: %s", self.command.program, e)
        finally:
            stream.close()

    def _watch(self, process: subprocess.Popen, on_exit: Callable[["MergeJob", int], None]) -> None:
        reader = threading.Thread(target=self._read_output, args=(process.stdout,), daemon=True)
        reader.start()
        returncode = process.wait()
        reader.join(timeout=1)
        if self._kill_timer is not None:
            self._kill_timer.cancel()
        self.returncode = returncode
        logger.debug("Merge process %s exited with %s", process.pid, returncode)
        on_exit(self, returncode)

    def cancel(self) -> None:
        """Set the cancel token and terminate the process tree.

        Does not wait for the process; if it is still alive after
        kill_timeout seconds it is killed.
        """
        self.cancel_token.set()
        if self.process is None or self.process.poll() is not None:
            return
        self._signal_tree(kill=False)
        self._kill_timer = threading.Timer(self.kill_timeout, self._kill_if_alive)
        self._kill_timer.daemon = True
        self._kill_timer.start()

    def _kill_if_alive(self) -> None:
        if self.process is not None and self.process.poll() is None:
            logger.warning("Merge process %s ignored terminate, killing", self.process.pid)
            self._signal_tree(kill=True)

    def _signal_tree(self, kill: bool) -> None:
        """Terminate (or kill) the process and its children, children first."""
        try:
            parent = psutil.Process(self.process.pid)
            procs = parent.children(recursive=True) + [parent]
        except psutil.Error as e:
            logger.debug("Merge process already gone: %s", e)
            return
        for proc in procs:
            try:
                if kill:
                    proc.kill()
                else:
                    proc.terminate()
            except psutil.NoSuchProcess:
                pass
            except psutil.AccessDenied as e:
                logger.error("Cannot signal process %s: %s", proc.pid, e)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the watcher thread (and therefore on_exit) to finish."""
        if self._watcher is not None:
            self._watcher.join(timeout)
