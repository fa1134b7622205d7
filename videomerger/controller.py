"""Merge orchestration

Responsibilities:
  - Guard a merge request (output collision, empty input) before anything runs.
  - Run the merge tool for at most one job at a time.
  - Classify the job's end as success, failure or cancellation.
  - Run the post-success steps: size capture and source hand-off on the
    watcher thread, then reveal and notify wherever dispatch puts them.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

import psutil

from .command_builders import MergeCommand, build_merge_command
from .command_jobs import MergeJob
from .config import MergeSettings
from .events import EventEmitter, EventType
from .exceptions import (
    EmptyInputError,
    MergeError,
    MergeInProgressError,
    OutputCollisionError,
    ProcessFailure,
    SpawnError,
)
from .fileset import FileSetManager
from .preferences import Preferences
from .retention import store_for
from .services import Notifier, NullNotifier, NullRevealer, Revealer
from .status import MergeOutcome, MergeStatus
from .utils import format_size, get_file_size

logger = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]

class MergeController(EventEmitter):
    """
    State machine for a single merge.

    IDLE/SUCCESS/ERROR -> RUNNING on start(); RUNNING -> SUCCESS on exit 0,
    RUNNING -> ERROR on a non-zero exit, RUNNING -> IDLE after cancel().
    Guard failures and spawn failures go straight to ERROR.

    Args:
        settings: Tool and supervision settings
        notifier: Receives user-facing messages
        revealer: Shows the merged file after success
        dispatch: Publishes each outcome on the host's thread; defaults to the
            watcher thread. Size capture and file moves stay on the watcher thread.
    """

    def __init__(
        self,
        settings: Optional[MergeSettings] = None,
        notifier: Optional[Notifier] = None,
        revealer: Optional[Revealer] = None,
        dispatch: Optional[Dispatch] = None
    ) -> None:
        super().__init__()
        self.settings = settings or MergeSettings()
        self.notifier = notifier or NullNotifier()
        self.revealer = revealer or NullRevealer()
        self._dispatch = dispatch
        self._lock = threading.RLock()
        self._status = MergeStatus.IDLE
        # Handle used by cancel(); released as soon as a cancel is requested
        self._job: Optional[MergeJob] = None
        # Job whose exit has not been handled yet
        self._active: Optional[MergeJob] = None
        self._preferences = Preferences()
        self._fileset: Optional[FileSetManager] = None
        self._settled = threading.Event()
        self._settled.set()
        self._announced = threading.Event()
        self._announced.set()
        self.last_outcome: Optional[MergeOutcome] = None

    @property
    def status(self) -> MergeStatus:
        with self._lock:
            return self._status

    @property
    def is_running(self) -> bool:
        return self.status is MergeStatus.RUNNING

    def _swap_status(self, status: MergeStatus) -> MergeStatus:
        """Record a transition; the caller holds the lock and emits afterwards."""
        previous, self._status = self._status, status
        return previous

    def _emit_status(self, previous: MergeStatus, status: MergeStatus) -> None:
        if previous is not status:
            logger.debug("Merge status %s -> %s", previous.value, status.value)
            self.emit(EventType.STATUS_CHANGED,
                      {"previous": previous, "status": status}, source="controller")

    def _notify(self, title: str, body: str) -> None:
        try:
            self.notifier.notify(title, body)
        except Exception as e:
            logger.warning("Notification failed: %s", e)

    def build_command(self, inputs: Sequence[Path], output: Path) -> MergeCommand:
        return build_merge_command(inputs, output, program=self.settings.program)

    def command_preview(self, inputs: Sequence[Path], output: Path) -> str:
        """The exact command line start() would run for these arguments."""
        inputs = [Path(p).absolute() for p in inputs]
        if not inputs:
            return ""
        return self.build_command(inputs, Path(output).absolute()).render()

    def _warn_on_free_space(self, output: Path, predicted_size: Optional[int]) -> None:
        if not predicted_size:
            return
        try:
            free = psutil.disk_usage(str(output.parent)).free
        except OSError as e:
            logger.debug("Cannot check free space for %s: %s", output.parent, e)
            return
        if predicted_size > free:
            logger.warning("Merged file needs about %s but only %s is free in %s",
                           format_size(predicted_size), format_size(free), output.parent)

    def start(
        self,
        inputs: Sequence[Path],
        output: Path,
        preferences: Optional[Preferences] = None,
        predicted_size: Optional[int] = None,
        fileset: Optional[FileSetManager] = None
    ) -> MergeJob:
        """
        Start merging inputs, in order, into output.

        Args:
            inputs: Ordered input files; copied, later changes do not affect the run
            output: Output file, must not exist yet
            preferences: Snapshot of user preferences for this run
            predicted_size: Expected output size, used for a free space warning
            fileset: File set that receives the merged size on success

        Returns:
            The running job

        Raises:
            MergeInProgressError: If a merge is already running (status unchanged)
            OutputCollisionError: If output already exists
            EmptyInputError: If there are no inputs
            SpawnError: If the merge tool cannot be started
        """
        inputs = [Path(p).absolute() for p in inputs]
        output = Path(output).absolute()
        failure: Optional[Tuple[MergeError, str, str]] = None

        with self._lock:
            if self._status is MergeStatus.RUNNING:
                raise MergeInProgressError("A merge is already running", module="controller")

            if output.exists():
                failure = (OutputCollisionError(output, module="controller"),
                           "Output file already exists",
                           f"{output.name} already exists in {output.parent}; "
                           "choose another name or folder.")
            elif not inputs:
                failure = (EmptyInputError("No files to merge", module="controller"),
                           "Merge failed", "There are no video files to merge.")
            else:
                self._warn_on_free_space(output, predicted_size)
                job = MergeJob(
                    self.build_command(inputs, output),
                    inputs,
                    output,
                    login_shell=self.settings.login_shell,
                    kill_timeout=self.settings.kill_timeout
                )
                try:
                    job.start(self._on_job_exit)
                except SpawnError as e:
                    failure = (e, "Unable to run merge tool",
                               f"Could not run {self.settings.program}; "
                               "check that it is installed and on PATH.")
                else:
                    self._job = job
                    self._active = job
                    self._preferences = preferences or Preferences()
                    self._fileset = fileset
                    self._settled.clear()
                    # The exit handler waits for this so MERGE_STARTED always comes first
                    self._announced = threading.Event()
                    previous = self._swap_status(MergeStatus.RUNNING)

            if failure is not None:
                self.last_outcome = MergeOutcome(MergeStatus.ERROR, output, error=failure[0])
                previous = self._swap_status(MergeStatus.ERROR)

        if failure is not None:
            error, title, body = failure
            logger.error("%s", error.message)
            self._emit_status(previous, MergeStatus.ERROR)
            self._notify(title, body)
            raise error

        try:
            logger.info("Merging %d file(s) into %s", len(inputs), output)
            self._emit_status(previous, MergeStatus.RUNNING)
            self.emit(EventType.MERGE_STARTED, {"inputs": inputs, "output": output}, source="controller")
        finally:
            self._announced.set()
        return job

    def start_fileset(self, fileset: FileSetManager,
                      preferences: Optional[Preferences] = None) -> MergeJob:
        """Start merging a file set into its resolved output target."""
        return self.start(fileset.paths(), fileset.output.resolve(), preferences,
                          predicted_size=fileset.predicted_size, fileset=fileset)

    def cancel(self) -> bool:
        """
        Request cancellation of the running merge.

        Returns without waiting; the merge settles to IDLE once the
        process has exited.

        Returns:
            True if a running merge was asked to stop
        """
        with self._lock:
            job = self._job
            if self._status is not MergeStatus.RUNNING or job is None:
                return False
            job.cancel()
            self._job = None
        logger.info("Cancelling merge into %s", job.output)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current merge has settled.

        Must not be called from the dispatch thread.

        Returns:
            False if the timeout expired first
        """
        return self._settled.wait(timeout)

    def _on_job_exit(self, job: MergeJob, returncode: int) -> None:
        """Classify the exit and run file work on the watcher thread, then dispatch the rest."""
        with self._lock:
            announced = self._announced
        announced.wait()

        # The cancel token is read under the same lock cancel() sets it under
        with self._lock:
            if job is not self._active:
                logger.debug("Ignoring exit of stale merge job")
                return
            self._job = None
            cancelled = job.cancelled
            preferences = self._preferences
            fileset = self._fileset
            self._fileset = None

        if cancelled:
            logger.info("Merge cancelled (exit status %s)", returncode)
            outcome = MergeOutcome(MergeStatus.IDLE, job.output, exit_code=returncode, cancelled=True)
        elif returncode == 0:
            outcome = self._collect(job, preferences)
        else:
            error = ProcessFailure(
                f"{job.command.program} exited with status {returncode}",
                exit_code=returncode, stderr=job.output_tail, module="controller"
            )
            logger.error("%s", error.message)
            if job.output_tail:
                logger.error("Tool output:\n%s", job.output_tail)
            outcome = MergeOutcome(MergeStatus.ERROR, job.output, exit_code=returncode, error=error)

        if self._dispatch is not None:
            self._dispatch(lambda: self._finish(job, outcome, fileset))
        else:
            self._finish(job, outcome, fileset)

    def _collect(self, job: MergeJob, preferences: Preferences) -> MergeOutcome:
        """Size capture and source hand-off; none of it can turn the merge into a failure."""
        outcome = MergeOutcome(MergeStatus.SUCCESS, job.output, exit_code=0)

        outcome.output_size = get_file_size(job.output)
        logger.info("Merged %s (%s)", job.output, format_size(outcome.output_size))

        if preferences.delete_sources_after_merge:
            try:
                moved, failed = store_for(preferences).admit_all(job.inputs)
                outcome.moved = moved
                outcome.move_failures = failed
            except Exception as e:
                logger.error("Moving sources to the retention folder failed: %s", e)
        return outcome

    def _finish(self, job: MergeJob, outcome: MergeOutcome,
                fileset: Optional[FileSetManager]) -> None:
        """Publish the outcome on the host's thread."""
        with self._lock:
            if job is not self._active:
                logger.debug("Ignoring outcome of stale merge job")
                return
            self._active = None
            self.last_outcome = outcome
            previous = self._swap_status(outcome.status)

        try:
            if outcome.cancelled:
                self._notify("Merge cancelled", "The merge was cancelled.")
            elif outcome.status is MergeStatus.SUCCESS:
                if fileset is not None:
                    fileset.merged_size = outcome.output_size
                try:
                    self.revealer.reveal(job.output)
                except Exception as e:
                    logger.debug("Reveal failed: %s", e)
                self._notify("Merge complete", f"Merged video saved to {job.output}")
            else:
                self._notify("Merge failed",
                             f"Check the input files and the {job.command.program} installation.")
            self._emit_status(previous, outcome.status)
            self.emit(EventType.MERGE_FINISHED, {"outcome": outcome}, source="controller")
        finally:
            self._settled.set()
