"""Host services used by the merge workflow.

The core only talks to these through narrow interfaces: a notifier for
user-facing messages, a revealer that shows the merged file in the
platform file manager, and a picker that supplies folders and files.
All implementations are best-effort; failures are logged, never raised.
"""

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

from rich.prompt import Prompt

from .formatting import console, print_error, print_info, print_success, print_warning

logger = logging.getLogger(__name__)

class Notifier(ABC):
    """Interface for user notifications."""

    @abstractmethod
    def notify(self, title: str, body: str) -> None:
        """Deliver a notification; must not raise."""
        pass

class NullNotifier(Notifier):
    def notify(self, title: str, body: str) -> None:
        logger.debug("Notification: %s - %s", title, body)

class ConsoleNotifier(Notifier):
    """Prints notifications with the rich console helpers."""

    ERROR_WORDS = ("fail", "error", "exists", "unable")

    def notify(self, title: str, body: str) -> None:
        lowered = title.lower()
        message = f"{title}: {body}"
        if "cancel" in lowered:
            print_warning(message)
        elif any(word in lowered for word in self.ERROR_WORDS):
            print_error(message)
        elif "complete" in lowered:
            print_success(message)
        else:
            print_info(message)

class DesktopNotifier(Notifier):
    """Sends desktop notifications via notify-send or osascript."""

    def __init__(self, app_name: str = "videomerger"):
        self.app_name = app_name

    def _command(self, title: str, body: str) -> Optional[List[str]]:
        if sys.platform == "darwin":
            script = f"display notification {_applescript_str(body)} with title {_applescript_str(title)}"
            return ["osascript", "-e", script]
        if sys.platform.startswith("linux"):
            return ["notify-send", "--app-name", self.app_name, title, body]
        return None

    def notify(self, title: str, body: str) -> None:
        cmd = self._command(title, body)
        if cmd is None:
            logger.debug("Desktop notifications not supported on %s", sys.platform)
            return
        try:
            subprocess.run(cmd, capture_output=True, check=True, timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Desktop notification failed: %s", e)

class CompositeNotifier(Notifier):
    """Fans a notification out to several notifiers."""

    def __init__(self, notifiers: Iterable[Notifier]):
        self.notifiers = list(notifiers)

    def notify(self, title: str, body: str) -> None:
        for notifier in self.notifiers:
            try:
                notifier.notify(title, body)
            except Exception as e:
                logger.warning("Notifier %s failed: %s", type(notifier).__name__, e)

class Revealer(ABC):
    """Interface for showing a file in the platform file manager."""

    @abstractmethod
    def reveal(self, path: Path) -> None:
        pass

class NullRevealer(Revealer):
    def reveal(self, path: Path) -> None:
        logger.debug("Not revealing %s", path)

class SystemRevealer(Revealer):
    """Opens the platform file manager on the merged file."""

    def _command(self, path: Path) -> Optional[List[str]]:
        if sys.platform == "darwin":
            return ["open", "-R", str(path)]
        if sys.platform.startswith("win"):
            return ["explorer", f"/select,{path}"]
        if sys.platform.startswith("linux"):
            return ["xdg-open", str(path.parent)]
        return None

    def reveal(self, path: Path) -> None:
        cmd = self._command(Path(path))
        if cmd is None:
            return
        try:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            logger.debug("Cannot reveal %s: %s", path, e)

class Picker(ABC):
    """Interface for choosing a source folder or an extra file."""

    @abstractmethod
    def choose_folder(self) -> Optional[Path]:
        pass

    @abstractmethod
    def choose_file(self, extension: str) -> Optional[Path]:
        pass

class PromptPicker(Picker):
    """Asks for paths on the terminal."""

    def choose_folder(self) -> Optional[Path]:
        answer = Prompt.ask("Folder with segments to merge", default="", console=console).strip()
        if not answer:
            return None
        folder = Path(answer).expanduser()
        if not folder.is_dir():
            print_error(f"Not a folder: {folder}")
            return None
        return folder

    def choose_file(self, extension: str) -> Optional[Path]:
        answer = Prompt.ask(f"Add a .{extension} file (empty to finish)", default="", console=console).strip()
        if not answer:
            return None
        path = Path(answer).expanduser()
        if path.suffix.lower() != f".{extension}" or not path.is_file():
            print_error(f"Not a .{extension} file: {path}")
            return None
        return path

def _applescript_str(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
