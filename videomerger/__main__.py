"""
Command-line interface for videomerger
"""
import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .config import LOG_LEVEL, MergeSettings
from .controller import MergeController
from .events import EventType
from .exceptions import (
    ConfigurationError,
    DependencyError,
    DiscoveryError,
    FileSetLockedError,
    MergeError,
)
from .fileset import FileSetManager
from .formatting import (
    console, print_check, print_command, print_error, print_header, print_info,
    print_segments, print_settings, print_status, print_success, print_warning
)
from .logging import configure_logging
from .preferences import PreferenceStore, Preferences
from .retention import RetentionReaper, register_shutdown_hook
from .services import (
    CompositeNotifier, ConsoleNotifier, DesktopNotifier,
    NullRevealer, Picker, PromptPicker, SystemRevealer
)
from .status import MergeStatus
from .utils import check_dependencies, format_size

log = logging.getLogger("videomerger")

def setup_logging(log_level: str = None) -> None:
    """Configure logging with rich output using the specified logging level"""
    level = log_level if log_level is not None else LOG_LEVEL
    log_file = configure_logging(level)
    log.debug("Started new logging session")
    if log_file:
        log.debug("Log file: %s", log_file)

def _parse_move(value: str) -> Tuple[int, int]:
    try:
        source, destination = (int(part) for part in value.split(":"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected FROM:TO positions, got '{value}'")
    if source < 1 or destination < 1:
        raise argparse.ArgumentTypeError("positions start at 1")
    return source, destination

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Merge recorded FLV segments into one file"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help=f"Set logging level (default: {LOG_LEVEL})"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    merge = commands.add_parser("merge", help="Merge the segments of a folder")
    merge.add_argument(
        "folder",
        type=Path,
        nargs="?",
        help="Folder containing the segments (prompted for when omitted)"
    )
    merge.add_argument("--output-dir", type=Path, help="Folder for the merged file (default: the source folder)")
    merge.add_argument("--name", help="Merged file name (default: name of the first segment)")
    merge.add_argument("--add", type=Path, action="append", default=[], metavar="FILE",
                       help="Append an extra segment; may be repeated")
    merge.add_argument("--pick", action="store_true",
                       help="Prompt for extra segments one at a time before merging")
    merge.add_argument("--remove", type=int, action="append", default=[], metavar="N",
                       help="Drop the segment at position N; may be repeated")
    merge.add_argument("--move", type=_parse_move, action="append", default=[], metavar="FROM:TO",
                       help="Move the segment at position FROM to position TO; may be repeated")
    delete = merge.add_mutually_exclusive_group()
    delete.add_argument("--delete-sources", dest="delete_sources", action="store_true", default=None,
                        help="Move the segments to the retention folder after merging")
    delete.add_argument("--keep-sources", dest="delete_sources", action="store_false",
                        help="Leave the segments in place after merging")
    merge.add_argument("--preview", action="store_true", help="Show the plan and command without merging")
    merge.add_argument("--no-reveal", action="store_true", help="Do not open the file manager after merging")
    merge.add_argument("--desktop-notify", action="store_true", help="Also send desktop notifications")

    commands.add_parser("reap", help="Clear the retention folder if it is over its threshold")

    config = commands.add_parser("config", help="Show or change preferences")
    toggle = config.add_mutually_exclusive_group()
    toggle.add_argument("--delete-sources", dest="delete_sources", action="store_true", default=None,
                        help="Move segments to the retention folder after each merge")
    toggle.add_argument("--keep-sources", dest="delete_sources", action="store_false",
                        help="Keep segments after each merge")
    toggle.add_argument("--toggle-delete", action="store_true", help="Flip the delete-after-merge setting")
    config.add_argument("--retention-dir", type=Path, metavar="DIR",
                        help="Use a .trash folder inside DIR as the retention folder")
    config.add_argument("--threshold-gb", type=int, metavar="N",
                        help="Clear the retention folder once it exceeds N GB (8-1000)")
    return parser.parse_args(argv)

def print_file_table(fileset: FileSetManager) -> None:
    """Print the segments in merge order."""
    rows = []
    for position, item in enumerate(fileset, 1):
        captured = item.captured_at.strftime("%Y-%m-%d %H:%M:%S") if item.has_capture_time else "-"
        rows.append((position, item.name, captured, item.size_label))
    print_segments(str(fileset.folder) if fileset.folder else "", rows)
    print_info(f"Predicted size: {format_size(fileset.predicted_size)}")

def _pick_files(fileset: FileSetManager, picker: Picker, extension: str) -> None:
    """Ask for extra files until the picker comes back empty."""
    while True:
        path = picker.choose_file(extension)
        if path is None:
            return
        if fileset.add_path(path):
            print_check(f"Added {path.name}")
        else:
            print_warning(f"{path.name} is already in the list")

def _edit_fileset(fileset: FileSetManager, args: argparse.Namespace) -> None:
    added = fileset.add_paths(args.add)
    if added:
        print_check(f"Added {added} file(s)")
    for position in sorted(set(args.remove), reverse=True):
        item = fileset.remove(position - 1)
        print_check(f"Removed {item.name}")
    for source, destination in args.move:
        fileset.reorder(source - 1, destination - 1)
    if args.output_dir:
        fileset.output.directory.set(args.output_dir.expanduser().absolute())
    if args.name:
        fileset.output.name.set(args.name)

def run_merge(args: argparse.Namespace, store: PreferenceStore) -> int:
    """Load, edit, preview and run one merge."""
    preferences = store.load()
    if args.delete_sources is not None:
        preferences = replace(preferences, delete_sources_after_merge=args.delete_sources)

    settings = MergeSettings()
    notifiers = [ConsoleNotifier()]
    if args.desktop_notify:
        notifiers.append(DesktopNotifier())
    controller = MergeController(
        settings,
        notifier=CompositeNotifier(notifiers),
        revealer=NullRevealer() if args.no_reveal else SystemRevealer()
    )
    fileset = FileSetManager(settings.extension, is_locked=lambda: controller.is_running)

    picker = PromptPicker()
    folder = args.folder or picker.choose_folder()
    if folder is None:
        print_error("No folder selected")
        return 1

    print_header(f"videomerger v{__version__}")
    try:
        fileset.load(folder.expanduser())
    except DiscoveryError as e:
        print_warning(e.message)

    if args.pick:
        _pick_files(fileset, picker, settings.extension)

    try:
        _edit_fileset(fileset, args)
    except IndexError as e:
        print_error(f"Invalid position: {e}")
        return 1

    print_file_table(fileset)
    output = fileset.output.resolve()
    print_info(f"Output: {output}")
    if fileset.items:
        print_command(controller.command_preview(fileset.paths(), output))
    if args.preview:
        return 0

    if not settings.login_shell:
        check_dependencies([settings.program])

    controller.on(EventType.STATUS_CHANGED,
                  lambda event: print_status(event.data["status"].description, event.data["status"].style))
    try:
        controller.start_fileset(fileset, preferences)
    except MergeError:
        return 1

    try:
        with console.status(f"Running {settings.program}..."):
            while not controller.wait(0.5):
                pass
    except KeyboardInterrupt:
        print_warning("Cancelling merge...")
        controller.cancel()
        controller.wait()

    outcome = controller.last_outcome
    if outcome.cancelled:
        return 130
    if outcome.status is not MergeStatus.SUCCESS:
        return 1

    print_success(f"Merged size: {format_size(outcome.output_size)}")
    if outcome.moved:
        print_check(f"Moved {len(outcome.moved)} segment(s) to the retention folder")
    for failure in outcome.move_failures:
        print_warning(failure.message)
    return 0

def run_reap(store: PreferenceStore) -> int:
    preferences = store.load()
    if preferences.retention_root is None:
        print_info("No retention folder configured")
        return 0
    if RetentionReaper().enforce_preferences(preferences):
        print_success(f"Cleared {preferences.retention_root}")
    else:
        print_info(f"{preferences.retention_root} is under {preferences.retention_threshold_gb} GB")
    return 0

def print_preferences(preferences: Preferences) -> None:
    print_settings("Preferences", [
        ("Delete sources after merge", "yes" if preferences.delete_sources_after_merge else "no"),
        ("Retention folder", str(preferences.retention_root or "(not set)")),
        ("Clear threshold", f"{preferences.retention_threshold_gb} GB"),
    ])

def run_config(args: argparse.Namespace, store: PreferenceStore) -> int:
    try:
        if args.toggle_delete:
            store.toggle_delete_sources()
        elif args.delete_sources is not None:
            store.update(delete_sources_after_merge=args.delete_sources)
        if args.retention_dir:
            store.set_retention_parent(args.retention_dir)
        if args.threshold_gb is not None:
            store.update(retention_threshold_gb=args.threshold_gb)
    except ConfigurationError as e:
        print_error(e.message)
        return 1
    print_preferences(store.load())
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    setup_logging(args.log_level)
    store = PreferenceStore()

    if args.command == "reap":
        return run_reap(store)

    register_shutdown_hook(store.load)
    if args.command == "config":
        return run_config(args, store)

    try:
        return run_merge(args, store)
    except (DependencyError, FileSetLockedError) as e:
        print_error(e.message)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted by user")
        return 130
    except Exception as e:
        log.exception("Merge failed: %s", e)
        return 1

if __name__ == "__main__":
    sys.exit(main())
