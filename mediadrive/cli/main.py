#!/usr/bin/env python3
# mediadrive/cli/main.py - MediaDrive command line entry point
"""
MediaDrive CLI.

    mediadrive [options] [menu]                 interactive group menu
    mediadrive [options] drives [--all]         list attached drives
    mediadrive [options] groups                 list groups with live status
    mediadrive [options] add --master SERIAL [--backup SERIAL ...] [--name NAME]
    mediadrive [options] edit GROUP_ID [--name NAME] [--master SERIAL] [--backup SERIAL ...]
    mediadrive [options] remove GROUP_ID [GROUP_ID ...] [--yes]

Environment fallbacks (read here only, never by core components):
    MEDIADRIVE_NONINTERACTIVE   1/true/yes -> fail instead of prompting
    MEDIADRIVE_ANSWERS          ';'-separated scripted answers
    MEDIADRIVE_DRIVE_FIXTURE    JSON inventory used instead of the OS
    MEDIADRIVE_LOG_LEVEL        DEBUG/INFO/WARNING/ERROR
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional

import colorama

from mediadrive.cli.group_manager import GroupManager
from mediadrive.cli_output import CLIOutput
from mediadrive.constants import Defaults, EnvVars
from mediadrive.drives import DeviceEnumerator, FixtureStorageApi
from mediadrive.errors import GroupNotFoundError, StorageGroupError
from mediadrive.groups import GroupStore
from mediadrive.logs import get_logger, setup_logging
from mediadrive.modes import WizardMode
from mediadrive.paths import Paths
from mediadrive.prompts import (
    ConsolePromptSource,
    NonInteractivePromptSource,
    PromptSource,
    QueuedPromptSource,
    parse_answer_list,
)
from mediadrive.version import VERSION

_cli_logger = get_logger("cli")

TRUTHY = ("1", "TRUE", "YES", "ON")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().upper() in TRUTHY


# =============================================================================
# Argument parsing
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mediadrive", description="MediaDrive storage group manager")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "--config", "-c", type=Path, metavar="PATH", help="Path to storage.json (default: <drive root>/.mediadrive/storage.json)"
    )
    parser.add_argument("--drive-root", type=Path, metavar="PATH", help="Drive root holding the .mediadrive directory")
    parser.add_argument(
        "--non-interactive", action="store_true", help="Fail instead of prompting (env: MEDIADRIVE_NONINTERACTIVE)"
    )
    parser.add_argument("--answers", metavar="A;B;C", help="Scripted answers, ';'-separated (env: MEDIADRIVE_ANSWERS)")
    parser.add_argument(
        "--fixture", type=Path, metavar="JSON", help="Drive inventory fixture (env: MEDIADRIVE_DRIVE_FIXTURE)"
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="File log level (env: MEDIADRIVE_LOG_LEVEL, default: INFO)",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.add_parser("menu", help="Interactive storage group menu (default)")

    drives = sub.add_parser("drives", help="List attached drives")
    drives.add_argument("--all", action="store_true", help="Include fixed (non-removable) drives")

    sub.add_parser("groups", help="List storage groups with live drive status")

    add = sub.add_parser("add", help="Create a storage group from serial numbers")
    add.add_argument("--master", required=True, metavar="SERIAL")
    add.add_argument("--backup", action="append", default=[], metavar="SERIAL", help="Repeat for several backups")
    add.add_argument("--name", metavar="NAME")

    edit = sub.add_parser("edit", help="Change an existing storage group")
    edit.add_argument("group_id", metavar="GROUP_ID")
    edit.add_argument("--name", metavar="NAME")
    edit.add_argument("--master", metavar="SERIAL", help="Default: keep current master")
    edit.add_argument("--backup", action="append", metavar="SERIAL", help="Replaces current backups; repeatable")
    edit.add_argument("--clear-backups", action="store_true", help="Remove all backups")

    remove = sub.add_parser("remove", help="Remove storage groups (remaining ids are renumbered)")
    remove.add_argument("group_ids", nargs="+", metavar="GROUP_ID")
    remove.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    return parser


# =============================================================================
# Wiring
# =============================================================================


def resolve_config_path(args: argparse.Namespace) -> Path:
    if args.config:
        return Path(args.config).expanduser().resolve()
    root = Path(args.drive_root).expanduser() if args.drive_root else Paths.drive_root_of()
    return Paths.storage_config_file(root)


def build_prompt_source(args: argparse.Namespace, env: Mapping[str, str]) -> PromptSource:
    """
    Scripted answers win over the terminal; non-interactive without answers
    turns every prompt into an error.
    """
    non_interactive = args.non_interactive or _env_flag(env, EnvVars.NON_INTERACTIVE)
    raw_answers = args.answers if args.answers is not None else env.get(EnvVars.ANSWERS)
    answers = parse_answer_list(raw_answers)
    if answers:
        return QueuedPromptSource(answers, non_interactive=non_interactive)
    if non_interactive:
        return NonInteractivePromptSource()
    return ConsolePromptSource()


def build_enumerator(args: argparse.Namespace, env: Mapping[str, str]) -> DeviceEnumerator:
    fixture = args.fixture or env.get(EnvVars.DRIVE_FIXTURE)
    if fixture:
        _cli_logger.info(f"Using drive fixture {fixture}")
        return DeviceEnumerator(FixtureStorageApi(Path(fixture)))
    return DeviceEnumerator()


# =============================================================================
# Commands
# =============================================================================


def run_command(args: argparse.Namespace, manager: GroupManager) -> int:
    command = args.command or "menu"

    if command == "menu":
        manager.run()
        return 0

    if command == "drives":
        manager.show_drives(include_fixed=args.all)
        return 0

    if command == "groups":
        manager.show_groups()
        return 0

    wizard = manager.wizard
    if command == "add":
        outcome = manager.saved_outcome(wizard.commit_selection(WizardMode.ADD, args.master, args.backup, args.name))
    elif command == "edit":
        existing = manager.store.get(args.group_id)
        if existing is None:
            raise GroupNotFoundError(args.group_id)
        master = args.master or existing.master.serial_number
        if args.clear_backups:
            backups: List[str] = []
        elif args.backup is not None:
            backups = args.backup
        else:
            backups = [slot.serial_number for _, slot in existing.slots()[1:]]
        outcome = manager.saved_outcome(
            wizard.commit_selection(WizardMode.EDIT, master, backups, args.name, group_id=args.group_id)
        )
    elif command == "remove":
        outcome = manager.remove(args.group_ids, confirm=not args.yes)
    else:
        raise ValueError(f"Unknown command: {command}")

    manager.report(outcome)
    return 0 if outcome else 1


def main(argv: Optional[List[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code: 0 success/interrupted, 1 failure
    """
    env = os.environ if env is None else env
    args = build_parser().parse_args(argv)

    colorama.just_fix_windows_console()

    config_path = resolve_config_path(args)
    log_level = args.log_level or env.get(EnvVars.LOG_LEVEL, Defaults.LOG_LEVEL).strip().upper()
    if log_level not in LOG_LEVELS:
        log_level = Defaults.LOG_LEVEL
    setup_logging(Paths.logs_dir_for_config(config_path), level=log_level)
    _cli_logger.info(f"mediadrive {VERSION} command={args.command or 'menu'} config={config_path}")

    output = CLIOutput.detect()
    try:
        enumerator = build_enumerator(args, env)
        manager = GroupManager(GroupStore(config_path), enumerator, build_prompt_source(args, env), output)
        return run_command(args, manager)
    except KeyboardInterrupt:
        output.blank()
        output.log("Goodbye!")
        return 0
    except StorageGroupError as e:
        _cli_logger.error(f"{type(e).__name__}: {e}")
        output.error(str(e))
        return 1
    except Exception as e:
        _cli_logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
