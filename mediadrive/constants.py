# mediadrive/constants.py - SINGLE SOURCE OF TRUTH for all shared string literals
"""
All shared string constants MUST be defined here.
No other module may define these values.

Categories:
- ConsoleStyle: Unicode vs ASCII-safe output mode
- ConfigKeys: JSON keys of the storage group file
- UserInputs: Fixed user answers for prompts and menus
- EnvVars: Environment variables read by the CLI wiring
- FileNames: File and directory names on the drive
- Prompts: User-facing prompts and standardized messages
- Defaults: Default values
"""

import os
import platform

# =============================================================================
# Console Style - Unicode vs ASCII-safe output
# =============================================================================


class ConsoleStyle:
    """
    Console output style selection for unicode vs ASCII-safe rendering.

    Elevated PowerShell on Windows often has broken UTF-8 support, causing
    symbols to render as garbage characters. This class provides ASCII fallbacks.

    Usage:
        style = ConsoleStyle.detect()
        print(style.SUCCESS + " Group saved")
    """

    UNICODE = "unicode"
    ASCII = "ascii"

    _SYMBOLS = {
        UNICODE: {
            "SUCCESS": "✓",
            "FAILURE": "✗",
            "WARNING": "⚠",
            "INFO": "ℹ",
            "MENU_DOUBLE": "═",
        },
        ASCII: {
            "SUCCESS": "[OK]",
            "FAILURE": "[X]",
            "WARNING": "[!]",
            "INFO": "[i]",
            "MENU_DOUBLE": "=",
        },
    }

    def __init__(self, mode: str = None):
        """Initialize with specified mode or auto-detect."""
        self._mode = mode or self.detect_mode()

    @classmethod
    def detect_mode(cls) -> str:
        """
        Auto-detect console style based on environment.

        Returns ASCII mode if:
        - MEDIADRIVE_ASCII or NO_COLOR environment variable is set
        - Running in a legacy (non UTF-8) Windows console
        """
        if os.environ.get(EnvVars.ASCII, "").lower() in ("1", "true", "yes"):
            return cls.ASCII
        if os.environ.get("NO_COLOR"):
            return cls.ASCII

        if platform.system().lower() == "windows":
            # Windows Terminal handles UTF-8 fine
            if os.environ.get("WT_SESSION"):
                return cls.UNICODE
            try:
                import ctypes

                if ctypes.windll.kernel32.GetConsoleOutputCP() != 65001:
                    return cls.ASCII
            except (AttributeError, OSError):
                return cls.ASCII

        return cls.UNICODE

    @classmethod
    def detect(cls) -> "ConsoleStyle":
        """Factory method to create ConsoleStyle with auto-detection."""
        return cls(cls.detect_mode())

    @property
    def mode(self) -> str:
        """Current mode (UNICODE or ASCII)."""
        return self._mode

    def symbol(self, name: str) -> str:
        """Get symbol by name for current mode."""
        return self._SYMBOLS.get(self._mode, self._SYMBOLS[self.UNICODE]).get(name, "")

    @property
    def SUCCESS(self) -> str:
        return self.symbol("SUCCESS")

    @property
    def FAILURE(self) -> str:
        return self.symbol("FAILURE")

    @property
    def WARNING(self) -> str:
        return self.symbol("WARNING")

    @property
    def INFO(self) -> str:
        return self.symbol("INFO")


# =============================================================================
# Storage Group File Keys
# =============================================================================


class ConfigKeys:
    """All storage group file keys. Use these instead of string literals."""

    DISPLAY_NAME = "DisplayName"
    MASTER = "Master"
    BACKUP = "Backup"

    # Drive slot keys
    LABEL = "Label"
    SERIAL_NUMBER = "SerialNumber"


# =============================================================================
# User Inputs
# =============================================================================


class UserInputs:
    """Fixed user answers. Comparison is always case-insensitive."""

    # Navigation (any wizard or menu prompt)
    BACK = "B"
    CANCEL = "C"

    # Yes/no confirmations
    YES_WORDS = ("Y", "YES")

    # Backup selection: explicit "no backups"
    NO_BACKUPS = "0"

    # Separator for multi-selection answers
    LIST_SEPARATOR = ","


# =============================================================================
# Environment Variables (read by CLI wiring only)
# =============================================================================


class EnvVars:
    """Environment variables consulted by mediadrive.cli.main."""

    NON_INTERACTIVE = "MEDIADRIVE_NONINTERACTIVE"
    ANSWERS = "MEDIADRIVE_ANSWERS"
    DRIVE_FIXTURE = "MEDIADRIVE_DRIVE_FIXTURE"
    LOG_LEVEL = "MEDIADRIVE_LOG_LEVEL"
    ASCII = "MEDIADRIVE_ASCII"


# =============================================================================
# File Names
# =============================================================================


class FileNames:
    """File and directory names stored under a drive root."""

    DATA_DIR = ".mediadrive"
    STORAGE_CONFIG = "storage.json"
    LOGS_DIR = "logs"
    LOG_FILE = "mediadrive.log"

    # Temp file prefix for atomic writes
    ATOMIC_PREFIX = "storage_"
    ATOMIC_SUFFIX = ".tmp"


# =============================================================================
# Prompts and Messages
# =============================================================================


class Prompts:
    """User-facing prompts and standardized messages."""

    # Wizard
    DISPLAY_NAME = "Display name [{default}] (B=back, C=cancel): "
    SELECT_MASTER = "Select master drive [1-{count}] (B=back, C=cancel): "
    SELECT_MASTER_KEEP = "Select master drive [1-{count}, Enter=keep current] (B=back, C=cancel): "
    SELECT_BACKUPS = "Select backup drives, comma separated [1-{count}, 0=none] (B=back, C=cancel): "
    SELECT_BACKUPS_KEEP = (
        "Select backup drives, comma separated [1-{count}, 0=none, Enter=keep current] (B=back, C=cancel): "
    )
    CONFIRM_DUPLICATES = "Assign these drives anyway? [y/N]: "
    CONFIRM_REMOVE = "Remove storage group(s) {ids}? [y/N]: "

    # Group manager
    MENU_CHOICE = "Your choice [{choices}]: "
    SELECT_GROUP = "Storage group id [{ids}] (B=back): "
    SELECT_GROUPS = "Storage group id(s) to remove, comma separated [{ids}] (B=back): "

    # Outcomes
    NO_CHANGES = "No changes made."
    OPERATION_CANCELLED = "Operation cancelled."
    GROUP_SAVED = "Storage group {group_id} '{name}' saved."
    GROUPS_REMOVED = "Removed storage group(s): {ids}."
    NOTHING_REMOVED = "No matching storage groups; nothing removed."
    NO_CANDIDATES = "No removable drives available for assignment."
    UNAVAILABLE = "unavailable"

    # Headers
    GROUPS_HEADER = "STORAGE GROUPS"
    DRIVES_HEADER = "AVAILABLE DRIVES"
    WIZARD_ADD_HEADER = "ADD STORAGE GROUP"
    WIZARD_EDIT_HEADER = "EDIT STORAGE GROUP {group_id}"


# =============================================================================
# Default Values
# =============================================================================


class Defaults:
    """Default values."""

    DISPLAY_NAME_TEMPLATE = "Storage Group {group_id}"
    FIRST_GROUP_ID = "1"
    LOG_LEVEL = "INFO"
