# mediadrive/errors.py - Exception hierarchy for storage group operations
"""
Typed errors raised by the storage group engine.

Expected degradations (no storage API, device without a join partner, missing
config file) are NOT errors and never raise. Everything here carries enough
context (group id, serial, property name, path) for the caller to act on.
"""

from pathlib import Path
from typing import List


class StorageGroupError(Exception):
    """Base exception for storage group operations."""

    pass


class GroupNotFoundError(StorageGroupError):
    """Raised when an operation targets a group id that is not configured."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Storage group '{group_id}' does not exist")


class DuplicateSerialError(StorageGroupError):
    """
    Raised in non-interactive mode when a candidate serial is already assigned.

    Attributes:
        conflicts: List of DuplicateConflict entries (see mediadrive.duplicates)
    """

    def __init__(self, conflicts: List):
        self.conflicts = list(conflicts)
        details = "; ".join(
            f"serial '{c.serial}' is {c.slot_label} of group {c.group_id} ({c.label or 'no label'})"
            for c in self.conflicts
        )
        super().__init__(f"Duplicate drive assignment: {details}")


class NonInteractiveInputError(StorageGroupError):
    """Raised when a prompt is reached while running non-interactively."""

    def __init__(self, prompt: str):
        self.prompt = prompt
        super().__init__(f"Input required but running non-interactively: {prompt.strip()}")


class MissingCollaboratorError(StorageGroupError):
    """Raised when a required collaborator (file path, enumerator, ...) was not provided."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required collaborator '{name}' is not configured")


class ConfigWriteError(StorageGroupError):
    """Raised when the storage group file could not be written."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write storage config {self.path}: {reason}")
