# mediadrive/groups.py - Storage group model and persistence (GroupStore)
"""
Storage groups: one Master drive plus ordered Backup drives, persisted as

    {
      "1": {"DisplayName": "Movies",
            "Master": {"Label": "MEDIA_A", "SerialNumber": "ABC123"},
            "Backup": {"1": {"Label": "MEDIA_B", "SerialNumber": "DEF456"}}},
      "2": {...}
    }

in one JSON file per drive root (see Paths.storage_config_file).

Every mutation runs the same cycle:

    read full map from disk -> apply ONE add/edit/remove -> write full map -> reload

write_groups() assigns contiguous keys (groups 1..N, backups 1..M), so the
reload after a removal is what renumbers the remaining groups. There is no
incremental in-place renumbering anywhere.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from mediadrive.config import read_config, write_config_atomic
from mediadrive.constants import ConfigKeys, Defaults
from mediadrive.errors import ConfigWriteError, MissingCollaboratorError
from mediadrive.logs import get_logger

_groups_logger = get_logger("groups")


# =============================================================================
# Model
# =============================================================================


def default_display_name(group_id: str) -> str:
    return Defaults.DISPLAY_NAME_TEMPLATE.format(group_id=group_id)


def _numeric_key(key: str) -> int:
    """Sort key for string ids; non-numeric ids sort last."""
    try:
        return int(str(key).strip())
    except ValueError:
        return 2 ** 31


@dataclass
class StorageDriveConfig:
    """
    One Master or Backup slot.

    drive_letter is resolved at runtime by the status resolver and is
    NEVER persisted.
    """

    label: str = ""
    serial_number: str = ""
    drive_letter: str = ""

    @property
    def is_available(self) -> bool:
        return bool(self.drive_letter)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "StorageDriveConfig":
        data = data if isinstance(data, dict) else {}
        return cls(
            label=str(data.get(ConfigKeys.LABEL) or "").strip(),
            serial_number=str(data.get(ConfigKeys.SERIAL_NUMBER) or ""),
        )

    def to_dict(self) -> dict:
        return {
            ConfigKeys.LABEL: self.label,
            ConfigKeys.SERIAL_NUMBER: self.serial_number,
        }


@dataclass
class StorageGroupConfig:
    """A named storage group. Backups are ordered by their numeric slot key."""

    group_id: str
    display_name: str = ""
    master: StorageDriveConfig = field(default_factory=StorageDriveConfig)
    backups: Dict[str, StorageDriveConfig] = field(default_factory=dict)

    def __post_init__(self):
        self.group_id = str(self.group_id).strip()
        if not (self.display_name or "").strip():
            self.display_name = default_display_name(self.group_id)

    @classmethod
    def from_dict(cls, group_id: str, data: Optional[dict]) -> "StorageGroupConfig":
        """Single deserialization entry point for one persisted group."""
        data = data if isinstance(data, dict) else {}
        raw_backups = data.get(ConfigKeys.BACKUP)
        backups = {}
        if isinstance(raw_backups, dict):
            for slot in sorted(raw_backups, key=_numeric_key):
                backups[str(slot)] = StorageDriveConfig.from_dict(raw_backups[slot])
        elif isinstance(raw_backups, list):
            # Tolerate hand-edited files that store backups as a list
            for index, entry in enumerate(raw_backups, start=1):
                backups[str(index)] = StorageDriveConfig.from_dict(entry)
        return cls(
            group_id=group_id,
            display_name=str(data.get(ConfigKeys.DISPLAY_NAME) or "").strip(),
            master=StorageDriveConfig.from_dict(data.get(ConfigKeys.MASTER)),
            backups=backups,
        )

    def to_dict(self) -> dict:
        """Persisted form. Backup keys are re-numbered 1..M in slot order."""
        ordered = [self.backups[k] for k in sorted(self.backups, key=_numeric_key)]
        return {
            ConfigKeys.DISPLAY_NAME: self.display_name,
            ConfigKeys.MASTER: self.master.to_dict(),
            ConfigKeys.BACKUP: {str(i): drive.to_dict() for i, drive in enumerate(ordered, start=1)},
        }

    def slots(self) -> List[tuple]:
        """All (slot_label, StorageDriveConfig) pairs, Master first."""
        pairs = [("Master", self.master)]
        for key in sorted(self.backups, key=_numeric_key):
            pairs.append((f"Backup {key}", self.backups[key]))
        return pairs

    def serials(self) -> List[str]:
        return [drive.serial_number for _, drive in self.slots() if drive.serial_number.strip()]


# =============================================================================
# File-level operations
# =============================================================================


def load_groups(path: Path) -> Dict[str, StorageGroupConfig]:
    """
    Load the group map from disk.

    Returns {} (not an error) when the file is absent or unparsable. Entries
    that are not objects are dropped with a warning.
    """
    raw = read_config(path)
    groups: Dict[str, StorageGroupConfig] = {}
    for key in sorted(raw, key=_numeric_key):
        entry = raw[key]
        if not isinstance(entry, dict):
            _groups_logger.warning(f"Ignoring malformed storage group entry '{key}' in {path}")
            continue
        groups[str(key)] = StorageGroupConfig.from_dict(str(key), entry)
    _groups_logger.debug(f"Loaded {len(groups)} storage group(s) from {path}")
    return groups


def write_groups(path: Path, groups: Dict[str, StorageGroupConfig]) -> None:
    """
    Rewrite the whole file. The ONLY write path for storage groups.

    Groups are written in numeric key order under contiguous keys 1..N.

    Raises:
        ConfigWriteError: If the file could not be written
    """
    ordered = [groups[k] for k in sorted(groups, key=_numeric_key)]
    payload = {str(i): group.to_dict() for i, group in enumerate(ordered, start=1)}
    try:
        write_config_atomic(path, payload)
    except (OSError, TypeError, ValueError) as e:
        raise ConfigWriteError(path, str(e)) from e
    _groups_logger.info(f"Wrote {len(payload)} storage group(s) to {path}")


def next_group_id(groups: Dict[str, StorageGroupConfig]) -> str:
    """(max numeric key) + 1, or "1" if there are none."""
    numeric = []
    for key in groups:
        try:
            numeric.append(int(str(key).strip()))
        except ValueError:
            continue
    if not numeric:
        return Defaults.FIRST_GROUP_ID
    return str(max(numeric) + 1)


# =============================================================================
# GroupStore
# =============================================================================


class GroupStore:
    """
    Process-wide storage group map backed by one file.

    Loaded lazily on first access. Mutations always go through
    read full map -> apply -> write full map -> reload, so the in-memory map
    never diverges from what was actually persisted.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path is not None else None
        self._groups: Optional[Dict[str, StorageGroupConfig]] = None

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    @property
    def groups(self) -> Dict[str, StorageGroupConfig]:
        if self._groups is None:
            self.reload()
        return self._groups

    def reload(self) -> Dict[str, StorageGroupConfig]:
        if self.config_path is None:
            self._groups = {}
        else:
            self._groups = load_groups(self.config_path)
        return self._groups

    def get(self, group_id: str) -> Optional[StorageGroupConfig]:
        return self.groups.get(str(group_id).strip())

    def is_empty(self) -> bool:
        return not self.groups

    def group_ids(self) -> List[str]:
        return sorted(self.groups, key=_numeric_key)

    def next_group_id(self) -> str:
        return next_group_id(self.groups)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _require_path(self) -> Path:
        if self.config_path is None:
            raise MissingCollaboratorError("config_path")
        return self.config_path

    def _commit(self, groups: Dict[str, StorageGroupConfig]) -> None:
        path = self._require_path()
        try:
            write_groups(path, groups)
        finally:
            # Whatever happened, memory reflects the file on disk
            self.reload()

    def save_group(self, group: StorageGroupConfig) -> StorageGroupConfig:
        """
        Add or replace one group.

        Args:
            group: Group to store under group.group_id

        Returns:
            The stored group as reloaded from disk

        Raises:
            MissingCollaboratorError: No config path configured
            ConfigWriteError: Write failed
        """
        path = self._require_path()
        current = load_groups(path)
        action = "Updating" if group.group_id in current else "Adding"
        _groups_logger.info(f"{action} storage group {group.group_id} '{group.display_name}'")
        current[group.group_id] = group
        self._commit(current)

        # Keys are contiguous after the rewrite; a new group keeps its position
        ordered = sorted(current, key=_numeric_key)
        stored_id = str(ordered.index(group.group_id) + 1)
        return self.groups[stored_id]

    def remove_groups(self, group_ids: Iterable[str]) -> List[str]:
        """
        Remove groups and renumber the rest by rewrite + reload.

        Ids not present are logged and ignored. If none are present the call
        is a no-op: nothing is written.

        Returns:
            The ids that were actually removed (pre-renumbering ids)
        """
        path = self._require_path()
        current = load_groups(path)
        removed = []
        for group_id in group_ids:
            key = str(group_id).strip()
            if key in current:
                del current[key]
                removed.append(key)
            else:
                _groups_logger.info(f"Storage group '{key}' not found, ignoring removal")

        if not removed:
            _groups_logger.info("No storage groups removed; config left untouched")
            return []

        _groups_logger.info(f"Removing storage group(s) {', '.join(removed)}")
        self._commit(current)
        return removed
