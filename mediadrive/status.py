# mediadrive/status.py - Match persisted serials against attached drives
"""
Status resolution: fill in StorageDriveConfig.drive_letter for every slot
whose serial belongs to a currently enumerated drive.

Only drive_letter is ever touched; serial numbers are the identity and stay
exactly as persisted. Resolution is idempotent for the same inputs.
"""

from typing import Dict, Iterable, List, Optional

from mediadrive.drives import DeviceEnumerator, DriveRecord
from mediadrive.groups import StorageGroupConfig
from mediadrive.logs import get_logger

_status_logger = get_logger("status")


def find_drive(serial_number: str, drives: Iterable[DriveRecord]) -> Optional[DriveRecord]:
    """First drive whose trimmed serial equals the trimmed serial (case-sensitive)."""
    wanted = (serial_number or "").strip()
    if not wanted:
        return None
    for drive in drives:
        if (drive.serial_number or "").strip() == wanted:
            return drive
    return None


def resolve_status(groups: Dict[str, StorageGroupConfig], drives: List[DriveRecord]) -> None:
    """
    Set drive_letter on every Master/Backup slot from the given snapshot.

    Slots without a serial, or whose serial is not attached, get a blank
    drive_letter, which display code shows as "unavailable".
    """
    available = 0
    total = 0
    for group_id, group in groups.items():
        for slot_label, slot in group.slots():
            if not (slot.serial_number or "").strip():
                slot.drive_letter = ""
                continue
            total += 1
            drive = find_drive(slot.serial_number, drives)
            slot.drive_letter = drive.drive_letter if drive else ""
            if drive:
                available += 1
            _status_logger.debug(
                f"Group {group_id} {slot_label} [{slot.serial_number}] -> {slot.drive_letter or 'unavailable'}"
            )
    _status_logger.info(f"Status resolved: {available}/{total} assigned drive(s) available")


class StatusResolver:
    """Re-enumerates drives and annotates groups with live availability."""

    def __init__(self, enumerator: DeviceEnumerator):
        self.enumerator = enumerator

    def refresh(self, groups: Dict[str, StorageGroupConfig], drives: Optional[List[DriveRecord]] = None) -> List[DriveRecord]:
        """
        Resolve status for all groups.

        Args:
            groups: Group map to annotate in place
            drives: Snapshot to use (default: enumerate now)

        Returns:
            The drive snapshot used
        """
        if drives is None:
            drives = self.enumerator.list_drives()
        resolve_status(groups, drives)
        return drives
