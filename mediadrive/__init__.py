# MediaDrive core modules
# Storage groups: one Master drive plus Backup drives, tracked by serial number.
# =============================================================================
# Version
# =============================================================================
from .version import VERSION

# =============================================================================
# Public API
# =============================================================================
from .drives import DeviceEnumerator, DriveRecord
from .errors import (
    ConfigWriteError,
    DuplicateSerialError,
    GroupNotFoundError,
    MissingCollaboratorError,
    NonInteractiveInputError,
    StorageGroupError,
)
from .groups import GroupStore, StorageDriveConfig, StorageGroupConfig

__version__ = VERSION

__all__ = [
    # Version
    "VERSION",
    # Drives
    "DeviceEnumerator",
    "DriveRecord",
    # Groups
    "GroupStore",
    "StorageDriveConfig",
    "StorageGroupConfig",
    # Errors
    "StorageGroupError",
    "GroupNotFoundError",
    "DuplicateSerialError",
    "NonInteractiveInputError",
    "MissingCollaboratorError",
    "ConfigWriteError",
]
