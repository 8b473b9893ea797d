# mediadrive/limits.py - SINGLE SOURCE OF TRUTH for timeouts, sizes, thresholds
"""
All numeric limits, timeouts, and thresholds MUST be defined here.
No other module may define these values.
"""


class Limits:
    """Operational limits and thresholds."""

    # ==========================================================================
    # Timeouts (seconds)
    # ==========================================================================

    # Full PowerShell/CIM storage inventory (all disks, partitions, volumes)
    POWERSHELL_INVENTORY_TIMEOUT = 60

    # lsblk inventory on Linux
    LSBLK_TIMEOUT = 15

    # ==========================================================================
    # Device classification
    # ==========================================================================

    # Win32_LogicalDisk.DriveType value for removable media
    DRIVE_TYPE_REMOVABLE = 2

    # Win32_LogicalDisk.DriveType value for fixed disks
    DRIVE_TYPE_FIXED = 3

    # ==========================================================================
    # Size formatting
    # ==========================================================================

    BYTES_PER_GB = 1024 ** 3

    # Decimal places kept for *_space_gb fields
    SPACE_GB_DECIMALS = 3

    # ==========================================================================
    # Logging
    # ==========================================================================

    LOG_MAX_BYTES = 5 * 1024 * 1024  # 5MB
    LOG_BACKUP_COUNT = 3
