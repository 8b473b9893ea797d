# mediadrive/paths.py - SINGLE SOURCE OF TRUTH for all filesystem paths
"""
All filesystem paths MUST be defined here as Path objects.
No other module may construct filesystem paths.

RULES:
- All paths are Path objects internally
- Convert to str() ONLY at I/O boundaries (subprocess, JSON, print)
- Use Path arithmetic (/) for joins, never string concatenation
"""

from pathlib import Path
from typing import Optional

from mediadrive.constants import FileNames


class Paths:
    """
    Centralized path definitions. All paths are Path objects.

    Usage:
        from mediadrive.paths import Paths
        config_path = Paths.storage_config_file(drive_root)
    """

    @classmethod
    def data_dir(cls, drive_root: Path) -> Path:
        """Hidden MediaDrive directory under a drive root."""
        return Path(drive_root) / FileNames.DATA_DIR

    @classmethod
    def storage_config_file(cls, drive_root: Path) -> Path:
        """Storage group file: one per drive root, at a fixed relative path."""
        return cls.data_dir(drive_root) / FileNames.STORAGE_CONFIG

    @classmethod
    def logs_dir_for_config(cls, config_path: Path) -> Path:
        """Logs live next to the storage file, wherever --config points."""
        return Path(config_path).parent / FileNames.LOGS_DIR

    @classmethod
    def drive_root_of(cls, path: Optional[Path] = None) -> Path:
        """
        Return the drive root hosting ``path``.

        On Windows this is the drive anchor (``E:\\``). On Unix there is no
        drive letter, so the nearest mount point above ``path`` is used.

        Args:
            path: Any path on the drive (default: this package's location)

        Returns:
            Drive root as a Path
        """
        path = Path(path or __file__).resolve()

        if path.drive:
            return Path(path.anchor)

        current = path if path.is_dir() else path.parent
        while not current.is_mount() and current != current.parent:
            current = current.parent
        return current
