# mediadrive/drives.py - Device discovery: raw storage inventory -> DriveRecord
"""
DeviceEnumerator joins raw OS storage records into a normalized drive view.

Join order (leaves are skipped silently, the enumeration continues):

    physical disk --(disk index)--> disk metadata      no metadata   -> skip disk
        |                                               no partitions -> skip disk
        +-- partition --> logical disk(s)               none          -> skip partition
                             |
                             +--(drive letter)--> volume   no volume -> skip logical disk
                                                                        ("not ready")

The OS storage API is abstracted behind StorageApi so tests (and --fixture
runs) can substitute a fixed inventory:

- PowerShellStorageApi: Windows, one CIM/Storage-module inventory script
- LsblkStorageApi: Linux, lsblk JSON (mount points stand in for drive letters)
- FixtureStorageApi: same inventory shape from a JSON file or mapping
- UnsupportedStorageApi: any other host -> enumeration yields []

list_drives() NEVER raises.
"""

import json
import platform
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from mediadrive.limits import Limits
from mediadrive.logs import get_logger

_drives_logger = get_logger("drives")

USB_BUS = "USB"


# =============================================================================
# Drive Record
# =============================================================================


@dataclass
class DriveRecord:
    """
    One mounted logical disk joined with its physical disk metadata.

    Ephemeral: rebuilt on every enumeration. serial_number is the only field
    with identity meaning; disk_number and drive_letter are volatile.
    """

    label: str = ""
    drive_letter: str = ""
    disk_number: Optional[int] = None
    manufacturer: str = ""
    model: str = ""
    serial_number: str = ""
    name: str = ""
    file_system: str = ""
    partition_kind: str = ""
    total_space_gb: float = 0.0
    free_space_gb: float = 0.0
    used_space_gb: float = 0.0
    health_status: str = ""
    bus_type: str = ""
    interface_type: str = ""
    drive_type_code: Optional[int] = None
    is_removable: bool = False

    @property
    def is_usb(self) -> bool:
        """True when either the bus type or the interface type is USB."""
        return _is_usb(self.bus_type) or _is_usb(self.interface_type)


def _is_usb(value: Optional[str]) -> bool:
    return value == USB_BUS


def is_removable_drive(drive_type_code: Optional[int], bus_type: Optional[str], interface_type: Optional[str]) -> bool:
    """
    Removability rule: removable media type OR USB bus OR USB interface.

    Blank or absent values never match "USB".
    """
    return drive_type_code == Limits.DRIVE_TYPE_REMOVABLE or _is_usb(bus_type) or _is_usb(interface_type)


def normalize_drive_letter(value: Any) -> str:
    """
    Normalize a drive letter for comparison: "e", "E:", "E:\\" -> "E".

    Anything that is not a single-letter drive (e.g. a Unix mount point) is
    returned stripped but otherwise unchanged.
    """
    text = str(value or "").strip()
    if text[:1].isalpha() and text[1:] in ("", ":", ":\\", ":/"):
        return text[0].upper()
    return text


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_gb(size_bytes: Any) -> float:
    size = _to_int(size_bytes) or 0
    return round(size / Limits.BYTES_PER_GB, Limits.SPACE_GB_DECIMALS)


def _as_list(value: Any) -> List[Any]:
    """PowerShell ConvertTo-Json emits a bare object for one-element arrays."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _describe(item: Any, key: str) -> str:
    """Identify an inventory item for log lines; non-objects are named by type."""
    if isinstance(item, dict):
        return str(item.get(key, "?"))
    return f"<{type(item).__name__}>"


# =============================================================================
# Storage API collaborator
# =============================================================================


class StorageApiUnavailableError(RuntimeError):
    """The host storage API cannot be queried on this system."""

    pass


class StorageApi(ABC):
    """
    Narrow interface over the OS storage API.

    refresh() queries everything at once and may raise; the lookups only
    serve the data captured by the last refresh().
    """

    @abstractmethod
    def refresh(self) -> None:
        """Query the OS storage API. Raises on failure."""

    @abstractmethod
    def physical_disks(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def disk_metadata(self, disk_index: int) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def partitions(self, physical_disk: Dict[str, Any]) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def logical_disks(self, partition: Dict[str, Any]) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def volume(self, drive_letter: str) -> Optional[Dict[str, Any]]:
        pass


class InventoryStorageApi(StorageApi):
    """
    StorageApi backed by an inventory mapping.

    Inventory shape (keys follow the Windows CIM/Storage property names):

        {
          "PhysicalDisks": [{"Index": 1, "Model": ..., "SerialNumber": ...,
                             "InterfaceType": "USB", "Caption": ...,
                             "Partitions": [{"DeviceID": ..., "Type": ...,
                                             "LogicalDisks": [{"DeviceID": "E:",
                                                 "VolumeName": ..., "FileSystem": ...,
                                                 "Size": ..., "FreeSpace": ...,
                                                 "DriveType": 2}]}]}],
          "Disks": [{"Number": 1, "FriendlyName": ..., "Manufacturer": ...,
                     "Model": ..., "SerialNumber": ..., "PartitionStyle": "GPT",
                     "BusType": "USB", "HealthStatus": "Healthy"}],
          "Volumes": [{"DriveLetter": "E", "FileSystemLabel": ...,
                       "FileSystem": ..., "HealthStatus": "Healthy"}]
        }
    """

    def __init__(self):
        self._inventory: Dict[str, Any] = {}

    @abstractmethod
    def _load_inventory(self) -> Dict[str, Any]:
        """Produce a fresh inventory mapping. Raises on failure."""

    def refresh(self) -> None:
        inventory = self._load_inventory()
        if not isinstance(inventory, dict):
            raise ValueError(f"Storage inventory must be an object, got {type(inventory).__name__}")
        self._inventory = inventory

    def physical_disks(self) -> List[Dict[str, Any]]:
        return _as_list(self._inventory.get("PhysicalDisks"))

    def disk_metadata(self, disk_index: int) -> Optional[Dict[str, Any]]:
        for disk in _as_list(self._inventory.get("Disks")):
            if isinstance(disk, dict) and _to_int(disk.get("Number")) == disk_index:
                return disk
        return None

    def partitions(self, physical_disk: Dict[str, Any]) -> List[Dict[str, Any]]:
        return _as_list(physical_disk.get("Partitions"))

    def logical_disks(self, partition: Dict[str, Any]) -> List[Dict[str, Any]]:
        return _as_list(partition.get("LogicalDisks"))

    def volume(self, drive_letter: str) -> Optional[Dict[str, Any]]:
        key = normalize_drive_letter(drive_letter)
        if not key:
            return None
        for volume in _as_list(self._inventory.get("Volumes")):
            if isinstance(volume, dict) and normalize_drive_letter(volume.get("DriveLetter")) == key:
                return volume
        return None


# -----------------------------------------------------------------------------
# Windows
# -----------------------------------------------------------------------------

# One round trip: CIM associations for the disk -> partition -> logical disk
# chain, Storage module cmdlets for metadata and volumes.
POWERSHELL_INVENTORY_SCRIPT = r"""
$ErrorActionPreference = 'Stop'
$physical = Get-CimInstance -ClassName Win32_DiskDrive | ForEach-Object {
    $drive = $_
    $partitions = Get-CimAssociatedInstance -InputObject $drive -ResultClassName Win32_DiskPartition | ForEach-Object {
        $partition = $_
        $logical = Get-CimAssociatedInstance -InputObject $partition -ResultClassName Win32_LogicalDisk | ForEach-Object {
            @{
                DeviceID = $_.DeviceID
                VolumeName = $_.VolumeName
                FileSystem = $_.FileSystem
                Size = $_.Size
                FreeSpace = $_.FreeSpace
                DriveType = $_.DriveType
            }
        }
        @{
            DeviceID = $partition.DeviceID
            Type = $partition.Type
            LogicalDisks = @($logical)
        }
    }
    @{
        Index = $drive.Index
        Caption = $drive.Caption
        Manufacturer = $drive.Manufacturer
        Model = $drive.Model
        SerialNumber = $drive.SerialNumber
        InterfaceType = $drive.InterfaceType
        Partitions = @($partitions)
    }
}
$disks = Get-Disk | ForEach-Object {
    @{
        Number = $_.Number
        FriendlyName = $_.FriendlyName
        Manufacturer = $_.Manufacturer
        Model = $_.Model
        SerialNumber = $_.SerialNumber
        PartitionStyle = $_.PartitionStyle.ToString()
        BusType = $_.BusType.ToString()
        HealthStatus = $_.HealthStatus.ToString()
    }
}
$volumes = Get-Volume | Where-Object { $_.DriveLetter } | ForEach-Object {
    @{
        DriveLetter = [string]$_.DriveLetter
        FileSystemLabel = $_.FileSystemLabel
        FileSystem = $_.FileSystem
        HealthStatus = $_.HealthStatus.ToString()
    }
}
@{
    PhysicalDisks = @($physical)
    Disks = @($disks)
    Volumes = @($volumes)
} | ConvertTo-Json -Depth 6 -Compress
"""


class PowerShellStorageApi(InventoryStorageApi):
    """Windows storage inventory via PowerShell (CIM + Storage module)."""

    def __init__(self, timeout: int = Limits.POWERSHELL_INVENTORY_TIMEOUT):
        super().__init__()
        self.timeout = timeout

    def _load_inventory(self) -> Dict[str, Any]:
        result = subprocess.run(
            ["powershell", "-NoProfile", "-NonInteractive", "-Command", POWERSHELL_INVENTORY_SCRIPT],
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )
        if result.returncode != 0:
            raise StorageApiUnavailableError(f"PowerShell inventory failed: {result.stderr.strip()}")
        if not result.stdout.strip():
            return {}
        return json.loads(result.stdout)


# -----------------------------------------------------------------------------
# Linux
# -----------------------------------------------------------------------------

LSBLK_COLUMNS = "NAME,PATH,TYPE,SIZE,FSTYPE,LABEL,MOUNTPOINT,SERIAL,MODEL,VENDOR,TRAN,RM,PTTYPE"

_PARTITION_STYLES = {"gpt": "GPT", "dos": "MBR"}


class LsblkStorageApi(InventoryStorageApi):
    """
    Linux storage inventory via ``lsblk -J -b``.

    Mount points take the place of drive letters; space figures come from
    shutil.disk_usage() on the mount point.
    """

    def __init__(self, timeout: int = Limits.LSBLK_TIMEOUT):
        super().__init__()
        self.timeout = timeout

    def _run_lsblk(self) -> Dict[str, Any]:
        result = subprocess.run(
            ["lsblk", "-J", "-b", "-o", LSBLK_COLUMNS],
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )
        if result.returncode != 0:
            raise StorageApiUnavailableError(f"lsblk failed: {result.stderr.strip()}")
        return json.loads(result.stdout)

    def _load_inventory(self) -> Dict[str, Any]:
        return self.inventory_from_lsblk(self._run_lsblk())

    @staticmethod
    def inventory_from_lsblk(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Translate lsblk JSON into the inventory shape.

        Args:
            data: Parsed ``lsblk -J -b`` output

        Returns:
            Inventory mapping (see InventoryStorageApi)
        """
        physical_disks = []
        disks = []
        volumes = []

        block_devices = [d for d in data.get("blockdevices", []) if d.get("type") == "disk"]

        for index, device in enumerate(block_devices):
            removable = str(device.get("rm")).lower() in ("1", "true")
            transport = _clean(device.get("tran")).upper()
            path = device.get("path") or f"/dev/{device.get('name', '')}"

            partitions = []
            for child in device.get("children") or []:
                mountpoint = child.get("mountpoint")
                logical_disks = []
                if mountpoint:
                    try:
                        usage = shutil.disk_usage(mountpoint)
                        total, free = usage.total, usage.free
                    except OSError as e:
                        _drives_logger.debug(f"disk_usage failed for {mountpoint}: {e}")
                        total, free = child.get("size"), None
                    logical_disks.append(
                        {
                            "DeviceID": mountpoint,
                            "VolumeName": child.get("label"),
                            "FileSystem": child.get("fstype"),
                            "Size": total,
                            "FreeSpace": free,
                            "DriveType": Limits.DRIVE_TYPE_REMOVABLE if removable else Limits.DRIVE_TYPE_FIXED,
                        }
                    )
                    volumes.append(
                        {
                            "DriveLetter": mountpoint,
                            "FileSystemLabel": child.get("label"),
                            "FileSystem": child.get("fstype"),
                            "HealthStatus": "Unknown",
                        }
                    )
                partitions.append(
                    {
                        "DeviceID": child.get("path") or child.get("name"),
                        "Type": child.get("fstype"),
                        "LogicalDisks": logical_disks,
                    }
                )

            physical_disks.append(
                {
                    "Index": index,
                    "Caption": path,
                    "Manufacturer": device.get("vendor"),
                    "Model": device.get("model"),
                    "SerialNumber": device.get("serial"),
                    "InterfaceType": transport,
                    "Partitions": partitions,
                }
            )
            disks.append(
                {
                    "Number": index,
                    "FriendlyName": _clean(device.get("model")) or path,
                    "Manufacturer": device.get("vendor"),
                    "Model": device.get("model"),
                    "SerialNumber": device.get("serial"),
                    "PartitionStyle": _PARTITION_STYLES.get(_clean(device.get("pttype")).lower(), "RAW"),
                    "BusType": transport,
                    "HealthStatus": "Unknown",
                }
            )

        return {"PhysicalDisks": physical_disks, "Disks": disks, "Volumes": volumes}


# -----------------------------------------------------------------------------
# Fixtures / unsupported hosts
# -----------------------------------------------------------------------------


class FixtureStorageApi(InventoryStorageApi):
    """Fixed inventory for deterministic tests and --fixture runs."""

    def __init__(self, source: Union[Path, str, Dict[str, Any]]):
        super().__init__()
        self.source = source

    def _load_inventory(self) -> Dict[str, Any]:
        if isinstance(self.source, dict):
            return self.source
        with open(Path(self.source), "r", encoding="utf-8") as f:
            return json.load(f)


class UnsupportedStorageApi(StorageApi):
    """Stand-in for hosts without a supported storage API."""

    def __init__(self, system: str = ""):
        self.system = system or platform.system()

    def refresh(self) -> None:
        raise StorageApiUnavailableError(f"No storage API available on {self.system}")

    def physical_disks(self) -> List[Dict[str, Any]]:
        return []

    def disk_metadata(self, disk_index: int) -> Optional[Dict[str, Any]]:
        return None

    def partitions(self, physical_disk: Dict[str, Any]) -> List[Dict[str, Any]]:
        return []

    def logical_disks(self, partition: Dict[str, Any]) -> List[Dict[str, Any]]:
        return []

    def volume(self, drive_letter: str) -> Optional[Dict[str, Any]]:
        return None


def default_storage_api() -> StorageApi:
    """Select the storage API implementation for the current platform."""
    system = platform.system().lower()
    if system == "windows":
        return PowerShellStorageApi()
    if system == "linux":
        return LsblkStorageApi()
    return UnsupportedStorageApi(system)


# =============================================================================
# Device Enumerator
# =============================================================================


class DeviceEnumerator:
    """
    Produces a fresh DriveRecord snapshot of all attached drives.

    Usage:
        enumerator = DeviceEnumerator(FixtureStorageApi(path))
        drives = enumerator.list_drives()
    """

    def __init__(self, storage_api: Optional[StorageApi] = None):
        self.storage_api = storage_api or default_storage_api()

    def list_drives(self) -> List[DriveRecord]:
        """
        Enumerate drives. Never raises.

        Returns:
            List of DriveRecord, or [] when the storage API is unavailable or
            the whole query fails (never partial results from a failed query).
        """
        try:
            self.storage_api.refresh()
            physical_disks = list(self.storage_api.physical_disks())
        except Exception as e:
            _drives_logger.warning(f"Drive enumeration unavailable: {e}")
            return []

        drives: List[DriveRecord] = []
        for disk in physical_disks:
            if not isinstance(disk, dict):
                _drives_logger.debug(f"Physical disk entry {_describe(disk, 'Index')} is not an object, skipped")
                continue
            try:
                drives.extend(self._drives_for_disk(disk))
            except Exception as e:
                _drives_logger.warning(f"Skipping disk {_describe(disk, 'Index')}: {e}")

        _drives_logger.info(f"Enumerated {len(drives)} drive(s) on {len(physical_disks)} disk(s)")
        return drives

    def removable_drives(self) -> List[DriveRecord]:
        """Enumerate and keep only drives eligible for group assignment."""
        return [d for d in self.list_drives() if d.is_removable or d.is_usb]

    def _drives_for_disk(self, disk: Dict[str, Any]) -> List[DriveRecord]:
        disk_index = _to_int(disk.get("Index"))
        metadata = self.storage_api.disk_metadata(disk_index) if disk_index is not None else None
        if metadata is None:
            _drives_logger.debug(f"Disk {disk_index}: no disk metadata, skipped")
            return []

        partitions = self.storage_api.partitions(disk)
        if not partitions:
            _drives_logger.debug(f"Disk {disk_index}: no partitions, skipped")
            return []

        records = []
        for partition in partitions:
            if not isinstance(partition, dict):
                _drives_logger.debug(f"Disk {disk_index}: partition entry {_describe(partition, 'DeviceID')} skipped")
                continue
            logical_disks = self.storage_api.logical_disks(partition)
            if not logical_disks:
                _drives_logger.debug(f"Disk {disk_index}: partition {_describe(partition, 'DeviceID')} has no logical disk")
                continue

            for logical_disk in logical_disks:
                if not isinstance(logical_disk, dict):
                    _drives_logger.debug(
                        f"Disk {disk_index}: logical disk entry {_describe(logical_disk, 'DeviceID')} skipped"
                    )
                    continue
                try:
                    record = self._build_record(disk, metadata, logical_disk)
                except Exception as e:
                    _drives_logger.warning(
                        f"Disk {disk_index}: skipping logical disk {_describe(logical_disk, 'DeviceID')}: {e}"
                    )
                    continue
                if record is not None:
                    records.append(record)
        return records

    def _build_record(
        self,
        disk: Dict[str, Any],
        metadata: Dict[str, Any],
        logical_disk: Dict[str, Any],
    ) -> Optional[DriveRecord]:
        drive_letter = _clean(logical_disk.get("DeviceID"))
        total_gb = _to_gb(logical_disk.get("Size"))
        free_gb = _to_gb(logical_disk.get("FreeSpace"))

        volume = self.storage_api.volume(drive_letter)
        if volume is None:
            _drives_logger.debug(f"Logical disk {drive_letter}: no matching volume (not ready), skipped")
            return None

        drive_type_code = _to_int(logical_disk.get("DriveType"))
        bus_type = _clean(metadata.get("BusType"))
        interface_type = _clean(disk.get("InterfaceType"))

        return DriveRecord(
            label=_clean(volume.get("FileSystemLabel")) or _clean(logical_disk.get("VolumeName")),
            drive_letter=drive_letter,
            disk_number=_to_int(metadata.get("Number")),
            manufacturer=_clean(metadata.get("Manufacturer")) or _clean(disk.get("Manufacturer")),
            model=_clean(metadata.get("Model")) or _clean(disk.get("Model")),
            serial_number=_clean(metadata.get("SerialNumber")) or _clean(disk.get("SerialNumber")),
            name=_clean(metadata.get("FriendlyName")) or _clean(disk.get("Caption")),
            file_system=_clean(volume.get("FileSystem")) or _clean(logical_disk.get("FileSystem")),
            partition_kind=_clean(metadata.get("PartitionStyle")),
            total_space_gb=total_gb,
            free_space_gb=free_gb,
            used_space_gb=round(total_gb - free_gb, Limits.SPACE_GB_DECIMALS),
            health_status=_clean(volume.get("HealthStatus")) or _clean(metadata.get("HealthStatus")),
            bus_type=bus_type,
            interface_type=interface_type,
            drive_type_code=drive_type_code,
            is_removable=is_removable_drive(drive_type_code, bus_type, interface_type),
        )
