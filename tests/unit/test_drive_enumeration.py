#!/usr/bin/env python3
"""
Unit tests for drive enumeration.

These tests ensure:
1. Disk -> metadata -> partition -> logical disk -> volume join builds full records
2. Missing join partners skip the leaf, never the whole enumeration
3. A failing storage API yields [] instead of raising
4. Removability: removable media type OR USB bus OR USB interface (exact "USB")
5. Malformed inventory entries are skipped one by one
"""

import json
import subprocess
from collections import namedtuple
from unittest.mock import MagicMock, patch

import pytest

from mediadrive.drives import (
    DeviceEnumerator,
    FixtureStorageApi,
    LsblkStorageApi,
    PowerShellStorageApi,
    StorageApiUnavailableError,
    UnsupportedStorageApi,
    default_storage_api,
    is_removable_drive,
    normalize_drive_letter,
)


def _by_letter(drives):
    return {d.drive_letter: d for d in drives}


class TestJoin:
    """Tests for the full join over the fixture inventory."""

    def test_fixture_yields_joined_drives_only(self, drives):
        """Disks without metadata, partitions or a ready volume are skipped."""
        assert [d.drive_letter for d in drives] == ["C:", "E:", "F:", "G:"]

    def test_record_fields(self, drives):
        e = _by_letter(drives)["E:"]
        assert e.label == "MEDIA_A"
        assert e.serial_number == "ABC123"
        assert e.disk_number == 1
        assert e.manufacturer == "SanDisk"
        assert e.model == "Extreme"
        assert e.name == "SanDisk Extreme"
        assert e.file_system == "exFAT"
        assert e.partition_kind == "MBR"
        assert e.total_space_gb == 60.0
        assert e.free_space_gb == 30.0
        assert e.used_space_gb == 30.0
        assert e.health_status == "Healthy"
        assert e.bus_type == "USB"
        assert e.interface_type == "USB"
        assert e.drive_type_code == 2
        assert e.is_removable is True

    def test_volume_health_wins_over_disk_health(self, drives):
        assert _by_letter(drives)["G:"].health_status == "Warning"

    def test_fixed_usb_disk_counts_as_removable(self, drives):
        """DriveType 3 on a USB bus is still eligible."""
        f = _by_letter(drives)["F:"]
        assert f.drive_type_code == 3
        assert f.is_removable is True
        assert f.is_usb is True

    def test_internal_disk_is_not_removable(self, drives):
        c = _by_letter(drives)["C:"]
        assert c.is_removable is False
        assert c.is_usb is False
        assert c.bus_type == "NVMe"

    def test_removable_drives_filters_internal(self, enumerator):
        assert [d.serial_number for d in enumerator.removable_drives()] == ["ABC123", "DEF456", "GHI789"]

    def test_label_falls_back_to_volume_name(self, inventory):
        inventory["Volumes"][1]["FileSystemLabel"] = ""
        inventory["PhysicalDisks"][1]["Partitions"][0]["LogicalDisks"][0]["VolumeName"] = "FROM_LOGICAL"
        drives = DeviceEnumerator(FixtureStorageApi(inventory)).list_drives()
        assert _by_letter(drives)["E:"].label == "FROM_LOGICAL"

    def test_single_object_instead_of_list_is_accepted(self, inventory):
        """ConvertTo-Json collapses one-element arrays to a bare object."""
        disk = inventory["PhysicalDisks"][1]
        disk["Partitions"] = disk["Partitions"][0]
        disk["Partitions"]["LogicalDisks"] = disk["Partitions"]["LogicalDisks"][0]
        drives = DeviceEnumerator(FixtureStorageApi(inventory)).list_drives()
        assert "E:" in _by_letter(drives)

    def test_fixture_file_source(self, inventory_path):
        drives = DeviceEnumerator(FixtureStorageApi(inventory_path)).list_drives()
        assert len(drives) == 4

    def test_every_enumeration_is_fresh(self, inventory):
        api = FixtureStorageApi(inventory)
        enumerator = DeviceEnumerator(api)
        assert len(enumerator.list_drives()) == 4
        inventory["Volumes"] = [v for v in inventory["Volumes"] if v["DriveLetter"] != "E"]
        assert "E:" not in _by_letter(enumerator.list_drives())


class TestDegradation:
    """Tests for failure handling: enumeration never raises."""

    def test_refresh_failure_yields_empty_list(self):
        api = MagicMock()
        api.refresh.side_effect = RuntimeError("WMI not available")
        assert DeviceEnumerator(api).list_drives() == []

    def test_unsupported_host_yields_empty_list(self):
        assert DeviceEnumerator(UnsupportedStorageApi("plan9")).list_drives() == []

    def test_unsupported_refresh_raises_unavailable(self):
        with pytest.raises(StorageApiUnavailableError):
            UnsupportedStorageApi("plan9").refresh()

    def test_non_mapping_inventory_yields_empty_list(self):
        assert DeviceEnumerator(FixtureStorageApi([1, 2, 3])).list_drives() == []

    def test_failure_on_one_disk_skips_only_that_disk(self, inventory):
        class FlakyApi(FixtureStorageApi):
            def partitions(self, physical_disk):
                if physical_disk.get("Index") == 2:
                    raise OSError("device vanished")
                return super().partitions(physical_disk)

        drives = DeviceEnumerator(FlakyApi(inventory)).list_drives()
        assert [d.drive_letter for d in drives] == ["C:", "E:", "G:"]

    def test_null_disk_entry_is_skipped(self, inventory):
        inventory["PhysicalDisks"].append(None)
        drives = DeviceEnumerator(FixtureStorageApi(inventory)).list_drives()
        assert [d.drive_letter for d in drives] == ["C:", "E:", "F:", "G:"]

    def test_non_list_physical_disks_yields_empty_list(self):
        assert DeviceEnumerator(FixtureStorageApi({"PhysicalDisks": "garbage"})).list_drives() == []

    def test_malformed_logical_disk_keeps_sibling_volumes(self, inventory):
        inventory["PhysicalDisks"][1]["Partitions"][0]["LogicalDisks"].insert(0, None)
        inventory["PhysicalDisks"][1]["Partitions"].insert(0, "garbage")
        drives = DeviceEnumerator(FixtureStorageApi(inventory)).list_drives()
        assert [d.drive_letter for d in drives] == ["C:", "E:", "F:", "G:"]

    def test_failing_logical_disk_keeps_sibling_volumes(self, inventory):
        partition = inventory["PhysicalDisks"][1]["Partitions"][0]
        partition["LogicalDisks"].insert(0, {"DeviceID": "X:", "Size": "not-a-number"})

        class FlakyApi(FixtureStorageApi):
            def volume(self, drive_letter):
                if drive_letter == "X:":
                    raise OSError("volume query failed")
                return super().volume(drive_letter)

        drives = DeviceEnumerator(FlakyApi(inventory)).list_drives()
        assert [d.drive_letter for d in drives] == ["C:", "E:", "F:", "G:"]

    def test_null_metadata_and_volume_entries_are_ignored(self, inventory):
        inventory["Disks"].insert(0, None)
        inventory["Volumes"].insert(0, None)
        drives = DeviceEnumerator(FixtureStorageApi(inventory)).list_drives()
        assert [d.drive_letter for d in drives] == ["C:", "E:", "F:", "G:"]

    def test_empty_inventory(self):
        assert DeviceEnumerator(FixtureStorageApi({})).list_drives() == []


class TestRemovability:
    """Tests for is_removable_drive."""

    @pytest.mark.parametrize(
        "code, bus, iface, expected",
        [
            (2, "", "", True),
            (3, "USB", "", True),
            (3, "", "USB", True),
            (3, "usb", None, False),
            (3, " USB", None, False),
            (3, "SATA", "IDE", False),
            (None, None, None, False),
            (3, "", "", False),
        ],
    )
    def test_rule(self, code, bus, iface, expected):
        assert is_removable_drive(code, bus, iface) is expected


class TestNormalizeDriveLetter:
    """Tests for normalize_drive_letter."""

    @pytest.mark.parametrize("value", ["E", "e", "E:", "e:", "E:\\", " E: "])
    def test_windows_forms(self, value):
        assert normalize_drive_letter(value) == "E"

    def test_mount_point_unchanged(self):
        assert normalize_drive_letter("/media/usb") == "/media/usb"

    def test_empty(self):
        assert normalize_drive_letter(None) == ""
        assert normalize_drive_letter("") == ""


class TestPowerShellStorageApi:
    """Tests for the Windows inventory collaborator (subprocess mocked)."""

    def test_parses_inventory(self, inventory):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=json.dumps(inventory), stderr="")
        with patch("mediadrive.drives.subprocess.run", return_value=completed) as run:
            drives = DeviceEnumerator(PowerShellStorageApi()).list_drives()
        assert len(drives) == 4
        args = run.call_args[0][0]
        assert args[0] == "powershell"
        assert "-NonInteractive" in args

    def test_failed_command_yields_empty_list(self):
        completed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="Access denied")
        with patch("mediadrive.drives.subprocess.run", return_value=completed):
            assert DeviceEnumerator(PowerShellStorageApi()).list_drives() == []

    def test_timeout_yields_empty_list(self):
        with patch(
            "mediadrive.drives.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="powershell", timeout=60),
        ):
            assert DeviceEnumerator(PowerShellStorageApi()).list_drives() == []


Usage = namedtuple("Usage", "total used free")

LSBLK_OUTPUT = {
    "blockdevices": [
        {
            "name": "sda",
            "path": "/dev/sda",
            "type": "disk",
            "rm": False,
            "tran": "sata",
            "serial": "INTERNAL1",
            "model": "Internal SSD",
            "vendor": "ATA",
            "pttype": "gpt",
            "children": [
                {"name": "sda1", "path": "/dev/sda1", "type": "part", "fstype": "ext4", "label": None, "mountpoint": "/"}
            ],
        },
        {
            "name": "sdb",
            "path": "/dev/sdb",
            "type": "disk",
            "rm": True,
            "tran": "usb",
            "serial": "USB123",
            "model": "Flash",
            "vendor": "Kingston",
            "pttype": "dos",
            "children": [
                {
                    "name": "sdb1",
                    "path": "/dev/sdb1",
                    "type": "part",
                    "fstype": "vfat",
                    "label": "STICK",
                    "mountpoint": "/media/stick",
                },
                {"name": "sdb2", "path": "/dev/sdb2", "type": "part", "fstype": None, "label": None, "mountpoint": None},
            ],
        },
        {"name": "loop0", "path": "/dev/loop0", "type": "loop"},
    ]
}


class TestLsblkInventory:
    """Tests for the Linux lsblk translation."""

    def _drives(self):
        gb = 1024 ** 3
        with patch("mediadrive.drives.shutil.disk_usage", return_value=Usage(2 * gb, gb, gb)):
            inventory = LsblkStorageApi.inventory_from_lsblk(LSBLK_OUTPUT)
        return DeviceEnumerator(FixtureStorageApi(inventory)).list_drives()

    def test_mount_points_act_as_drive_letters(self):
        assert [d.drive_letter for d in self._drives()] == ["/", "/media/stick"]

    def test_usb_stick_record(self):
        stick = _by_letter(self._drives())["/media/stick"]
        assert stick.serial_number == "USB123"
        assert stick.label == "STICK"
        assert stick.partition_kind == "MBR"
        assert stick.bus_type == "USB"
        assert stick.is_removable is True
        assert stick.total_space_gb == 2.0
        assert stick.free_space_gb == 1.0

    def test_internal_disk_is_fixed(self):
        root = _by_letter(self._drives())["/"]
        assert root.partition_kind == "GPT"
        assert root.drive_type_code == 3
        assert root.is_removable is False

    def test_lsblk_failure_yields_empty_list(self):
        completed = subprocess.CompletedProcess(args=[], returncode=32, stdout="", stderr="lsblk: failed")
        with patch("mediadrive.drives.subprocess.run", return_value=completed):
            assert DeviceEnumerator(LsblkStorageApi()).list_drives() == []


class TestDefaultStorageApi:
    """Tests for platform selection."""

    @pytest.mark.parametrize(
        "system, expected",
        [("Windows", PowerShellStorageApi), ("Linux", LsblkStorageApi), ("Darwin", UnsupportedStorageApi)],
    )
    def test_selection(self, system, expected):
        with patch("mediadrive.drives.platform.system", return_value=system):
            assert isinstance(default_storage_api(), expected)
