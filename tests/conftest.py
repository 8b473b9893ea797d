#!/usr/bin/env python3
"""
Pytest configuration and shared fixtures for MediaDrive tests.

This module sets up the Python path correctly for all tests.
"""

import sys
from pathlib import Path

# =============================================================================
# Path Setup - Execute BEFORE any test imports
# =============================================================================

# tests/conftest.py -> tests/ -> repository root
_tests_dir = Path(__file__).resolve().parent
_repo_root = _tests_dir.parent

if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

# Export for tests that need these paths
REPO_ROOT = _repo_root
TESTS_DIR = _tests_dir
FIXTURES_DIR = _tests_dir / "fixtures"
INVENTORY_FIXTURE = FIXTURES_DIR / "inventory.json"


# =============================================================================
# Shared Fixtures
# =============================================================================

import io
import json
import logging

import pytest

from mediadrive.cli_output import CLIOutput
from mediadrive.constants import ConsoleStyle
from mediadrive.drives import DeviceEnumerator, DriveRecord, FixtureStorageApi
from mediadrive.groups import GroupStore
from mediadrive.logs import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_mediadrive_logger():
    """main() installs its own handlers; give every test a propagating logger back."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def inventory_path():
    """Path of the JSON drive inventory fixture."""
    return INVENTORY_FIXTURE


@pytest.fixture
def inventory():
    """Fresh copy of the drive inventory fixture (safe to mutate)."""
    with open(INVENTORY_FIXTURE, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def enumerator(inventory):
    """
    DeviceEnumerator over the fixture inventory.

    Yields C: (fixed system disk) plus E: ABC123, F: DEF456 and G: GHI789
    (all USB); the remaining fixture disks are skipped by the join.
    """
    return DeviceEnumerator(FixtureStorageApi(inventory))


@pytest.fixture
def drives(enumerator):
    return enumerator.list_drives()


@pytest.fixture
def make_drive():
    """Factory for DriveRecord instances with sensible removable defaults."""

    def _make(letter="E:", serial="ABC123", label="MEDIA", **kwargs):
        values = dict(
            label=label,
            drive_letter=letter,
            serial_number=serial,
            model="Test Drive",
            bus_type="USB",
            interface_type="USB",
            drive_type_code=2,
            is_removable=True,
            total_space_gb=64.0,
            free_space_gb=32.0,
            used_space_gb=32.0,
        )
        values.update(kwargs)
        return DriveRecord(**values)

    return _make


@pytest.fixture
def config_path(tmp_path):
    """storage.json location inside a temporary drive root."""
    return tmp_path / ".mediadrive" / "storage.json"


@pytest.fixture
def write_config(config_path):
    """Write a raw storage.json mapping and return its path."""

    def _write(data):
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return config_path

    return _write


@pytest.fixture
def store(config_path):
    return GroupStore(config_path)


@pytest.fixture
def sample_config():
    """Three groups using every USB drive of the fixture inventory."""
    return {
        "1": {
            "DisplayName": "Photos",
            "Master": {"Label": "MEDIA_A", "SerialNumber": "ABC123"},
            "Backup": {"1": {"Label": "MEDIA_B", "SerialNumber": "DEF456"}},
        },
        "2": {
            "DisplayName": "Music",
            "Master": {"Label": "MEDIA_C", "SerialNumber": "GHI789"},
            "Backup": {},
        },
        "3": {
            "DisplayName": "Archive",
            "Master": {"Label": "OLD", "SerialNumber": "ZZZ999"},
            "Backup": {"1": {"Label": "OLD_COPY", "SerialNumber": "YYY888"}},
        },
    }


@pytest.fixture
def output_stream():
    return io.StringIO()


@pytest.fixture
def output(output_stream):
    """ASCII CLIOutput writing into a StringIO (read back via output_stream)."""
    return CLIOutput(style=ConsoleStyle(mode=ConsoleStyle.ASCII), width=120, stream=output_stream)
