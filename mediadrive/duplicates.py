# mediadrive/duplicates.py - Gate against assigning one drive to two slots
"""
Duplicate assignment detection across storage groups.

A serial may occupy at most one Master/Backup slot in the whole store. The
group being edited is excluded from the scan, so a group's own existing
serials never count as duplicates against itself.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from mediadrive.cli_output import CLIOutput
from mediadrive.constants import Prompts
from mediadrive.errors import DuplicateSerialError
from mediadrive.groups import StorageGroupConfig
from mediadrive.logs import get_logger
from mediadrive.prompts import PromptSource

_dup_logger = get_logger("duplicates")


@dataclass(frozen=True)
class DuplicateConflict:
    """A candidate serial already sitting in another group's slot."""

    serial: str
    group_id: str
    slot_label: str
    label: str = ""


def find_conflicts(
    groups: Dict[str, StorageGroupConfig],
    candidate_serials: Iterable[str],
    exclude_group_id: str = "",
) -> List[DuplicateConflict]:
    """
    Scan every group except ``exclude_group_id`` for candidate serials.

    Serials are compared exactly after trimming; blank serials never match.
    """
    candidates = {(s or "").strip() for s in candidate_serials}
    candidates.discard("")
    exclude = (exclude_group_id or "").strip()

    conflicts = []
    for group_id, group in groups.items():
        if exclude and group_id == exclude:
            continue
        for slot_label, slot in group.slots():
            serial = (slot.serial_number or "").strip()
            if serial and serial in candidates:
                conflicts.append(DuplicateConflict(serial, group_id, slot_label, slot.label))
    return conflicts


class DuplicateValidator:
    """
    Validates a candidate selection against the store.

    Non-interactive prompt sources fail fast with DuplicateSerialError;
    interactive ones show the conflicts and ask for an explicit override.
    """

    def __init__(self, prompts: PromptSource, output: Optional[CLIOutput] = None):
        self.prompts = prompts
        self.output = output

    def check(
        self,
        groups: Dict[str, StorageGroupConfig],
        candidate_serials: Iterable[str],
        exclude_group_id: str = "",
    ) -> bool:
        """
        Returns:
            True if there are no conflicts or the user confirmed the override,
            False if the user declined (not an error)

        Raises:
            DuplicateSerialError: Conflicts found while non-interactive
        """
        conflicts = find_conflicts(groups, candidate_serials, exclude_group_id)
        if not conflicts:
            _dup_logger.debug("Duplicate check passed")
            return True

        for c in conflicts:
            _dup_logger.warning(
                f"Serial '{c.serial}' already assigned as {c.slot_label} of group {c.group_id} ({c.label})"
            )

        if self.prompts.non_interactive:
            raise DuplicateSerialError(conflicts)

        if self.output is not None:
            self.output.warn("The following drives are already assigned to other storage groups:")
            self.output.table(
                ["Serial", "Group", "Slot", "Label"],
                [[c.serial, c.group_id, c.slot_label, c.label] for c in conflicts],
            )

        confirmed = self.prompts.ask_yes_no(Prompts.CONFIRM_DUPLICATES, default=False)
        _dup_logger.info(f"Duplicate assignment {'overridden' if confirmed else 'declined'} by user")
        return confirmed
