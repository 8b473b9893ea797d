# mediadrive/cli/group_manager.py - Storage group menu
"""
Top-level Edit / Add / Remove / Back menu over the group store.

Each operation returns an OperationOutcome. The menu loop reports errors
from a single operation and keeps running; only leaving the menu (B, or C
from an exhausted answer queue) ends it.
"""

from typing import Iterable, List, Optional

from mediadrive.cli.wizard import ConfigWizard
from mediadrive.cli_output import CLIOutput
from mediadrive.constants import Prompts, UserInputs
from mediadrive.drives import DeviceEnumerator, DriveRecord
from mediadrive.errors import StorageGroupError
from mediadrive.groups import GroupStore
from mediadrive.logs import get_logger
from mediadrive.modes import MenuAction, OperationOutcome, WizardMode
from mediadrive.prompts import PromptSource
from mediadrive.status import StatusResolver

_menu_logger = get_logger("menu")

MENU_LABELS = {
    MenuAction.EDIT: "Edit storage group",
    MenuAction.ADD: "Add storage group",
    MenuAction.REMOVE: "Remove storage group(s)",
    MenuAction.BACK: "Back",
}


def split_ids(answer: str) -> List[str]:
    """'1, 3,,4' -> ['1', '3', '4']"""
    return [part.strip() for part in answer.split(UserInputs.LIST_SEPARATOR) if part.strip()]


class GroupManager:
    """Menu orchestration for listing, adding, editing and removing groups."""

    def __init__(
        self,
        store: GroupStore,
        enumerator: DeviceEnumerator,
        prompts: PromptSource,
        output: Optional[CLIOutput] = None,
        wizard: Optional[ConfigWizard] = None,
        resolver: Optional[StatusResolver] = None,
    ):
        self.store = store
        self.enumerator = enumerator
        self.prompts = prompts
        self.output = output or CLIOutput.detect()
        self.resolver = resolver or StatusResolver(enumerator)
        self.wizard = wizard or ConfigWizard(
            store, enumerator, prompts, self.output, resolver=self.resolver
        )

    # =========================================================================
    # Menu loop
    # =========================================================================

    def menu_actions(self) -> List[MenuAction]:
        """Entries currently offered; Edit and Remove need at least one group."""
        if self.store.is_empty():
            return [MenuAction.ADD, MenuAction.BACK]
        return [MenuAction.EDIT, MenuAction.ADD, MenuAction.REMOVE, MenuAction.BACK]

    def run(self) -> None:
        while True:
            self.show_groups()
            actions = self.menu_actions()
            self.output.blank()
            for action in actions:
                self.output.log(f"[{action.value}] {MENU_LABELS[action]}")

            answer = self.prompts.ask(Prompts.MENU_CHOICE.format(choices="/".join(a.value for a in actions)))
            choice = answer.upper()
            if choice in (MenuAction.BACK.value, UserInputs.CANCEL):
                _menu_logger.info("Leaving storage group menu")
                return

            try:
                action = MenuAction(choice)
            except ValueError:
                action = None
            if action not in actions:
                self.output.warn("Invalid option")
                continue

            try:
                outcome = self.dispatch(action)
            except StorageGroupError as e:
                _menu_logger.error(f"{MENU_LABELS[action]} failed: {e}")
                self.output.error(str(e))
                continue
            except Exception as e:
                _menu_logger.exception(f"Unexpected error during '{MENU_LABELS[action]}'")
                self.output.error(f"Unexpected error: {e}")
                continue
            self.report(outcome)

    def dispatch(self, action: MenuAction) -> OperationOutcome:
        if action == MenuAction.EDIT:
            return self.edit()
        if action == MenuAction.ADD:
            return self.add()
        if action == MenuAction.REMOVE:
            return self.remove()
        raise ValueError(f"Not an operation: {action}")

    def report(self, outcome: OperationOutcome) -> None:
        if outcome:
            self.output.info(outcome.message)
        else:
            self.output.note(outcome.message)

    # =========================================================================
    # Operations
    # =========================================================================

    def add(self) -> OperationOutcome:
        return self.saved_outcome(self.wizard.run(WizardMode.ADD))

    def edit(self, group_id: Optional[str] = None) -> OperationOutcome:
        """
        Edit one group.

        Args:
            group_id: Group to edit (default: ask)
        """
        if group_id is None:
            answer = self.prompts.ask(Prompts.SELECT_GROUP.format(ids=", ".join(self.store.group_ids())))
            if answer.upper() in (UserInputs.BACK, UserInputs.CANCEL) or not answer:
                return OperationOutcome.failed(Prompts.OPERATION_CANCELLED)
            group_id = answer

        if self.store.get(group_id) is None:
            return OperationOutcome.failed(f"Storage group '{group_id}' not found.")

        return self.saved_outcome(self.wizard.run(WizardMode.EDIT, group_id))

    def remove(self, group_ids: Optional[Iterable[str]] = None, confirm: bool = True) -> OperationOutcome:
        """
        Remove one or more groups; remaining groups are renumbered.

        Args:
            group_ids: Ids to remove (default: ask)
            confirm: Ask for yes/no confirmation before writing
        """
        if group_ids is None:
            answer = self.prompts.ask(Prompts.SELECT_GROUPS.format(ids=", ".join(self.store.group_ids())))
            if answer.upper() in (UserInputs.BACK, UserInputs.CANCEL):
                return OperationOutcome.failed(Prompts.OPERATION_CANCELLED)
            group_ids = split_ids(answer)

        ids = [str(g).strip() for g in group_ids if str(g).strip()]
        present = [g for g in ids if self.store.get(g) is not None]
        if not present:
            _menu_logger.info(f"Remove requested for unknown id(s): {ids}")
            return OperationOutcome.failed(Prompts.NOTHING_REMOVED)

        if confirm and not self.prompts.ask_yes_no(Prompts.CONFIRM_REMOVE.format(ids=", ".join(present))):
            _menu_logger.info("Removal declined")
            return OperationOutcome.failed(Prompts.OPERATION_CANCELLED)

        removed = self.store.remove_groups(ids)
        if not removed:
            return OperationOutcome.failed(Prompts.NOTHING_REMOVED)

        self.resolver.refresh(self.store.groups)
        return OperationOutcome.ok(Prompts.GROUPS_REMOVED.format(ids=", ".join(removed)))

    def saved_outcome(self, saved: bool) -> OperationOutcome:
        """Outcome for a wizard run or commit that returned ``saved``."""
        stored = self.wizard.last_saved
        if not saved or stored is None:
            return OperationOutcome.failed(Prompts.NO_CHANGES)
        return OperationOutcome.ok(Prompts.GROUP_SAVED.format(group_id=stored.group_id, name=stored.display_name))

    # =========================================================================
    # Display
    # =========================================================================

    def show_groups(self, drives: Optional[List[DriveRecord]] = None) -> None:
        """Print every group slot with its live drive letter or 'unavailable'."""
        groups = self.store.reload()
        self.output.section(Prompts.GROUPS_HEADER)
        if not groups:
            self.output.note("No storage groups configured.")
            return

        self.resolver.refresh(groups, drives)
        rows = []
        for group_id in self.store.group_ids():
            group = groups[group_id]
            for slot_label, slot in group.slots():
                rows.append(
                    [
                        group_id,
                        group.display_name,
                        slot_label,
                        slot.label,
                        slot.serial_number,
                        slot.drive_letter or Prompts.UNAVAILABLE,
                    ]
                )
        self.output.table(["Group", "Name", "Slot", "Label", "Serial", "Drive"], rows)

    def show_drives(self, include_fixed: bool = False) -> List[DriveRecord]:
        drives = self.enumerator.list_drives()
        if not include_fixed:
            drives = [d for d in drives if d.is_removable or d.is_usb]
        self.output.section(Prompts.DRIVES_HEADER)
        if not drives:
            self.output.note("No drives found.")
            return drives
        self.output.table(
            ["Drive", "Label", "Model", "Serial", "FS", "Size", "Free", "Bus", "Removable"],
            [
                [
                    d.drive_letter,
                    d.label,
                    d.model or d.name,
                    d.serial_number,
                    d.file_system,
                    f"{d.total_space_gb:.1f} GB",
                    f"{d.free_space_gb:.1f} GB",
                    d.bus_type or d.interface_type,
                    "yes" if d.is_removable else "no",
                ]
                for d in drives
            ],
        )
        return drives
