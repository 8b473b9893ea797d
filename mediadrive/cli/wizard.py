# mediadrive/cli/wizard.py - Interactive storage group configuration wizard
"""
ConfigWizard walks the operator through creating or editing one storage group.

Steps (see mediadrive.modes.transition for the full table):

    1. DISPLAY_NAME    free text, Enter keeps the default
    2. SELECT_MASTER   one drive by index
    3. SELECT_BACKUPS  zero or more drives by comma-separated indices

B goes back one step, C cancels without side effects. Reaching DONE commits:

    validate duplicates -> write whole file -> reload -> resolve status

Cancel/back never raise. Duplicate conflicts raise DuplicateSerialError only
when the prompt source is non-interactive; persistence errors propagate.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from mediadrive.cli_output import CLIOutput
from mediadrive.constants import Prompts, UserInputs
from mediadrive.drives import DeviceEnumerator, DriveRecord
from mediadrive.duplicates import DuplicateValidator
from mediadrive.errors import GroupNotFoundError, StorageGroupError
from mediadrive.groups import GroupStore, StorageDriveConfig, StorageGroupConfig, default_display_name
from mediadrive.logs import get_logger
from mediadrive.modes import SideEffect, WizardAction, WizardMode, WizardStep, transition
from mediadrive.prompts import PromptSource
from mediadrive.status import StatusResolver, find_drive

_wizard_logger = get_logger("wizard")


@dataclass
class WizardSession:
    """
    Pending (uncommitted) state of one wizard run.

    Nothing in here touches the store until commit.
    """

    mode: WizardMode
    group_id: str
    default_name: str
    candidates: List[DriveRecord] = field(default_factory=list)
    existing: Optional[StorageGroupConfig] = None
    display_name: str = ""
    master: Optional[StorageDriveConfig] = None
    master_drive: Optional[DriveRecord] = None
    backups: List[StorageDriveConfig] = field(default_factory=list)

    @property
    def exclude_group_id(self) -> str:
        """Group excluded from duplicate checks: the one being edited."""
        return self.group_id if self.mode == WizardMode.EDIT else ""

    def candidate_serials(self) -> List[str]:
        serials = [self.master.serial_number] if self.master else []
        serials.extend(b.serial_number for b in self.backups)
        return serials

    def discard(self) -> None:
        """Drop every pending pick; the store is never touched."""
        self.display_name = ""
        self.master = None
        self.master_drive = None
        self.backups = []


def slot_from_drive(drive: DriveRecord) -> StorageDriveConfig:
    return StorageDriveConfig(
        label=drive.label,
        serial_number=drive.serial_number.strip(),
        drive_letter=drive.drive_letter,
    )


def candidate_drives(
    drives: Iterable[DriveRecord],
    groups: Dict[str, StorageGroupConfig],
    exclude_group_id: str = "",
) -> List[DriveRecord]:
    """
    Drives eligible for assignment.

    Removable or USB drives, minus drives whose serial is assigned to any
    group other than ``exclude_group_id``. Drives without a serial cannot be
    re-identified later and are never offered.
    """
    assigned = set()
    for group_id, group in groups.items():
        if exclude_group_id and group_id == exclude_group_id:
            continue
        assigned.update(s.strip() for s in group.serials())

    eligible = []
    for drive in drives:
        serial = (drive.serial_number or "").strip()
        if not (drive.is_removable or drive.is_usb):
            continue
        if not serial:
            _wizard_logger.debug(f"Drive {drive.drive_letter} has no serial number, not offered")
            continue
        if serial in assigned:
            _wizard_logger.debug(f"Drive {drive.drive_letter} [{serial}] already assigned, not offered")
            continue
        eligible.append(drive)
    return eligible


class ConfigWizard:
    """
    Add/Edit wizard for storage groups.

    Usage:
        wizard = ConfigWizard(store, enumerator, prompts, output)
        saved = wizard.run(WizardMode.ADD)
        saved = wizard.run(WizardMode.EDIT, group_id="2")
    """

    def __init__(
        self,
        store: GroupStore,
        enumerator: DeviceEnumerator,
        prompts: PromptSource,
        output: Optional[CLIOutput] = None,
        validator: Optional[DuplicateValidator] = None,
        resolver: Optional[StatusResolver] = None,
    ):
        self.store = store
        self.enumerator = enumerator
        self.prompts = prompts
        self.output = output or CLIOutput.detect()
        self.validator = validator or DuplicateValidator(prompts, self.output)
        self.resolver = resolver or StatusResolver(enumerator)
        self.last_saved: Optional[StorageGroupConfig] = None

        self._handlers: Dict[WizardStep, Callable[[WizardSession], WizardAction]] = {
            WizardStep.DISPLAY_NAME: self.step_display_name,
            WizardStep.SELECT_MASTER: self.step_select_master,
            WizardStep.SELECT_BACKUPS: self.step_select_backups,
        }

    # =========================================================================
    # Entry points
    # =========================================================================

    def start(self, mode: WizardMode, group_id: Optional[str] = None, drives: Optional[List[DriveRecord]] = None) -> WizardSession:
        """
        Prepare a session: resolve defaults and the candidate list.

        Raises:
            GroupNotFoundError: EDIT mode with an unknown group id
        """
        self.last_saved = None
        groups = self.store.reload()

        if mode == WizardMode.EDIT:
            key = str(group_id or "").strip()
            existing = groups.get(key)
            if existing is None:
                raise GroupNotFoundError(key)
            session = WizardSession(
                mode=mode,
                group_id=key,
                default_name=existing.display_name,
                existing=existing,
                master=existing.master,
            )
        else:
            new_id = self.store.next_group_id()
            session = WizardSession(mode=mode, group_id=new_id, default_name=default_display_name(new_id))

        if drives is None:
            drives = self.enumerator.list_drives()
        session.candidates = candidate_drives(drives, groups, session.exclude_group_id)
        if session.master is not None:
            session.master_drive = find_drive(session.master.serial_number, session.candidates)

        _wizard_logger.info(
            f"Wizard started: mode={mode.value} group={session.group_id} candidates={len(session.candidates)}"
        )
        return session

    def run(self, mode: WizardMode, group_id: Optional[str] = None) -> bool:
        """
        Run the interactive wizard.

        Returns:
            True only if a group was written
        """
        session = self.start(mode, group_id)
        if mode == WizardMode.EDIT:
            self.output.section(Prompts.WIZARD_EDIT_HEADER.format(group_id=session.group_id))
        else:
            self.output.section(Prompts.WIZARD_ADD_HEADER)

        step = WizardStep.DISPLAY_NAME
        while True:
            action = self._handlers[step](session)
            next_step, effect = transition(step, action)
            _wizard_logger.info(f"Wizard {step.name} --{action.name}--> {next_step.name} ({effect.name})")
            if effect == SideEffect.CLEAR_BACKUPS:
                session.backups = []
            elif effect == SideEffect.DISCARD_ALL:
                session.discard()
                _wizard_logger.info("Wizard cancelled, nothing written")
                return False
            elif effect == SideEffect.COMMIT:
                return self.commit(session)
            step = next_step

    def commit_selection(
        self,
        mode: WizardMode,
        master_serial: str,
        backup_serials: Iterable[str] = (),
        display_name: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> bool:
        """
        Commit a selection given directly as serial numbers (no prompts).

        Labels are taken from attached drives when present, else from the
        slot being replaced. Goes through the same validate -> write ->
        reload -> resolve path as the interactive wizard.

        Raises:
            StorageGroupError: Blank master serial, unknown group id, or
                duplicate conflicts while non-interactive
        """
        master_serial = (master_serial or "").strip()
        if not master_serial:
            raise StorageGroupError("A master serial number is required")

        drives = self.enumerator.list_drives()
        session = self.start(mode, group_id, drives=drives)
        session.display_name = (display_name or "").strip() or session.default_name

        previous = {}
        if session.existing is not None:
            previous = {slot.serial_number.strip(): slot for _, slot in session.existing.slots()}

        def resolve_slot(serial: str) -> StorageDriveConfig:
            drive = find_drive(serial, drives)
            if drive is not None:
                return slot_from_drive(drive)
            known = previous.get(serial.strip())
            return StorageDriveConfig(label=known.label if known else "", serial_number=serial)

        session.master = resolve_slot(master_serial)
        chosen = {master_serial}
        for serial in backup_serials:
            serial = (serial or "").strip()
            if not serial:
                continue
            if serial in chosen:
                self.output.warn(f"Serial '{serial}' is already part of this group, skipped")
                _wizard_logger.warning(f"Backup serial '{serial}' rejected: already chosen")
                continue
            chosen.add(serial)
            session.backups.append(resolve_slot(serial))

        return self.commit(session)

    # =========================================================================
    # Steps
    # =========================================================================

    def step_display_name(self, session: WizardSession) -> WizardAction:
        default = session.display_name or session.default_name
        answer = self.prompts.ask(Prompts.DISPLAY_NAME.format(default=default))
        command = answer.upper()
        if command == UserInputs.CANCEL:
            return WizardAction.CANCEL
        if command == UserInputs.BACK:
            return WizardAction.BACK
        session.display_name = answer or default
        _wizard_logger.debug(f"Display name set to '{session.display_name}'")
        return WizardAction.NEXT

    def step_select_master(self, session: WizardSession) -> WizardAction:
        current = session.master
        if not session.candidates and current is None:
            self.output.warn(Prompts.NO_CANDIDATES)
            _wizard_logger.warning("No candidate drives for master selection")
            return WizardAction.CANCEL

        self._show_candidates(session.candidates, session)
        count = len(session.candidates)
        template = Prompts.SELECT_MASTER_KEEP if current is not None else Prompts.SELECT_MASTER

        while True:
            answer = self.prompts.ask(template.format(count=count))
            command = answer.upper()
            if command == UserInputs.CANCEL:
                return WizardAction.CANCEL
            if command == UserInputs.BACK:
                return WizardAction.BACK
            if not answer and current is not None:
                _wizard_logger.debug(f"Keeping master [{current.serial_number}]")
                return WizardAction.NEXT

            drive = self._pick(answer, session.candidates)
            if drive is None:
                self.output.warn(f"Please enter a number between 1 and {count}.")
                continue

            session.master = slot_from_drive(drive)
            session.master_drive = drive
            _wizard_logger.info(f"Master selected: {drive.drive_letter} [{drive.serial_number}]")
            return WizardAction.NEXT

    def step_select_backups(self, session: WizardSession) -> WizardAction:
        options = [d for d in session.candidates if d is not session.master_drive]
        self._show_candidates(options, session)
        count = len(options)
        keep_existing = session.mode == WizardMode.EDIT and session.existing is not None
        template = Prompts.SELECT_BACKUPS_KEEP if keep_existing else Prompts.SELECT_BACKUPS

        while True:
            answer = self.prompts.ask(template.format(count=count))
            command = answer.upper()
            if command == UserInputs.CANCEL:
                return WizardAction.CANCEL
            if command == UserInputs.BACK:
                return WizardAction.BACK
            if answer == UserInputs.NO_BACKUPS:
                session.backups = []
                return WizardAction.NEXT
            if not answer:
                if keep_existing:
                    session.backups = self._keep_existing_backups(session)
                else:
                    session.backups = []
                return WizardAction.NEXT

            tokens = [t.strip() for t in answer.split(UserInputs.LIST_SEPARATOR) if t.strip()]
            picked = [self._pick(t, options) for t in tokens]
            if any(d is None for d in picked):
                self.output.warn(f"Enter numbers between 1 and {count}, separated by commas.")
                continue

            session.backups = self._accept_backups(session, picked)
            return WizardAction.NEXT

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, session: WizardSession) -> bool:
        """
        Validate, persist, reload and resolve status.

        Returns:
            True if the group was written, False if the duplicate override was declined
        """
        groups = self.store.reload()
        serials = session.candidate_serials()
        _wizard_logger.info(
            f"Committing {session.mode.value} group={session.group_id} serials={serials}"
        )

        if not self.validator.check(groups, serials, session.exclude_group_id):
            _wizard_logger.info("Commit aborted: duplicate assignment declined")
            return False

        if session.mode == WizardMode.EDIT:
            group_id = session.group_id
            if group_id not in groups:
                raise GroupNotFoundError(group_id)
        else:
            group_id = self.store.next_group_id()

        group = StorageGroupConfig(
            group_id=group_id,
            display_name=session.display_name or session.default_name,
            master=StorageDriveConfig(label=session.master.label, serial_number=session.master.serial_number),
            backups={
                str(i): StorageDriveConfig(label=b.label, serial_number=b.serial_number)
                for i, b in enumerate(session.backups, start=1)
            },
        )
        stored = self.store.save_group(group)
        self.resolver.refresh(self.store.groups)
        self.last_saved = stored
        _wizard_logger.info(f"Storage group {stored.group_id} committed")
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _pick(answer: str, drives: List[DriveRecord]) -> Optional[DriveRecord]:
        try:
            index = int(answer)
        except ValueError:
            return None
        if 1 <= index <= len(drives):
            return drives[index - 1]
        return None

    def _accept_backups(self, session: WizardSession, picked: List[DriveRecord]) -> List[StorageDriveConfig]:
        master_serial = session.master.serial_number.strip() if session.master else ""
        chosen = set()
        accepted = []
        for drive in picked:
            serial = drive.serial_number.strip()
            if serial == master_serial:
                self.output.warn(f"{drive.drive_letter} has the master's serial number '{serial}', skipped")
                _wizard_logger.warning(f"Backup {drive.drive_letter} rejected: same serial as master")
                continue
            if serial in chosen:
                self.output.warn(f"{drive.drive_letter} [{serial}] is already selected as a backup, skipped")
                _wizard_logger.warning(f"Backup {drive.drive_letter} rejected: serial already chosen")
                continue
            chosen.add(serial)
            accepted.append(slot_from_drive(drive))
            _wizard_logger.info(f"Backup selected: {drive.drive_letter} [{serial}]")
        return accepted

    def _keep_existing_backups(self, session: WizardSession) -> List[StorageDriveConfig]:
        master_serial = session.master.serial_number.strip() if session.master else ""
        kept = []
        for _, slot in session.existing.slots()[1:]:
            if slot.serial_number.strip() == master_serial:
                self.output.warn(f"Backup [{slot.serial_number}] is now the master, dropped from backups")
                continue
            kept.append(slot)
        return kept

    def _show_candidates(self, drives: List[DriveRecord], session: WizardSession):
        current = set()
        if session.existing is not None:
            current = {s.strip() for s in session.existing.serials()}
        rows = []
        for index, drive in enumerate(drives, start=1):
            marker = "*" if drive.serial_number.strip() in current else ""
            rows.append(
                [
                    index,
                    drive.drive_letter,
                    drive.label,
                    drive.model or drive.name,
                    drive.serial_number,
                    f"{drive.total_space_gb:.1f} GB",
                    f"{drive.free_space_gb:.1f} GB",
                    marker,
                ]
            )
        self.output.table(["#", "Drive", "Label", "Model", "Serial", "Size", "Free", "Current"], rows)
