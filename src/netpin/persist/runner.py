"""NIC name persistence passes.

Two passes write link files:

- `run_persist` pins every statically addressed Ethernet NIC to its
  current name, once per boot (guarded by the processed stamp).
- `run_persist_from_prior_state` restores names recorded in a pin
  snapshot for NICs that came back under a different name.

`clean_up` removes what the passes generated.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..config.settings import RELOCATE_FILE_EXTENSION
from ..errors import LinkWriteError
from ..state import InterfaceRecord, InterfaceSnapshot, SnapshotProvider
from .link_writer import (
    PERSIST_GENERATED_BY,
    list_link_files,
    write_link_file,
)
from .pin_store import IdentityPinStore, ProcessedStamp
from .resolver import RebindingInstruction, resolve_rebindings

logger = logging.getLogger(__name__)


class PersistMode(str, Enum):
    """What a persistence pass does."""
    SAVE = "save"          # Write link files and the stamp
    DRY_RUN = "dry_run"    # Log only
    INSPECT = "inspect"    # Read-only report


@dataclass
class PersistReport:
    """Outcome of a persistence pass."""
    mode: PersistMode
    stamp_present: bool = False
    changed: bool = False
    # Interfaces pinned (or that would be pinned)
    pins: list[RebindingInstruction] = field(default_factory=list)
    # Generated link files present on disk (inspect mode)
    link_files: list[Path] = field(default_factory=list)

    def to_text(self) -> str:
        """Human-readable summary."""
        lines = []
        if self.mode == PersistMode.INSPECT:
            lines.append(f"Persist stamp present: {'yes' if self.stamp_present else 'no'}")
            lines.append("Existing link files:")
            lines.extend(f"  {p}" for p in self.link_files)
            if not self.link_files:
                lines.append("  (none)")
            lines.append("Interfaces that would be pinned:")
        elif self.stamp_present:
            return "NIC names already persisted; nothing to do"
        elif self.mode == PersistMode.DRY_RUN:
            lines.append("Would pin:")
        else:
            lines.append("Pinned:" if self.changed else "No changes; pinned:")

        lines.extend(f"  {p.mac_address} -> {p.desired_name}" for p in self.pins)
        if not self.pins:
            lines.append("  (none)")
        return "\n".join(lines)


def pin_candidates(snapshot: InterfaceSnapshot) -> list[InterfaceRecord]:
    """Ethernet interfaces with a MAC and static IPv4 or IPv6 addressing.

    Automatically addressed NICs are skipped: pinning them only adds churn.
    """
    candidates = []
    for iface in snapshot.ethernet():
        if iface.mac_address is None:
            logger.info(f"Skipping {iface.name}: no MAC address")
            continue
        if not iface.has_static_ip:
            logger.info(f"Skipping {iface.name}: no static IPv4/IPv6 address")
            continue
        candidates.append(iface)
    return candidates


def _pin_interfaces(
    root: Union[str, Path],
    candidates: list[InterfaceRecord],
    dry_run: bool,
) -> bool:
    """Pin each candidate, returning whether any link file was written."""
    changed = False
    for iface in candidates:
        action = "Would pin" if dry_run else "Pinning"
        logger.info(
            f"{action} the interface with MAC {iface.mac_address} to "
            f"interface name {iface.name}"
        )
        if not dry_run:
            changed = write_link_file(root, iface.mac_address, iface.name) or changed
    return changed


def inspect(root: Union[str, Path], provider: SnapshotProvider) -> PersistReport:
    """Report stamp, existing link files and current pin candidates."""
    stamp = ProcessedStamp(root)
    snapshot = provider.snapshot()
    return PersistReport(
        mode=PersistMode.INSPECT,
        stamp_present=stamp.exists(),
        pins=[
            RebindingInstruction(i.mac_address, i.name)
            for i in pin_candidates(snapshot)
        ],
        link_files=list_link_files(root),
    )


def run_persist(
    root: Union[str, Path],
    provider: SnapshotProvider,
    mode: PersistMode = PersistMode.SAVE,
) -> PersistReport:
    """Pin the current name of every candidate NIC with a .link file.

    Runs at most once per boot: the stamp file written at the end of a
    SAVE pass short-circuits later passes.

    Raises:
        SnapshotError: If the current state cannot be retrieved
        LinkWriteError: If a link file or the stamp cannot be written
    """
    if mode == PersistMode.INSPECT:
        return inspect(root, provider)

    stamp = ProcessedStamp(root)
    if stamp.exists():
        logger.info(f"{stamp.path} exists; nothing to do")
        return PersistReport(mode=mode, stamp_present=True)

    dry_run = mode == PersistMode.DRY_RUN
    candidates = pin_candidates(provider.snapshot())
    changed = _pin_interfaces(root, candidates, dry_run)

    if not changed:
        logger.info("No changes.")

    if not dry_run:
        try:
            stamp.touch()
        except OSError as e:
            raise LinkWriteError(stamp.path, f"cannot write stamp: {e}")

    return PersistReport(
        mode=mode,
        changed=changed,
        pins=[RebindingInstruction(i.mac_address, i.name) for i in candidates],
    )


def run_persist_from_prior_state(
    config_folder: Union[str, Path],
    root: Union[str, Path],
    provider: SnapshotProvider,
    applied_extension: str = RELOCATE_FILE_EXTENSION,
) -> Optional[PersistReport]:
    """Restore NIC names recorded in `<config_folder>/pin_iface_name/pin.yml`.

    The pin snapshot is relocated after use so the pass runs once.

    Returns:
        None if there is no pin snapshot to consume, else the report

    Raises:
        PinStateError: If the pin snapshot is malformed
        SnapshotError: If the current state cannot be retrieved
        LinkWriteError: If a link file cannot be written
    """
    store = IdentityPinStore(config_folder, applied_extension)
    if not store.exists():
        return None
    if not store.pin_file.exists():
        logger.debug(f"{store.pin_dir} holds no {store.pin_file.name}; already consumed")
        return None

    pin_state = store.load()
    cur_state = provider.snapshot()

    changed = False
    instructions = resolve_rebindings(pin_state, cur_state)
    for instruction in instructions:
        logger.info(
            f"Pinning the interface with MAC {instruction.mac_address} to "
            f"interface name {instruction.desired_name}"
        )
        changed = write_link_file(
            root, instruction.mac_address, instruction.desired_name
        ) or changed

    store.relocate()
    return PersistReport(mode=PersistMode.SAVE, changed=changed, pins=instructions)


def clean_up(root: Union[str, Path], dry_run: bool = False) -> list[Path]:
    """Remove generated link files and the processed stamp.

    Only files still carrying the generated-by marker are removed, so a
    link file an operator took over by editing is kept.

    Returns:
        Paths removed (or that would be removed)
    """
    removed = []
    for path in list_link_files(root):
        try:
            first_line = path.read_text().split("\n", 1)[0]
        except OSError as e:
            raise LinkWriteError(path, f"cannot read: {e}")
        if first_line != PERSIST_GENERATED_BY:
            logger.info(f"Keeping {path}: not generated by us")
            continue

        if dry_run:
            logger.info(f"Would remove {path}")
        else:
            try:
                path.unlink()
            except OSError as e:
                raise LinkWriteError(path, f"cannot remove: {e}")
            logger.info(f"Removed {path}")
        removed.append(path)

    stamp = ProcessedStamp(root)
    if stamp.exists():
        if dry_run:
            logger.info(f"Would remove {stamp.path}")
        else:
            stamp.remove()
            logger.info(f"Removed {stamp.path}")
        removed.append(stamp.path)

    return removed
