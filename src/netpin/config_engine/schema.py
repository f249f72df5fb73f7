"""Schema definitions for the apply path.

Queued config files move through an explicit state machine backed by
the filesystem:

    PENDING --apply ok--> APPLIED   (file renamed to *.applied)
    PENDING --failure---> FAILED    (file left in place for the next run)
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..persist import PersistReport


class QueueItemState(str, Enum):
    """State of one queued config file."""
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class QueuedConfigFile:
    """A config file found in the config folder."""
    path: Path
    state: QueueItemState = QueueItemState.PENDING
    error: Optional[str] = None
    # None if applied but the rename failed
    applied_path: Optional[Path] = None

    def mark_applied(self, applied_path: Optional[Path]) -> None:
        self.state = QueueItemState.APPLIED
        self.applied_path = applied_path

    def mark_failed(self, error: str) -> None:
        self.state = QueueItemState.FAILED
        self.error = error


@dataclass
class ApplyResult:
    """Result of applying one config document."""
    success: bool = False
    changed_ifaces: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "changed_ifaces": self.changed_ifaces,
            "error": self.error,
        }


@dataclass
class SchedulerResult:
    """Result of one scheduler run.

    `error` only reports infrastructure problems (the config folder could
    not be listed); per-file failures live on the items. `pin_error` is
    set when the saved pin state could not be loaded.
    """
    items: list[QueuedConfigFile] = field(default_factory=list)
    error: Optional[str] = None
    pin_report: Optional["PersistReport"] = None
    pin_error: Optional[str] = None

    @property
    def applied(self) -> list[QueuedConfigFile]:
        return [i for i in self.items if i.state == QueueItemState.APPLIED]

    @property
    def failed(self) -> list[QueuedConfigFile]:
        return [i for i in self.items if i.state == QueueItemState.FAILED]

    def summary(self) -> str:
        """Human-readable summary."""
        lines = []
        if self.pin_error:
            lines.append(f"NIC name pinning failed: {self.pin_error}")
        if self.error:
            lines.append(f"Config folder not processed: {self.error}")
        elif not self.items:
            lines.append("No config files to apply")
        else:
            lines.append(f"{len(self.applied)} applied, {len(self.failed)} failed")
        for item in self.items:
            line = f"  {item.state.value:8s} {item.path}"
            if item.error:
                line += f": {item.error}"
            lines.append(line)
        return "\n".join(lines)
