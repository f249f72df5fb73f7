"""Persisted pin snapshots and the processed stamp.

Directory structure used:
    <config folder>/
    └── pin_iface_name/
        └── pin.yml           # Prior state, renamed to pin.applied once used

    <root>/etc/systemd/network/
    ├── 98-nmstate-<name>.link
    └── .nmstate-persist.stamp
"""
import logging
from pathlib import Path
from typing import Union

import yaml

from ..config.settings import RELOCATE_FILE_EXTENSION
from ..errors import ParseError, PinStateError
from ..state import InterfaceSnapshot
from ..utils.audit_log import log_change
from ..utils.files import relocate_file
from .link_writer import link_dir

logger = logging.getLogger(__name__)

# Subdirectory of the config folder holding a previously serialized state
PIN_IFACE_NAME_FOLDER = "pin_iface_name"
PIN_STATE_FILENAME = "pin.yml"
# Present once NIC name persistence ran
NMSTATE_PERSIST_STAMP = ".nmstate-persist.stamp"


class IdentityPinStore:
    """Access to the pin snapshot stored under the config folder."""

    def __init__(
        self,
        config_folder: Union[str, Path],
        applied_extension: str = RELOCATE_FILE_EXTENSION,
    ):
        self.config_folder = Path(config_folder)
        self.applied_extension = applied_extension

    @property
    def pin_dir(self) -> Path:
        return self.config_folder / PIN_IFACE_NAME_FOLDER

    @property
    def pin_file(self) -> Path:
        return self.pin_dir / PIN_STATE_FILENAME

    def exists(self) -> bool:
        """True if a pin directory is waiting to be consumed."""
        return self.pin_dir.exists()

    def load(self) -> InterfaceSnapshot:
        """Read and deserialize the pin snapshot.

        Raises:
            PinStateError: If the file is missing, unreadable or malformed
        """
        try:
            with open(self.pin_file) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise PinStateError(f"Failed to read pin state {self.pin_file}: {e}", self.pin_file)
        except yaml.YAMLError as e:
            raise PinStateError(f"Invalid YAML in pin state {self.pin_file}: {e}", self.pin_file)

        try:
            return InterfaceSnapshot.from_dict(data)
        except ParseError as e:
            raise PinStateError(f"Invalid pin state {self.pin_file}: {e}", self.pin_file)

    def relocate(self) -> Path:
        """Mark the pin snapshot as consumed by renaming it."""
        try:
            new_path = relocate_file(self.pin_file, self.applied_extension)
        except OSError as e:
            raise PinStateError(f"Failed to relocate pin state {self.pin_file}: {e}", self.pin_file)
        log_change("pin_state_consumed", str(self.pin_file), success=True,
                   details={"relocated_to": str(new_path)})
        return new_path


class ProcessedStamp:
    """Zero-byte marker saying NIC name persistence already ran."""

    def __init__(self, root: Union[str, Path]):
        self.path = link_dir(root) / NMSTATE_PERSIST_STAMP

    def exists(self) -> bool:
        return self.path.exists()

    def touch(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(b"")

    def remove(self) -> bool:
        """Delete the stamp. Returns False if it was not there."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
