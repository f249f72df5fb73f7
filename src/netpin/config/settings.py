"""Service settings.

Settings come from defaults, an optional YAML file, and NETPIN_*
environment variables (environment wins):

- NETPIN_CONFIG_FOLDER: Folder holding queued configs (default: /etc/nmstate)
- NETPIN_ROOT: Filesystem root for generated link files (default: /)
- NETPIN_SETTLE_DELAY: Seconds to wait before applying (default: 2)
- NETPIN_SHOW_COMMAND: Command printing the running state as YAML
- NETPIN_APPLY_COMMAND: Command reading a state document on stdin
- NETPIN_COMMAND_TIMEOUT: Timeout in seconds for both commands
"""
import logging
import os
import shlex
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FOLDER = "/etc/nmstate"
DEFAULT_SETTINGS_FILE = Path("/etc/netpin/netpin.yaml")
CONFIG_FILE_EXTENSION = "yml"
RELOCATE_FILE_EXTENSION = "applied"
# NetworkManager may not be ready on D-Bus right after it reports started
DEFAULT_SETTLE_DELAY = 2.0


@dataclass
class ServiceSettings:
    """Runtime settings for the service and persistence passes."""
    config_folder: str = DEFAULT_CONFIG_FOLDER
    root: str = "/"
    config_extension: str = CONFIG_FILE_EXTENSION
    applied_extension: str = RELOCATE_FILE_EXTENSION
    settle_delay: float = DEFAULT_SETTLE_DELAY
    show_command: list[str] = field(
        default_factory=lambda: ["nmstatectl", "show", "--running-config", "--kernel"]
    )
    apply_command: list[str] = field(
        default_factory=lambda: ["nmstatectl", "apply", "-"]
    )
    command_timeout: float = 60.0

    def __post_init__(self):
        try:
            self.settle_delay = float(self.settle_delay)
            self.command_timeout = float(self.command_timeout)
        except (TypeError, ValueError):
            raise ValueError(
                f"settle_delay and command_timeout must be numbers, "
                f"got {self.settle_delay!r} and {self.command_timeout!r}"
            )
        if self.settle_delay < 0:
            raise ValueError(f"settle_delay must be >= 0, got {self.settle_delay}")
        self.config_extension = self.config_extension.lstrip(".")
        self.applied_extension = self.applied_extension.lstrip(".")
        if isinstance(self.show_command, str):
            self.show_command = shlex.split(self.show_command)
        if isinstance(self.apply_command, str):
            self.apply_command = shlex.split(self.apply_command)

    @classmethod
    def from_file(cls, path: Path) -> "ServiceSettings":
        """Load settings from a YAML file.

        Raises:
            ValueError: If the file holds keys that are not settings
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings in {path}: {', '.join(unknown)}")

        return cls(**data)

    @classmethod
    def from_env(cls, base: Optional["ServiceSettings"] = None) -> "ServiceSettings":
        """Overlay NETPIN_* environment variables on top of base settings."""
        settings = base or cls()
        env = os.environ

        return cls(
            config_folder=env.get("NETPIN_CONFIG_FOLDER", settings.config_folder),
            root=env.get("NETPIN_ROOT", settings.root),
            config_extension=settings.config_extension,
            applied_extension=settings.applied_extension,
            settle_delay=float(env.get("NETPIN_SETTLE_DELAY", settings.settle_delay)),
            show_command=env.get("NETPIN_SHOW_COMMAND", settings.show_command),
            apply_command=env.get("NETPIN_APPLY_COMMAND", settings.apply_command),
            command_timeout=float(env.get("NETPIN_COMMAND_TIMEOUT", settings.command_timeout)),
        )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ServiceSettings":
        """Load settings from file (if present) and environment.

        Raises:
            FileNotFoundError: If an explicitly given `path` does not exist
        """
        if path is not None and not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        path = path or Path(os.environ.get("NETPIN_SETTINGS", str(DEFAULT_SETTINGS_FILE)))
        base = None
        if path.exists():
            logger.debug(f"Loading settings from {path}")
            base = cls.from_file(path)
        return cls.from_env(base)
