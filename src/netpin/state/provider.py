"""State snapshot providers.

A provider returns the interfaces the kernel is currently running with,
never the desired-only state of a pending configuration.
"""
import logging
import subprocess
from pathlib import Path
from typing import Protocol, Union

from ..errors import ParseError, SnapshotError
from ..utils.logging_config import timed
from ..utils.retry import with_retry
from .schema import InterfaceSnapshot

logger = logging.getLogger(__name__)


class SnapshotProvider(Protocol):
    """Anything able to produce the current interface snapshot."""

    def snapshot(self) -> InterfaceSnapshot:
        ...


class StaticSnapshotProvider:
    """Provider returning a fixed snapshot (tests, offline runs)."""

    def __init__(self, snapshot: InterfaceSnapshot):
        self._snapshot = snapshot
        self.calls = 0

    def snapshot(self) -> InterfaceSnapshot:
        self.calls += 1
        return self._snapshot


class YamlFileSnapshotProvider:
    """Provider reading a snapshot saved as nmstate-style YAML."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def snapshot(self) -> InterfaceSnapshot:
        try:
            text = self.path.read_text()
        except OSError as e:
            raise SnapshotError(f"Failed to read state file {self.path}: {e}")
        try:
            return InterfaceSnapshot.from_yaml(text)
        except ParseError as e:
            raise SnapshotError(f"Invalid state file {self.path}: {e}")


class CommandSnapshotProvider:
    """Provider running an external show command that prints YAML.

    The command is read-only, so transient failures are retried.
    """

    def __init__(
        self,
        command: list[str],
        timeout: float = 60.0,
        max_attempts: int = 3,
    ):
        self.command = list(command)
        self.timeout = timeout
        self.max_attempts = max_attempts

    @timed("snapshot")
    def snapshot(self) -> InterfaceSnapshot:
        try:
            output = with_retry(max_attempts=self.max_attempts)(self._run)()
        except FileNotFoundError as e:
            raise SnapshotError(f"State command not found: {self.command[0]}: {e}")
        except subprocess.CalledProcessError as e:
            raise SnapshotError(
                f"State command {' '.join(self.command)} failed "
                f"with exit code {e.returncode}: {(e.stderr or '').strip()}"
            )
        except subprocess.TimeoutExpired:
            raise SnapshotError(
                f"State command {' '.join(self.command)} timed out after {self.timeout}s"
            )

        try:
            return InterfaceSnapshot.from_yaml(output)
        except ParseError as e:
            raise SnapshotError(f"Unparsable output from {self.command[0]}: {e}")

    def _run(self) -> str:
        logger.debug(f"Running: {' '.join(self.command)}")
        result = subprocess.run(
            self.command,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        return result.stdout
