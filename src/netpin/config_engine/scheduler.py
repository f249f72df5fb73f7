"""Apply queued configuration files from the config folder.

Files ending in `.yml` are applied in path order. A file applied
successfully is renamed to `.applied` so it is never applied again; a
file that failed stays in place for the next run. One file failing never
stops the others.
"""
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..config.settings import ServiceSettings
from ..errors import PinStateError
from ..persist import run_persist_from_prior_state
from ..state import SnapshotProvider
from ..utils.audit_log import log_change
from ..utils.files import relocate_file
from ..utils.logging_config import timed_section
from .engine import ApplyEngine
from .schema import ApplyResult, QueuedConfigFile, SchedulerResult

logger = logging.getLogger(__name__)


class ConfigApplyScheduler:
    """Discover and apply queued configuration files."""

    def __init__(
        self,
        settings: ServiceSettings,
        engine: ApplyEngine,
        provider: SnapshotProvider,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the scheduler.

        Args:
            settings: Service settings (folder, extensions, delay)
            engine: Apply engine realizing each document
            provider: Current state provider, used by the pinning pass
            sleep: Sleep function (replaced in tests)
        """
        self.settings = settings
        self.engine = engine
        self.provider = provider
        self._sleep = sleep

    @property
    def folder(self) -> Path:
        return Path(self.settings.config_folder)

    def discover(self) -> list[Path]:
        """List config files in the folder, sorted by path.

        Raises:
            OSError: If the folder cannot be read
        """
        suffix = f".{self.settings.config_extension}"
        files = [
            entry for entry in self.folder.iterdir()
            if entry.suffix == suffix and entry.is_file()
        ]
        return sorted(files)

    def run(self) -> SchedulerResult:
        """
        Run the pinning pass, then apply every queued file once.

        Returns:
            SchedulerResult; its `error` is only set when the folder
            could not be listed, its `pin_error` when the saved pin
            state was unreadable

        Raises:
            SnapshotError, LinkWriteError: From the pinning pass
        """
        result = SchedulerResult()

        # A previously saved state for NIC name pinning is consumed first
        try:
            result.pin_report = run_persist_from_prior_state(
                self.folder,
                self.settings.root,
                self.provider,
                self.settings.applied_extension,
            )
        except PinStateError as e:
            # Only the pinning pass is lost, queued configs still apply
            logger.error(f"NIC name pinning skipped: {e}")
            result.pin_error = str(e)

        try:
            config_files = self.discover()
        except OSError as e:
            logger.info(
                f"Failed to read config folder {self.folder} due to "
                f"error {e}, ignoring"
            )
            result.error = str(e)
            return result

        if not config_files:
            logger.info(
                f"No config (ending with .{self.settings.config_extension}) "
                f"found in config folder {self.folder}"
            )
            return result

        # NetworkManager.service being started does not mean its D-Bus API
        # is ready; wait once instead of failing the first apply.
        if self.settings.settle_delay > 0:
            logger.info(f"Waiting {self.settings.settle_delay}s for the network service to settle")
            self._sleep(self.settings.settle_delay)

        for file_path in config_files:
            item = QueuedConfigFile(path=file_path)
            result.items.append(item)
            self._process(item)

        logger.info(
            f"Processed {len(result.items)} config file(s): "
            f"{len(result.applied)} applied, {len(result.failed)} failed"
        )
        return result

    def _process(self, item: QueuedConfigFile) -> None:
        """Apply a single file and move it to its final state."""
        try:
            fd = open(item.path)
        except OSError as e:
            logger.error(f"Failed to read config file {item.path}: {e}")
            item.mark_failed(f"Failed to read: {e}")
            return

        with fd:
            apply_result = self._apply(item.path, fd)

        if not apply_result.success:
            logger.error(f"Failed to apply state file {item.path}: {apply_result.error}")
            log_change("config_failed", str(item.path), success=False,
                       error=apply_result.error)
            item.mark_failed(apply_result.error or "unknown error")
            return

        logger.info(f"Applied config: {item.path}")
        log_change("config_applied", str(item.path), success=True,
                   details={"interfaces": apply_result.changed_ifaces})

        applied_path: Optional[Path] = None
        try:
            applied_path = relocate_file(item.path, self.settings.applied_extension)
        except OSError as e:
            logger.error(f"Failed to rename applied state file: {item.path} {e}")
        item.mark_applied(applied_path)

    def _apply(self, path: Path, fd) -> ApplyResult:
        try:
            with timed_section("apply", target=str(path)):
                return self.engine.apply(fd)
        except Exception as e:
            logger.exception(f"Apply engine raised for {path}: {e}")
            return ApplyResult(success=False, error=str(e))
