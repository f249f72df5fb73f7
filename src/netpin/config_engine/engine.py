"""Main Config Engine - applies one declarative document.

Workflow:
1. Parse the desired state
2. Snapshot the current state
3. Merge desired over current, folding in route changes
4. Hand the changed apply projections to the network backend
"""
import logging
from typing import Optional, Protocol, TextIO

from ..errors import ApplyError, ParseError, SnapshotError
from ..state import SnapshotProvider
from .backend import NetworkBackend
from .merge import MergedNetworkState
from .parser import ConfigParser
from .route import store_route_config
from .schema import ApplyResult

logger = logging.getLogger(__name__)


class ApplyEngine(Protocol):
    """Anything able to apply an open configuration document."""

    def apply(self, fd: TextIO) -> ApplyResult:
        ...


class ConfigEngine:
    """
    Apply engine merging documents against the live state.

    Usage:
        engine = ConfigEngine(provider, CommandBackend(["nmstatectl", "apply", "-"]))
        with open("/etc/nmstate/01-eth0.yml") as fd:
            result = engine.apply(fd)
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        backend: NetworkBackend,
        parser: Optional[ConfigParser] = None,
    ):
        self.provider = provider
        self.backend = backend
        self.parser = parser or ConfigParser()

    def merge(self, fd: TextIO) -> MergedNetworkState:
        """Parse a document and merge it against the current state.

        Raises:
            ParseError: If the document is invalid
            SnapshotError: If the current state cannot be retrieved
        """
        desired = self.parser.parse(fd)
        current = self.provider.snapshot()

        merged = MergedNetworkState.build(desired, current)
        store_route_config(merged)
        return merged

    def apply(self, fd: TextIO) -> ApplyResult:
        """
        Apply a desired state document.

        Args:
            fd: Open configuration document

        Returns:
            ApplyResult with success/failure and details
        """
        result = ApplyResult()

        try:
            merged = self.merge(fd)
        except ParseError as e:
            result.error = f"Parse error: {e}"
            return result
        except SnapshotError as e:
            result.error = f"Failed to get current state: {e}"
            return result

        ifaces = merged.interfaces.changed_for_apply()
        if not ifaces:
            logger.info("No changes needed - state already matches")
            result.success = True
            return result

        logger.info(f"Applying {len(ifaces)} interface(s): {', '.join(i.name for i in ifaces)}")
        try:
            self.backend.realize(ifaces)
        except ApplyError as e:
            result.error = str(e)
            return result

        result.success = True
        result.changed_ifaces = [i.name for i in ifaces]
        return result
