"""Network backends realizing merged apply projections."""
import logging
import subprocess
from typing import Any, Protocol

import yaml

from ..errors import ApplyError
from ..state import InterfaceRecord

logger = logging.getLogger(__name__)


class NetworkBackend(Protocol):
    """Anything able to push interface projections to the network stack."""

    def realize(self, ifaces: list[InterfaceRecord]) -> None:
        """Push `ifaces`; raise ApplyError on failure."""
        ...


def render_apply_document(ifaces: list[InterfaceRecord]) -> dict[str, Any]:
    """Build the nmstate-style document for a list of apply projections.

    For every projection carrying a route list (even an empty one) the
    interface's existing routes are removed first, so the list replaces
    them.
    """
    routes = []
    for iface in ifaces:
        if iface.routes is None:
            continue
        routes.append({"next-hop-interface": iface.name, "state": "absent"})
        routes.extend(r.to_dict() for r in iface.routes)

    document: dict[str, Any] = {"interfaces": [i.to_dict() for i in ifaces]}
    if routes:
        document["routes"] = {"config": routes}
    return document


class CommandBackend:
    """Backend piping the apply document into an external command."""

    def __init__(self, command: list[str], timeout: float = 60.0):
        self.command = list(command)
        self.timeout = timeout

    def realize(self, ifaces: list[InterfaceRecord]) -> None:
        document = yaml.safe_dump(
            render_apply_document(ifaces), default_flow_style=False, sort_keys=False
        )
        logger.debug(f"Running: {' '.join(self.command)}")
        logger.debug(f"Apply document:\n{document}")

        try:
            result = subprocess.run(
                self.command,
                input=document,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,  # We'll handle errors ourselves
            )
        except FileNotFoundError as e:
            raise ApplyError(f"Apply command not found: {self.command[0]}: {e}")
        except subprocess.TimeoutExpired:
            raise ApplyError(
                f"Apply command {' '.join(self.command)} timed out after {self.timeout}s"
            )

        if result.returncode != 0:
            raise ApplyError(
                f"Apply command failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
