"""Parser for queued configuration documents.

Converts YAML input to an InterfaceSnapshot describing desired state.
"""
from typing import Any, TextIO, Union

import yaml

from ..errors import ParseError
from ..state import InterfaceSnapshot


class ConfigParser:
    """Parse desired state from YAML documents."""

    def parse(self, source: Union[TextIO, str]) -> InterfaceSnapshot:
        """
        Parse a configuration document.

        Args:
            source: Open text file or YAML string

        Returns:
            Desired state as an InterfaceSnapshot

        Raises:
            ParseError: If the document is invalid
        """
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise ParseError(f"Invalid YAML: {e}")

        if data is None:
            raise ParseError("Empty configuration document")

        return self.parse_dict(data)

    def parse_dict(self, data: Any) -> InterfaceSnapshot:
        """Parse an already deserialized document."""
        if not isinstance(data, dict):
            raise ParseError("Configuration document must be a mapping")

        unknown = sorted(set(data) - {"interfaces", "routes"})
        if unknown:
            raise ParseError(f"Unsupported section(s): {', '.join(unknown)}")

        desired = InterfaceSnapshot.from_dict(data)

        seen = set()
        for iface in desired.interfaces:
            if iface.name in seen:
                raise ParseError(f"Interface {iface.name} declared more than once")
            seen.add(iface.name)

        for route in desired.routes:
            if not route.is_absent and not route.next_hop_interface:
                raise ParseError(
                    f"Route to {route.destination} has no next-hop-interface"
                )

        return desired
