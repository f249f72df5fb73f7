"""Interface snapshot schema.

Documents follow the nmstate YAML layout:

```yaml
interfaces:
  - name: eth0
    type: ethernet
    mac-address: 52:54:00:12:34:56
    ipv4:
      enabled: true
      dhcp: false
      address:
        - ip: 192.0.2.10
          prefix-length: 24
routes:
  config:
    - destination: 0.0.0.0/0
      next-hop-interface: eth0
      next-hop-address: 192.0.2.1
```
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import yaml

from ..errors import ParseError


class InterfaceType(str, Enum):
    """Interface kinds netpin distinguishes."""
    ETHERNET = "ethernet"
    OTHER = "other"

    @classmethod
    def from_str(cls, value: Optional[str]) -> "InterfaceType":
        if value == cls.ETHERNET.value:
            return cls.ETHERNET
        return cls.OTHER


@dataclass
class IpConfig:
    """IPv4 or IPv6 configuration of one interface."""
    enabled: bool = False
    dhcp: bool = False
    autoconf: bool = False
    # "192.0.2.10/24" form
    addresses: list[str] = field(default_factory=list)

    @property
    def is_static(self) -> bool:
        """True when addresses are set by hand rather than by DHCP/SLAAC."""
        return (
            self.enabled
            and not self.dhcp
            and not self.autoconf
            and len(self.addresses) > 0
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"enabled": self.enabled}
        if not self.enabled:
            return data
        data["dhcp"] = self.dhcp
        if self.autoconf:
            data["autoconf"] = True
        data["address"] = []
        for address in self.addresses:
            ip, _, prefix = address.partition("/")
            data["address"].append({"ip": ip, "prefix-length": int(prefix)})
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["IpConfig"]:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ParseError(f"Invalid IP configuration: {data!r}")

        addresses = []
        for entry in data.get("address") or []:
            try:
                addresses.append(f"{entry['ip']}/{int(entry['prefix-length'])}")
            except (KeyError, TypeError, ValueError):
                raise ParseError(f"Invalid IP address entry: {entry!r}")

        return cls(
            enabled=bool(data.get("enabled", False)),
            dhcp=bool(data.get("dhcp", False)),
            autoconf=bool(data.get("autoconf", False)),
            addresses=addresses,
        )


@dataclass
class RouteEntry:
    """A single route as found in `routes.config`."""
    destination: Optional[str] = None
    next_hop_interface: Optional[str] = None
    next_hop_address: Optional[str] = None
    metric: Optional[int] = None
    table_id: Optional[int] = None
    # "absent" requests removal of matching routes
    state: Optional[str] = None

    _KEYS = {
        "destination": "destination",
        "next_hop_interface": "next-hop-interface",
        "next_hop_address": "next-hop-address",
        "metric": "metric",
        "table_id": "table-id",
        "state": "state",
    }

    @property
    def is_absent(self) -> bool:
        return self.state == "absent"

    def matches(self, other: "RouteEntry") -> bool:
        """Check whether this (absent) entry selects `other`.

        Every field set here must equal the one on `other`; unset fields
        act as wildcards.
        """
        for attr in self._KEYS:
            if attr == "state":
                continue
            value = getattr(self, attr)
            if value is not None and value != getattr(other, attr):
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            key: getattr(self, attr)
            for attr, key in self._KEYS.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RouteEntry":
        if not isinstance(data, dict):
            raise ParseError(f"Invalid route entry: {data!r}")
        kwargs = {attr: data.get(key) for attr, key in cls._KEYS.items()}
        for attr in ("metric", "table_id"):
            if kwargs[attr] is not None:
                try:
                    kwargs[attr] = int(kwargs[attr])
                except (TypeError, ValueError):
                    raise ParseError(f"Invalid {attr} in route entry: {data!r}")
        return cls(**kwargs)


def _mac_from_yaml(value: Any) -> Optional[str]:
    """Undo YAML 1.1 sexagesimal parsing of all-digit MAC addresses.

    PyYAML reads an unquoted `52:54:00:12:34:56` as a base-60 integer.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, int) and value >= 0:
        parts = []
        while value:
            value, digit = divmod(value, 60)
            parts.append(f"{digit:02d}")
        return ":".join(reversed(parts or ["00"]))
    raise ParseError(f"Invalid MAC address: {value!r}")


@dataclass
class InterfaceRecord:
    """One interface as observed (or desired) at a point in time."""
    name: str
    iface_type: InterfaceType = InterfaceType.OTHER
    mac_address: Optional[str] = None
    ipv4: Optional[IpConfig] = None
    ipv6: Optional[IpConfig] = None
    # Only set on apply projections; parsed routes live on the snapshot
    routes: Optional[list[RouteEntry]] = None
    state: Optional[str] = None
    # Type string as found in the document (e.g. "bond", "loopback")
    raw_type: str = ""

    def __post_init__(self):
        if self.mac_address is not None:
            self.mac_address = self.mac_address.upper()
        if not self.raw_type:
            self.raw_type = self.iface_type.value

    @property
    def is_ethernet(self) -> bool:
        return self.iface_type == InterfaceType.ETHERNET

    @property
    def has_static_ip(self) -> bool:
        """True if either address family is statically configured."""
        return any(
            cfg is not None and cfg.is_static
            for cfg in (self.ipv4, self.ipv6)
        )

    def clone_name_type_only(self) -> "InterfaceRecord":
        """Copy carrying identity only, no address or route configuration."""
        return InterfaceRecord(
            name=self.name,
            iface_type=self.iface_type,
            mac_address=self.mac_address,
            raw_type=self.raw_type,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "type": self.raw_type}
        if self.state:
            data["state"] = self.state
        if self.mac_address:
            data["mac-address"] = self.mac_address
        if self.ipv4 is not None:
            data["ipv4"] = self.ipv4.to_dict()
        if self.ipv6 is not None:
            data["ipv6"] = self.ipv6.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InterfaceRecord":
        if not isinstance(data, dict) or not data.get("name"):
            raise ParseError(f"Interface entry without a name: {data!r}")

        raw_type = data.get("type") or InterfaceType.OTHER.value
        return cls(
            name=str(data["name"]),
            iface_type=InterfaceType.from_str(raw_type),
            mac_address=_mac_from_yaml(data.get("mac-address")),
            ipv4=IpConfig.from_dict(data.get("ipv4")),
            ipv6=IpConfig.from_dict(data.get("ipv6")),
            state=data.get("state"),
            raw_type=raw_type,
        )


@dataclass
class InterfaceSnapshot:
    """Interfaces (and routes) observed at one point in time."""
    interfaces: list[InterfaceRecord] = field(default_factory=list)
    routes: list[RouteEntry] = field(default_factory=list)

    def get_iface(
        self,
        name: str,
        iface_type: InterfaceType
    ) -> Optional[InterfaceRecord]:
        """Find an interface by name and type."""
        for iface in self.interfaces:
            if iface.name == name and iface.iface_type == iface_type:
                return iface
        return None

    def ethernet(self) -> list[InterfaceRecord]:
        """Ethernet interfaces in snapshot order."""
        return [i for i in self.interfaces if i.is_ethernet]

    def routes_by_interface(self) -> dict[str, list[RouteEntry]]:
        """Group routes by next hop interface, keeping document order."""
        indexed: dict[str, list[RouteEntry]] = {}
        for route in self.routes:
            if route.next_hop_interface:
                indexed.setdefault(route.next_hop_interface, []).append(route)
        return indexed

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "interfaces": [i.to_dict() for i in self.interfaces],
        }
        if self.routes:
            data["routes"] = {"config": [r.to_dict() for r in self.routes]}
        return data

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "InterfaceSnapshot":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ParseError("State document must be a mapping")

        interfaces = [
            InterfaceRecord.from_dict(i) for i in data.get("interfaces") or []
        ]
        routes_section = data.get("routes") or {}
        if not isinstance(routes_section, dict):
            raise ParseError("'routes' must be a mapping with a 'config' list")
        routes = [RouteEntry.from_dict(r) for r in routes_section.get("config") or []]

        return cls(interfaces=interfaces, routes=routes)

    @classmethod
    def from_yaml(cls, text: str) -> "InterfaceSnapshot":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(f"Invalid YAML: {e}")
        return cls.from_dict(data)
