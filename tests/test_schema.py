"""Tests for the interface snapshot schema."""
import pytest

from netpin.errors import ParseError
from netpin.state import (
    InterfaceRecord,
    InterfaceSnapshot,
    InterfaceType,
    IpConfig,
    RouteEntry,
)


SNAPSHOT_YAML = """
interfaces:
  - name: lo
    type: loopback
  - name: eth0
    type: ethernet
    mac-address: aa:bb:cc:dd:ee:01
    ipv4:
      enabled: true
      dhcp: false
      address:
        - ip: 192.0.2.10
          prefix-length: 24
    ipv6:
      enabled: true
      dhcp: true
      autoconf: true
  - name: eth1
    type: ethernet
    mac-address: AA:BB:CC:DD:EE:02
    ipv4:
      enabled: true
      dhcp: true
routes:
  config:
    - destination: 0.0.0.0/0
      next-hop-interface: eth0
      next-hop-address: 192.0.2.1
      metric: 100
      table-id: 254
    - destination: 198.51.100.0/24
      next-hop-interface: eth1
"""


class TestIpConfig:
    """Tests for IpConfig."""

    def test_static_with_addresses(self):
        """Enabled, no DHCP/autoconf and an address is static."""
        cfg = IpConfig(enabled=True, addresses=["192.0.2.10/24"])
        assert cfg.is_static

    def test_dhcp_is_not_static(self):
        """DHCP addressing is automatic."""
        cfg = IpConfig(enabled=True, dhcp=True, addresses=["192.0.2.10/24"])
        assert not cfg.is_static

    def test_autoconf_is_not_static(self):
        """SLAAC addressing is automatic."""
        cfg = IpConfig(enabled=True, autoconf=True, addresses=["2001:db8::1/64"])
        assert not cfg.is_static

    def test_disabled_is_not_static(self):
        """A disabled family is never static."""
        cfg = IpConfig(enabled=False, addresses=["192.0.2.10/24"])
        assert not cfg.is_static

    def test_no_address_is_not_static(self):
        """Enabled without addresses carries nothing to pin."""
        assert not IpConfig(enabled=True).is_static

    def test_to_dict(self):
        """Addresses serialize to ip/prefix-length entries."""
        cfg = IpConfig(enabled=True, addresses=["192.0.2.10/24"])

        assert cfg.to_dict() == {
            "enabled": True,
            "dhcp": False,
            "address": [{"ip": "192.0.2.10", "prefix-length": 24}],
        }

    def test_invalid_address_entry_raises(self):
        """Address entries without a prefix length are rejected."""
        with pytest.raises(ParseError):
            IpConfig.from_dict({"enabled": True, "address": [{"ip": "192.0.2.1"}]})


class TestRouteEntry:
    """Tests for RouteEntry."""

    def test_absent_matches_on_set_fields(self):
        """Unset fields of an absent route act as wildcards."""
        absent = RouteEntry(next_hop_interface="eth0", state="absent")
        route = RouteEntry(destination="0.0.0.0/0", next_hop_interface="eth0")

        assert absent.is_absent
        assert absent.matches(route)

    def test_absent_does_not_match_other_destination(self):
        """A set field must match exactly."""
        absent = RouteEntry(destination="10.0.0.0/8", state="absent")
        route = RouteEntry(destination="0.0.0.0/0", next_hop_interface="eth0")

        assert not absent.matches(route)

    def test_from_dict_converts_numbers(self):
        """Metric and table id are converted to int."""
        route = RouteEntry.from_dict({"destination": "0.0.0.0/0", "metric": "100"})
        assert route.metric == 100

    def test_invalid_metric_raises(self):
        """A non-numeric metric is rejected."""
        with pytest.raises(ParseError):
            RouteEntry.from_dict({"metric": "high"})


class TestInterfaceSnapshot:
    """Tests for InterfaceSnapshot parsing and lookups."""

    def test_from_yaml(self):
        """Parse interfaces and routes from YAML."""
        snapshot = InterfaceSnapshot.from_yaml(SNAPSHOT_YAML)

        assert [i.name for i in snapshot.interfaces] == ["lo", "eth0", "eth1"]
        assert len(snapshot.routes) == 2

        eth0 = snapshot.interfaces[1]
        assert eth0.iface_type == InterfaceType.ETHERNET
        assert eth0.mac_address == "AA:BB:CC:DD:EE:01"  # Normalized
        assert eth0.ipv4.addresses == ["192.0.2.10/24"]
        assert eth0.has_static_ip

    def test_non_ethernet_keeps_raw_type(self):
        """Other types map to OTHER but keep their document type."""
        snapshot = InterfaceSnapshot.from_yaml(SNAPSHOT_YAML)
        lo = snapshot.interfaces[0]

        assert lo.iface_type == InterfaceType.OTHER
        assert lo.raw_type == "loopback"
        assert lo.mac_address is None
        assert lo.to_dict()["type"] == "loopback"

    def test_ethernet_filter(self):
        """ethernet() keeps snapshot order."""
        snapshot = InterfaceSnapshot.from_yaml(SNAPSHOT_YAML)
        assert [i.name for i in snapshot.ethernet()] == ["eth0", "eth1"]

    def test_get_iface_matches_name_and_type(self):
        """Lookup needs both name and type."""
        snapshot = InterfaceSnapshot.from_yaml(SNAPSHOT_YAML)

        assert snapshot.get_iface("eth0", InterfaceType.ETHERNET) is not None
        assert snapshot.get_iface("eth0", InterfaceType.OTHER) is None
        assert snapshot.get_iface("eth9", InterfaceType.ETHERNET) is None

    def test_routes_by_interface(self):
        """Routes are grouped by next hop interface."""
        snapshot = InterfaceSnapshot.from_yaml(SNAPSHOT_YAML)
        indexed = snapshot.routes_by_interface()

        assert set(indexed) == {"eth0", "eth1"}
        assert indexed["eth0"][0].next_hop_address == "192.0.2.1"
        assert indexed["eth0"][0].table_id == 254

    def test_all_digit_mac_survives_yaml(self):
        """Unquoted all-digit MACs are read back as MAC strings."""
        snapshot = InterfaceSnapshot.from_yaml(
            "interfaces:\n"
            "  - name: eth0\n"
            "    type: ethernet\n"
            "    mac-address: 52:54:00:12:34:56\n"
        )
        assert snapshot.interfaces[0].mac_address == "52:54:00:12:34:56"

    def test_yaml_round_trip(self):
        """to_yaml output parses back to the same snapshot."""
        snapshot = InterfaceSnapshot.from_yaml(SNAPSHOT_YAML)
        assert InterfaceSnapshot.from_yaml(snapshot.to_yaml()) == snapshot

    def test_empty_document(self):
        """An empty document is an empty snapshot."""
        assert InterfaceSnapshot.from_yaml("") == InterfaceSnapshot()

    def test_interface_without_name_raises(self):
        """Interfaces need a name."""
        with pytest.raises(ParseError):
            InterfaceSnapshot.from_dict({"interfaces": [{"type": "ethernet"}]})

    def test_invalid_yaml_raises(self):
        """Broken YAML surfaces as ParseError."""
        with pytest.raises(ParseError):
            InterfaceSnapshot.from_yaml("interfaces: [unclosed")

    def test_clone_name_type_only(self):
        """Identity-only clone drops addressing."""
        record = InterfaceRecord(
            name="eth0",
            iface_type=InterfaceType.ETHERNET,
            mac_address="aa:bb",
            ipv4=IpConfig(enabled=True, addresses=["192.0.2.10/24"]),
        )
        clone = record.clone_name_type_only()

        assert clone.name == "eth0"
        assert clone.mac_address == "AA:BB"
        assert clone.ipv4 is None
        assert clone.raw_type == "ethernet"

    def test_parsed_routes_stay_on_snapshot(self):
        """Parsed routes are not copied onto interface records."""
        snapshot = InterfaceSnapshot.from_yaml(
            "interfaces:\n"
            "  - name: eth0\n"
            "    type: ethernet\n"
            "routes:\n"
            "  config:\n"
            "    - destination: 0.0.0.0/0\n"
            "      next-hop-interface: eth0\n"
        )

        assert snapshot.interfaces[0].routes is None
        assert len(snapshot.routes_by_interface()["eth0"]) == 1
