"""Tests for the Config Engine."""
import io
import sys

import pytest
import yaml

from netpin.config_engine import (
    CommandBackend,
    ConfigEngine,
    ConfigParser,
    render_apply_document,
)
from netpin.errors import ApplyError, ParseError, SnapshotError
from netpin.state import (
    InterfaceRecord,
    InterfaceSnapshot,
    InterfaceType,
    IpConfig,
    RouteEntry,
    StaticSnapshotProvider,
)


CURRENT = InterfaceSnapshot(
    interfaces=[
        InterfaceRecord(
            name="eth0",
            iface_type=InterfaceType.ETHERNET,
            mac_address="AA:BB:CC:DD:EE:01",
            ipv4=IpConfig(enabled=True, addresses=["192.0.2.10/24"]),
            state="up",
        ),
        InterfaceRecord(
            name="eth1",
            iface_type=InterfaceType.ETHERNET,
            mac_address="AA:BB:CC:DD:EE:02",
            ipv4=IpConfig(enabled=True, dhcp=True),
            state="up",
        ),
    ],
    routes=[RouteEntry(destination="10.0.0.0/8", next_hop_interface="eth1")],
)


class RecordingBackend:
    """Backend keeping what it was asked to realize."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def realize(self, ifaces):
        self.calls.append(ifaces)
        if self.error:
            raise ApplyError(self.error)


class FailingProvider:
    def snapshot(self):
        raise SnapshotError("state service down")


class TestConfigParser:
    """Tests for the ConfigParser."""

    def test_parse_document(self):
        """Parse interfaces and routes."""
        desired = ConfigParser().parse(
            "interfaces:\n"
            "  - name: eth0\n"
            "    type: ethernet\n"
            "    state: up\n"
            "routes:\n"
            "  config:\n"
            "    - destination: 0.0.0.0/0\n"
            "      next-hop-interface: eth0\n"
        )

        assert desired.interfaces[0].name == "eth0"
        assert desired.routes[0].next_hop_interface == "eth0"

    def test_parse_open_file(self, tmp_path):
        """Open files are accepted."""
        path = tmp_path / "01-eth0.yml"
        path.write_text("interfaces:\n  - name: eth0\n")

        with open(path) as fd:
            desired = ConfigParser().parse(fd)

        assert desired.interfaces[0].name == "eth0"

    def test_empty_document_raises(self):
        """Empty documents are rejected."""
        with pytest.raises(ParseError):
            ConfigParser().parse("")

    def test_unknown_section_raises(self):
        """Unsupported top-level keys are rejected."""
        with pytest.raises(ParseError) as exc:
            ConfigParser().parse("dns-resolver:\n  config: {}\n")

        assert "dns-resolver" in str(exc.value)

    def test_duplicate_interface_raises(self):
        """An interface may only be declared once."""
        with pytest.raises(ParseError):
            ConfigParser().parse("interfaces:\n  - name: eth0\n  - name: eth0\n")

    def test_route_without_interface_raises(self):
        """Non-absent routes need a next hop interface."""
        with pytest.raises(ParseError):
            ConfigParser().parse("routes:\n  config:\n    - destination: 0.0.0.0/0\n")


class TestConfigEngine:
    """Tests for ConfigEngine.apply."""

    def test_apply_changed_interface(self):
        """Changed interfaces are handed to the backend."""
        backend = RecordingBackend()
        engine = ConfigEngine(StaticSnapshotProvider(CURRENT), backend)

        result = engine.apply(io.StringIO(
            "interfaces:\n"
            "  - name: eth0\n"
            "    type: ethernet\n"
            "    ipv4:\n"
            "      enabled: true\n"
            "      address:\n"
            "        - ip: 192.0.2.20\n"
            "          prefix-length: 24\n"
        ))

        assert result.success is True
        assert result.changed_ifaces == ["eth0"]
        [ifaces] = backend.calls
        assert ifaces[0].ipv4.addresses == ["192.0.2.20/24"]

    def test_no_change_skips_backend(self):
        """A document matching the current state pushes nothing."""
        backend = RecordingBackend()
        engine = ConfigEngine(StaticSnapshotProvider(CURRENT), backend)

        result = engine.apply(io.StringIO("interfaces:\n  - name: eth0\n    state: up\n"))

        assert result.success is True
        assert backend.calls == []

    def test_route_change_only_touches_its_interface(self):
        """A new route on eth0 leaves eth1 out of the apply."""
        backend = RecordingBackend()
        engine = ConfigEngine(StaticSnapshotProvider(CURRENT), backend)

        result = engine.apply(io.StringIO(
            "routes:\n"
            "  config:\n"
            "    - destination: 0.0.0.0/0\n"
            "      next-hop-interface: eth0\n"
            "      next-hop-address: 192.0.2.1\n"
        ))

        assert result.changed_ifaces == ["eth0"]
        [ifaces] = backend.calls
        assert ifaces[0].ipv4.addresses == ["192.0.2.10/24"]
        assert ifaces[0].routes[0].next_hop_address == "192.0.2.1"

    def test_parse_error_is_a_failure(self):
        """Invalid documents fail without reaching the backend."""
        backend = RecordingBackend()
        engine = ConfigEngine(StaticSnapshotProvider(CURRENT), backend)

        result = engine.apply(io.StringIO("interfaces: [unclosed"))

        assert result.success is False
        assert result.error.startswith("Parse error")
        assert backend.calls == []

    def test_snapshot_error_is_a_failure(self):
        """A failed snapshot fails this document only."""
        engine = ConfigEngine(FailingProvider(), RecordingBackend())

        result = engine.apply(io.StringIO("interfaces:\n  - name: eth0\n"))

        assert result.success is False
        assert "state service down" in result.error

    def test_backend_error_is_a_failure(self):
        """Backend errors are reported in the result."""
        engine = ConfigEngine(StaticSnapshotProvider(CURRENT), RecordingBackend(error="boom"))

        result = engine.apply(io.StringIO("interfaces:\n  - name: eth9\n    type: dummy\n"))

        assert result.success is False
        assert result.error == "boom"
        assert result.to_dict()["success"] is False


class TestRenderApplyDocument:
    """Tests for render_apply_document."""

    def test_routes_replace_existing(self):
        """Route lists are preceded by an absent entry for the interface."""
        iface = InterfaceRecord(
            name="eth0",
            iface_type=InterfaceType.ETHERNET,
            routes=[RouteEntry(destination="0.0.0.0/0", next_hop_interface="eth0")],
        )

        document = render_apply_document([iface])

        assert document["interfaces"] == [{"name": "eth0", "type": "ethernet"}]
        assert document["routes"]["config"] == [
            {"next-hop-interface": "eth0", "state": "absent"},
            {"destination": "0.0.0.0/0", "next-hop-interface": "eth0"},
        ]

    def test_empty_route_list_clears(self):
        """An empty route list only removes."""
        iface = InterfaceRecord(name="eth0", iface_type=InterfaceType.ETHERNET, routes=[])

        document = render_apply_document([iface])

        assert document["routes"]["config"] == [
            {"next-hop-interface": "eth0", "state": "absent"},
        ]

    def test_no_routes_section_without_route_lists(self):
        """Interfaces without route lists leave routes alone."""
        iface = InterfaceRecord(name="eth0", iface_type=InterfaceType.ETHERNET)
        assert "routes" not in render_apply_document([iface])


class TestCommandBackend:
    """Tests for CommandBackend."""

    def test_pipes_document_to_command(self, tmp_path):
        """The rendered document is written to the command's stdin."""
        out = tmp_path / "applied.yml"
        backend = CommandBackend([
            sys.executable, "-c",
            f"import sys; open({str(out)!r}, 'w').write(sys.stdin.read())",
        ])

        backend.realize([InterfaceRecord(name="eth0", iface_type=InterfaceType.ETHERNET)])

        assert yaml.safe_load(out.read_text()) == {
            "interfaces": [{"name": "eth0", "type": "ethernet"}]
        }

    def test_nonzero_exit_raises(self):
        """A failing command raises ApplyError with its stderr."""
        backend = CommandBackend([
            sys.executable, "-c", "import sys; sys.stderr.write('bad state'); sys.exit(3)",
        ])

        with pytest.raises(ApplyError) as exc:
            backend.realize([])

        assert "exit code 3" in str(exc.value)
        assert "bad state" in str(exc.value)

    def test_missing_command_raises(self):
        """A missing executable raises ApplyError."""
        backend = CommandBackend(["/nonexistent/netpin-apply"])

        with pytest.raises(ApplyError):
            backend.realize([])
