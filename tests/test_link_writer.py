"""Tests for the systemd link file writer."""
import pytest

from netpin.errors import LinkWriteError
from netpin.persist import link_file_path, list_link_files, write_link_file


class TestWriteLinkFile:
    """Tests for write_link_file."""

    def test_creates_file_and_directory(self, tmp_path):
        """First write creates etc/systemd/network and the link file."""
        assert write_link_file(tmp_path, "AA:BB:CC:DD:EE:01", "eth0") is True

        path = tmp_path / "etc" / "systemd" / "network" / "98-nmstate-eth0.link"
        assert path.exists()
        assert path.read_text() == (
            "# Generated by nmstate\n"
            "[Match]\n"
            "MACAddress=AA:BB:CC:DD:EE:01\n"
            "\n"
            "[Link]\n"
            "Name=eth0\n"
        )

    def test_never_overwrites(self, tmp_path):
        """A second write for the same name keeps the original content."""
        write_link_file(tmp_path, "AA:BB:CC:DD:EE:01", "eth0")
        path = link_file_path(tmp_path, "eth0")
        original = path.read_text()

        assert write_link_file(tmp_path, "AA:BB:CC:DD:EE:99", "eth0") is False
        assert path.read_text() == original

    def test_existing_operator_file_is_authoritative(self, tmp_path):
        """Content we did not write is not diffed or replaced."""
        path = link_file_path(tmp_path, "eth0")
        path.parent.mkdir(parents=True)
        path.write_text("[Match]\nMACAddress=11:22\n")

        assert write_link_file(tmp_path, "AA:BB", "eth0") is False
        assert path.read_text() == "[Match]\nMACAddress=11:22\n"

    def test_no_temp_files_left(self, tmp_path):
        """Only the final file remains in the directory."""
        write_link_file(tmp_path, "AA:BB", "eth0")

        names = [p.name for p in link_file_path(tmp_path, "eth0").parent.iterdir()]
        assert names == ["98-nmstate-eth0.link"]

    def test_unwritable_directory_raises_with_path(self, tmp_path):
        """Write failures carry the target path."""
        # A file where the directory should be
        (tmp_path / "etc").write_text("")

        with pytest.raises(LinkWriteError) as exc:
            write_link_file(tmp_path, "AA:BB", "eth0")

        assert exc.value.path == link_file_path(tmp_path, "eth0")
        assert "98-nmstate-eth0.link" in str(exc.value)


class TestListLinkFiles:
    """Tests for list_link_files."""

    def test_missing_directory(self, tmp_path):
        """No directory means no files."""
        assert list_link_files(tmp_path) == []

    def test_filters_by_prefix_and_extension(self, tmp_path):
        """Only 98-nmstate-*.link files are listed, sorted."""
        write_link_file(tmp_path, "AA:02", "eth1")
        write_link_file(tmp_path, "AA:01", "eth0")
        directory = link_file_path(tmp_path, "eth0").parent
        (directory / "99-default.link").write_text("")
        (directory / "98-nmstate-eth2.network").write_text("")
        (directory / ".nmstate-persist.stamp").write_text("")

        assert [p.name for p in list_link_files(tmp_path)] == [
            "98-nmstate-eth0.link",
            "98-nmstate-eth1.link",
        ]
