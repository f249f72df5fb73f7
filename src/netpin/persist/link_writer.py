"""Write systemd .link files pinning a MAC address to an interface name.

See https://www.freedesktop.org/software/systemd/man/systemd.link.html
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from ..errors import LinkWriteError
from ..utils.audit_log import log_change

logger = logging.getLogger(__name__)

# Comment added into our generated link files
PERSIST_GENERATED_BY = "# Generated by nmstate"
# 98 sorts after vendor/OS rules but before 99-default.link
PIN_FILE_PREFIX = "98-nmstate"
LINK_FILE_EXTENSION = "link"
SYSTEMD_NETWORK_LINK_FOLDER = Path("etc/systemd/network")


def link_dir(root: Union[str, Path]) -> Path:
    """Directory holding .link files below `root`."""
    return Path(root) / SYSTEMD_NETWORK_LINK_FOLDER


def link_file_path(root: Union[str, Path], iface_name: str) -> Path:
    """Path of the generated link file pinning `iface_name`."""
    return link_dir(root) / f"{PIN_FILE_PREFIX}-{iface_name}.{LINK_FILE_EXTENSION}"


def render_link_file(mac: str, iface_name: str) -> str:
    """Content of a link file binding `mac` to `iface_name`."""
    return (
        f"{PERSIST_GENERATED_BY}\n"
        f"[Match]\n"
        f"MACAddress={mac}\n"
        f"\n"
        f"[Link]\n"
        f"Name={iface_name}\n"
    )


def is_generated_link_file(path: Path) -> bool:
    """True for file names we generate (`98-nmstate-*.link`)."""
    return (
        path.name.startswith(f"{PIN_FILE_PREFIX}-")
        and path.suffix == f".{LINK_FILE_EXTENSION}"
    )


def write_link_file(root: Union[str, Path], mac: str, iface_name: str) -> bool:
    """Ensure a link file pinning `mac` to `iface_name` exists.

    An existing file is authoritative and is never rewritten, even when it
    names another MAC; removing a stale pin is left to the operator.

    Args:
        root: Filesystem root (normally "/")
        mac: MAC address to match
        iface_name: Name to assign

    Returns:
        True if a file was written, False if it already existed

    Raises:
        LinkWriteError: If the directory or file could not be written
    """
    file_path = link_file_path(root, iface_name)
    if file_path.exists():
        logger.info(f"Network link file {file_path} already exists")
        return False

    directory = file_path.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LinkWriteError(file_path, f"cannot create {directory}: {e}")

    content = render_link_file(mac, iface_name)

    # Write to a temp file and link it into place so a crash never
    # leaves a half-written rule for udev to pick up.
    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{file_path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise LinkWriteError(file_path, str(e))
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, 0o644)
        # link() fails if the target appeared meanwhile: no overwrite
        os.link(tmp_name, file_path)
    except FileExistsError:
        logger.info(f"Network link file {file_path} already exists")
        return False
    except OSError as e:
        raise LinkWriteError(file_path, str(e))
    finally:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass

    logger.info(f"Systemd network link file created at {file_path}")
    log_change(
        "link_created",
        str(file_path),
        success=True,
        details={"mac_address": mac, "name": iface_name},
    )
    return True


def list_link_files(root: Union[str, Path]) -> list[Path]:
    """Generated link files currently present, sorted by path."""
    directory = link_dir(root)
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and is_generated_link_file(p)
    )
