"""Filesystem helpers."""
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def relocate_file(file_path: Path, extension: str) -> Path:
    """Rename `file_path` by replacing its suffix with `extension`.

    `/etc/nmstate/01-eth0.yml` becomes `/etc/nmstate/01-eth0.applied`.

    Raises:
        OSError: If the rename fails
    """
    new_path = file_path.with_suffix(f".{extension}")
    os.rename(file_path, new_path)
    logger.info(f"Renamed applied config {file_path} to {new_path}")
    return new_path
