"""Service settings."""
from .settings import (
    ServiceSettings,
    CONFIG_FILE_EXTENSION,
    RELOCATE_FILE_EXTENSION,
    DEFAULT_CONFIG_FOLDER,
)

__all__ = [
    "ServiceSettings",
    "CONFIG_FILE_EXTENSION",
    "RELOCATE_FILE_EXTENSION",
    "DEFAULT_CONFIG_FOLDER",
]
