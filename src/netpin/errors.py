"""Exception hierarchy shared by the persistence and apply paths."""
from pathlib import Path
from typing import Optional, Union


class NetpinError(Exception):
    """Base error for netpin."""
    pass


class SnapshotError(NetpinError):
    """The state snapshot provider could not produce a snapshot."""
    pass


class PinStateError(NetpinError):
    """A persisted pin snapshot could not be read or deserialized."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class LinkWriteError(NetpinError):
    """Writing a link binding file failed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"Failed to store link file {self.path}: {reason}"
        )


class ParseError(NetpinError):
    """Error parsing a declarative configuration document."""
    pass


class ApplyError(NetpinError):
    """The network backend failed to realize a configuration."""
    pass
