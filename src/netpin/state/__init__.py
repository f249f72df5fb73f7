"""Interface state model and snapshot providers."""
from .schema import (
    InterfaceType,
    IpConfig,
    RouteEntry,
    InterfaceRecord,
    InterfaceSnapshot,
)
from .provider import (
    SnapshotProvider,
    StaticSnapshotProvider,
    YamlFileSnapshotProvider,
    CommandSnapshotProvider,
)

__all__ = [
    "InterfaceType",
    "IpConfig",
    "RouteEntry",
    "InterfaceRecord",
    "InterfaceSnapshot",
    "SnapshotProvider",
    "StaticSnapshotProvider",
    "YamlFileSnapshotProvider",
    "CommandSnapshotProvider",
]
