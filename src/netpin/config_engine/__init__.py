"""Config Engine - apply queued declarative network configuration.

- Queued documents are applied in path order, failures never stop the batch
- Each document is merged against the live state before it is pushed
- Route changes only touch the interfaces they target

Usage:
    from netpin.config_engine import ConfigApplyScheduler, ConfigEngine, CommandBackend

    engine = ConfigEngine(provider, CommandBackend(settings.apply_command))
    result = ConfigApplyScheduler(settings, engine, provider).run()
    print(result.summary())
"""

from .engine import ApplyEngine, ConfigEngine
from .schema import (
    QueueItemState,
    QueuedConfigFile,
    ApplyResult,
    SchedulerResult,
)
from .parser import ConfigParser
from .merge import (
    MergedInterface,
    MergedInterfaces,
    MergedRoutes,
    MergedNetworkState,
)
from .route import store_route_config
from .backend import NetworkBackend, CommandBackend, render_apply_document
from .scheduler import ConfigApplyScheduler

__all__ = [
    # Engines
    "ApplyEngine",
    "ConfigEngine",
    "ConfigApplyScheduler",
    # Schema classes
    "QueueItemState",
    "QueuedConfigFile",
    "ApplyResult",
    "SchedulerResult",
    # Parser
    "ConfigParser",
    # Merge
    "MergedInterface",
    "MergedInterfaces",
    "MergedRoutes",
    "MergedNetworkState",
    "store_route_config",
    # Backends
    "NetworkBackend",
    "CommandBackend",
    "render_apply_document",
]
