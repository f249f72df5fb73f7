"""NIC name persistence via systemd .link files.

Usage:
    from netpin.persist import run_persist, PersistMode

    report = run_persist("/", provider, PersistMode.DRY_RUN)
    print(report.to_text())
"""
from .resolver import RebindingInstruction, resolve_rebindings
from .link_writer import (
    write_link_file,
    link_file_path,
    list_link_files,
    PIN_FILE_PREFIX,
    PERSIST_GENERATED_BY,
)
from .pin_store import (
    IdentityPinStore,
    ProcessedStamp,
    PIN_IFACE_NAME_FOLDER,
    PIN_STATE_FILENAME,
    NMSTATE_PERSIST_STAMP,
)
from .runner import (
    PersistMode,
    PersistReport,
    pin_candidates,
    run_persist,
    run_persist_from_prior_state,
    clean_up,
)

__all__ = [
    "RebindingInstruction",
    "resolve_rebindings",
    "write_link_file",
    "link_file_path",
    "list_link_files",
    "PIN_FILE_PREFIX",
    "PERSIST_GENERATED_BY",
    "IdentityPinStore",
    "ProcessedStamp",
    "PIN_IFACE_NAME_FOLDER",
    "PIN_STATE_FILENAME",
    "NMSTATE_PERSIST_STAMP",
    "PersistMode",
    "PersistReport",
    "pin_candidates",
    "run_persist",
    "run_persist_from_prior_state",
    "clean_up",
]
