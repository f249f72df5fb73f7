#!/usr/bin/env python3
"""netpin command line.

Usage:
    netpin service [--config-folder DIR]
    netpin persist-nic-names [--root DIR] [--dry-run | --inspect]
    netpin clean-up-nic-names [--root DIR] [--dry-run]

Environment variables:
    NETPIN_SETTINGS     Settings file (default: /etc/netpin/netpin.yaml)
    NETPIN_*            See netpin.config.settings
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import ServiceSettings
from .config_engine import CommandBackend, ConfigApplyScheduler, ConfigEngine
from .errors import NetpinError
from .persist import PersistMode, clean_up, run_persist
from .state import CommandSnapshotProvider, SnapshotProvider, YamlFileSnapshotProvider
from .utils.audit_log import setup_audit_logging
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netpin",
        description="Apply queued network configs and persist NIC names",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Apply every /etc/nmstate/*.yml at boot
    netpin service

    # Show what NIC name pinning would do
    netpin persist-nic-names --dry-run

    # Report stamp, existing pins and candidates
    netpin persist-nic-names --inspect
""",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="Settings file (default: $NETPIN_SETTINGS or /etc/netpin/netpin.yaml)",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        help="Read the current state from this YAML file instead of the show command",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    service = sub.add_parser("service", help="Apply queued config files")
    service.add_argument("--config-folder", help="Folder holding queued *.yml files")
    service.add_argument("--settle-delay", type=float, help="Seconds to wait before applying")

    persist = sub.add_parser("persist-nic-names", help="Pin NIC names with .link files")
    persist.add_argument("--root", help="Filesystem root (default: /)")
    mode = persist.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Only log what would be pinned")
    mode.add_argument("--inspect", action="store_true", help="Report without writing")

    cleanup = sub.add_parser("clean-up-nic-names", help="Remove generated .link files")
    cleanup.add_argument("--root", help="Filesystem root (default: /)")
    cleanup.add_argument("--dry-run", action="store_true", help="Only log what would be removed")

    return parser


def _provider(args: argparse.Namespace, settings: ServiceSettings) -> SnapshotProvider:
    if args.state_file:
        return YamlFileSnapshotProvider(args.state_file)
    return CommandSnapshotProvider(settings.show_command, timeout=settings.command_timeout)


def _run(args: argparse.Namespace, settings: ServiceSettings) -> int:
    if args.command == "service":
        if args.config_folder:
            settings.config_folder = args.config_folder
        if args.settle_delay is not None:
            settings.settle_delay = args.settle_delay
        provider = _provider(args, settings)
        engine = ConfigEngine(
            provider,
            CommandBackend(settings.apply_command, timeout=settings.command_timeout),
        )
        result = ConfigApplyScheduler(settings, engine, provider).run()
        print(result.summary())
        return 0

    if getattr(args, "root", None):
        settings.root = args.root

    if args.command == "persist-nic-names":
        if args.inspect:
            mode = PersistMode.INSPECT
        elif args.dry_run:
            mode = PersistMode.DRY_RUN
        else:
            mode = PersistMode.SAVE
        report = run_persist(settings.root, _provider(args, settings), mode)
        print(report.to_text())
        return 0

    if args.command == "clean-up-nic-names":
        removed = clean_up(settings.root, dry_run=args.dry_run)
        verb = "Would remove" if args.dry_run else "Removed"
        for path in removed:
            print(f"{verb} {path}")
        if not removed:
            print("Nothing to clean up")
        return 0

    return 2


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging()
    if args.verbose:
        for handler in logging.getLogger("netpin").handlers:
            handler.setLevel(logging.DEBUG)
    try:
        setup_audit_logging()
    except OSError as e:
        logger.warning(f"Audit logging disabled: {e}")

    try:
        settings = ServiceSettings.load(args.settings)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid settings: {e}")
        return 1

    try:
        return _run(args, settings)
    except NetpinError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
