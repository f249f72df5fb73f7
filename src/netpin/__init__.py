"""netpin - queued network config service and NIC name persistence."""

__version__ = "0.1.0"
