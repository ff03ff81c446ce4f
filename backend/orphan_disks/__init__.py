"""Inventory and classify orphaned Azure managed disks."""

__version__ = "1.0.0"
