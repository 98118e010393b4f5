"""Slotbook: provider availability, slot search and appointment booking."""

__version__ = "0.1.0"
