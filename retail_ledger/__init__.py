"""Unified financial ledger and reconciliation engine for a small retail business."""

__version__ = "1.0.0"
