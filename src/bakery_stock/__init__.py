"""Bakery stock ledger: stock items, movements, brands and recipe costing."""

__version__ = "1.0.0"
