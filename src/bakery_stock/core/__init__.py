"""Core domain layer - entities, interfaces, services and exceptions."""

from bakery_stock.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
