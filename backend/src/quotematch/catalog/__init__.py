"""Catalog access for the matching engine"""

from .repository import SqlCatalogRepository

__all__ = ["SqlCatalogRepository"]
