"""
External activity catalog
"""

from .client import ActivityCatalog, CatalogError, MySwitzerlandCatalog

__all__ = ["ActivityCatalog", "CatalogError", "MySwitzerlandCatalog"]
