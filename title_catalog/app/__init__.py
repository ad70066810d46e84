"""Application layer: async scan helpers and the catalog controller."""

from .catalog_controller import CatalogController

__all__ = ["CatalogController"]
