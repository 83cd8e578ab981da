"""Clients for external collaborators."""

from .catalog_client import (
    CachingCatalogClient,
    CatalogClient,
    ExternalCatalogClient,
    StaticCatalogClient,
    build_catalog_client,
)

__all__ = [
    "CatalogClient",
    "ExternalCatalogClient",
    "StaticCatalogClient",
    "CachingCatalogClient",
    "build_catalog_client",
]
