"""Client for the payment provider's product catalog."""

import logging
import time
from typing import Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..core.exceptions import CatalogUnavailableError
from ..core.observability import metrics_collector
from ..schemas.package import ExternalProduct

logger = logging.getLogger(__name__)

class CatalogClient(Protocol):
    """Anything that can list the external product catalog."""

    async def list_products(self) -> list[ExternalProduct]:
        ...

class ExternalCatalogClient:
    """
    HTTP client for the provider catalog.

    The catalog is not property scoped: every call returns the full product
    list and properties opt into products through override settings.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def list_products(self) -> list[ExternalProduct]:
        """
        Fetch and validate every product in the catalog.

        Returns:
            List of external products

        Raises:
            CatalogUnavailableError: If the catalog cannot be fetched or parsed
        """
        try:
            response = await self._client.get("/products")
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.warning(
                "External catalog request failed",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            raise CatalogUnavailableError(detail=f"External catalog request failed: {e}") from e
        except ValueError as e:
            raise CatalogUnavailableError(detail="External catalog returned invalid JSON") from e

        items = payload.get("products", []) if isinstance(payload, dict) else payload

        try:
            products = [ExternalProduct.model_validate(item) for item in items]
        except PydanticValidationError as e:
            logger.warning(
                "External catalog returned malformed products",
                extra={"error_count": e.error_count()}
            )
            raise CatalogUnavailableError(detail="External catalog returned malformed products") from e

        logger.debug("Fetched external catalog", extra={"product_count": len(products)})
        return products

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

class StaticCatalogClient:
    """Catalog client serving a fixed product list, used when no provider is configured."""

    def __init__(self, products: list[ExternalProduct] | None = None):
        self.products = list(products or [])

    async def list_products(self) -> list[ExternalProduct]:
        return list(self.products)

    async def aclose(self) -> None:
        return None


class CachingCatalogClient:
    """
    Wrap a catalog client and reuse its last answer for a few seconds.

    Only the external catalog is cached. Local packages and override settings
    are always read fresh, so an owner's edit is visible on the next request.
    """

    def __init__(self, inner: CatalogClient, ttl_seconds: float):
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self._products: list[ExternalProduct] | None = None
        self._fetched_at = 0.0

    async def list_products(self) -> list[ExternalProduct]:
        now = time.monotonic()
        if self._products is not None and now - self._fetched_at < self.ttl_seconds:
            metrics_collector.record_catalog_cache_hit()
            return list(self._products)

        products = await self.inner.list_products()
        if self.ttl_seconds > 0:
            self._products = list(products)
            self._fetched_at = now
        return products

    async def aclose(self) -> None:
        await self.inner.aclose()


def build_catalog_client() -> CachingCatalogClient:
    """Create the catalog client described by the settings."""
    if not settings.external_catalog_url:
        logger.info("No external catalog configured, serving local packages only")
        inner: CatalogClient = StaticCatalogClient()
    else:
        inner = ExternalCatalogClient(
            base_url=settings.external_catalog_url,
            api_key=settings.external_catalog_api_key,
            timeout=settings.external_catalog_timeout_seconds,
        )
    return CachingCatalogClient(inner, ttl_seconds=settings.catalog_cache_ttl_seconds)
