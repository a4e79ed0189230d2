# storefront/services/product_client.py
from typing import Protocol

import httpx
from pydantic import ValidationError as SchemaError

from storefront.domain.schemas import ProductInfo
from storefront.utils.errors import UpstreamError
from storefront.utils.logging import get_logger
from storefront.utils.settings import PRODUCT_SERVICE_TIMEOUT, PRODUCT_SERVICE_URL

logger = get_logger(__name__)


class ProductDirectory(Protocol):
    """Read-only view of the catalogue used by the cart and order services."""

    async def get(self, product_id: str) -> ProductInfo | None: ...

    async def exists(self, product_id: str) -> bool: ...


class ProductClient:
    """
    ProductDirectory backed by the product service over HTTP.
    Failures are reported once, there is no retry loop here.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = PRODUCT_SERVICE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._http.aclose()

    async def get(self, product_id: str) -> ProductInfo | None:
        url = f"/products/{product_id}"
        logger.info(f"ProductClient GET {self.base_url}{url}")

        try:
            resp = await self._http.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Product service unreachable: {e}")
            raise UpstreamError("Product service is unavailable") from e

        if resp.status_code == 404:
            return None
        if resp.is_error:
            logger.error(f"Product service answered {resp.status_code} for product {product_id}")
            raise UpstreamError(f"Product service error ({resp.status_code})")

        try:
            return ProductInfo.model_validate(resp.json())
        except (ValueError, SchemaError) as e:
            raise UpstreamError(f"Malformed product payload for {product_id}") from e

    async def exists(self, product_id: str) -> bool:
        return await self.get(product_id) is not None
