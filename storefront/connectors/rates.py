"""
Tax and Shipping Rates Connector
Handles lookups against the external tax and shipping rate APIs

Every lookup falls back to a configured default when the API is not
configured or the request fails.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

import httpx

from storefront.core.config import settings
from storefront.models.mixins import as_utc_naive, utcnow

logger = logging.getLogger(__name__)


class RatesConnector:
    """
    Connector for the tax and shipping rate APIs

    Handles:
    - Tax rate for a destination address
    - Cheapest shipping quote for a parcel
    - Estimated delivery date
    """

    def __init__(
        self,
        tax_api_url: str = None,
        tax_api_key: str = None,
        shipping_api_url: str = None,
        shipping_api_key: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize rates connector

        Args:
            tax_api_url/tax_api_key: Tax rate API (TAX_API_URL / TAX_API_KEY)
            shipping_api_url/shipping_api_key: Shipping API (SHIPPING_API_URL / SHIPPING_API_KEY)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.tax_api_url = (tax_api_url if tax_api_url is not None else settings.TAX_API_URL).rstrip("/")
        self.tax_api_key = tax_api_key if tax_api_key is not None else settings.TAX_API_KEY
        self.shipping_api_url = (
            shipping_api_url if shipping_api_url is not None else settings.SHIPPING_API_URL
        ).rstrip("/")
        self.shipping_api_key = shipping_api_key if shipping_api_key is not None else settings.SHIPPING_API_KEY
        self.timeout = timeout or settings.RATES_TIMEOUT_SECONDS
        self.transport = transport

    async def _get(self, url: str, api_key: str, params: Dict[str, Any]) -> Dict:
        """GET a rates endpoint and return the JSON body"""
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {api_key}"},
            )
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _origin() -> Dict[str, str]:
        return {
            "from_country": settings.SHIPPING_FROM_COUNTRY,
            "from_state": settings.SHIPPING_FROM_STATE,
            "from_city": settings.SHIPPING_FROM_CITY,
            "from_zip": settings.SHIPPING_FROM_ZIP,
        }

    @staticmethod
    def _destination(address: Dict[str, Any]) -> Dict[str, str]:
        return {
            "to_country": address.get("country"),
            "to_state": address.get("state"),
            "to_city": address.get("city"),
            "to_zip": address.get("zip_code"),
        }

    async def get_tax_rate(self, address: Dict[str, Any]) -> Decimal:
        """
        Tax rate (fraction) for the destination address

        Returns:
            Rate from the API, or DEFAULT_TAX_RATE when unavailable
        """
        if not self.tax_api_url:
            return settings.DEFAULT_TAX_RATE

        try:
            data = await self._get(
                f"{self.tax_api_url}/rates",
                self.tax_api_key,
                {
                    "country": address.get("country"),
                    "state": address.get("state"),
                    "city": address.get("city"),
                    "zip": address.get("zip_code"),
                },
            )
            rate = data.get("rate")
            if rate is None:
                return settings.DEFAULT_TAX_RATE
            return Decimal(str(rate))

        except (httpx.HTTPError, ValueError, AttributeError, InvalidOperation) as e:
            logger.warning(f"Tax rate lookup failed, using default {settings.DEFAULT_TAX_RATE}: {e}")
            return settings.DEFAULT_TAX_RATE

    async def get_shipping_cost(self, address: Dict[str, Any], items: Iterable[Dict[str, Any]] = ()) -> Decimal:
        """
        Cheapest shipping quote for the parcel

        Args:
            address: Destination address
            items: [{"price", "quantity", "weight"}]

        Returns:
            Cheapest rate amount, or DEFAULT_SHIPPING_COST when unavailable
        """
        if not self.shipping_api_url:
            return settings.DEFAULT_SHIPPING_COST

        items = list(items)
        weight = sum((item.get("weight") or 0) * item["quantity"] for item in items)
        value = sum(Decimal(str(item["price"])) * item["quantity"] for item in items)

        try:
            data = await self._get(
                f"{self.shipping_api_url}/rates",
                self.shipping_api_key,
                {
                    **self._origin(),
                    **self._destination(address),
                    "weight": weight,
                    "value": str(value),
                },
            )
            rates = data.get("rates") or []
            if not rates:
                return settings.DEFAULT_SHIPPING_COST

            cheapest = min(rates, key=lambda rate: Decimal(str(rate["amount"])))
            return Decimal(str(cheapest["amount"]))

        except (httpx.HTTPError, ValueError, AttributeError, KeyError, TypeError, InvalidOperation) as e:
            logger.warning(f"Shipping rate lookup failed, using default {settings.DEFAULT_SHIPPING_COST}: {e}")
            return settings.DEFAULT_SHIPPING_COST

    async def get_estimated_delivery(self, address: Dict[str, Any], method: str = "standard") -> datetime:
        """
        Estimated delivery date

        Returns:
            Date from the API, or today + DEFAULT_DELIVERY_DAYS when unavailable
        """
        fallback = utcnow() + timedelta(days=settings.DEFAULT_DELIVERY_DAYS)
        if not self.shipping_api_url:
            return fallback

        try:
            data = await self._get(
                f"{self.shipping_api_url}/delivery-estimate",
                self.shipping_api_key,
                {**self._origin(), **self._destination(address), "method": method},
            )
            estimate = datetime.fromisoformat(str(data["estimated_delivery"]).replace("Z", "+00:00"))
            return as_utc_naive(estimate)

        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Delivery estimate failed, using +{settings.DEFAULT_DELIVERY_DAYS} days: {e}")
            return fallback


def get_rates_connector() -> RatesConnector:
    """FastAPI dependency; overridden in tests"""
    return RatesConnector()
