"""
Tests for RatesConnector against httpx.MockTransport
"""
import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import httpx

from storefront.connectors.rates import RatesConnector
from storefront.core.config import settings
from storefront.models.mixins import utcnow

ADDRESS = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "US"}


def connector(handler, **overrides):
    values = {
        "tax_api_url": "http://rates.test/tax",
        "tax_api_key": "tax-key",
        "shipping_api_url": "http://rates.test/shipping/",
        "shipping_api_key": "shipping-key",
        "transport": httpx.MockTransport(handler),
    }
    values.update(overrides)
    return RatesConnector(**values)


def failing(request):
    return httpx.Response(500, json={"error": "down"})


class TestTaxRate:

    def test_rate_from_api(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"rate": 0.0725})

        rate = asyncio.run(connector(handler).get_tax_rate(ADDRESS))

        assert rate == Decimal("0.0725")
        assert seen[0].headers["Authorization"] == "Bearer tax-key"
        assert seen[0].url.params["zip"] == "62701"
        assert seen[0].url.params["state"] == "IL"

    def test_default_on_error(self):
        rate = asyncio.run(connector(failing).get_tax_rate(ADDRESS))

        assert rate == settings.DEFAULT_TAX_RATE

    def test_default_when_not_configured(self):
        def handler(request):
            raise AssertionError("API must not be called")

        rate = asyncio.run(connector(handler, tax_api_url="").get_tax_rate(ADDRESS))

        assert rate == settings.DEFAULT_TAX_RATE

    def test_default_when_rate_missing(self):
        rate = asyncio.run(connector(lambda request: httpx.Response(200, json={})).get_tax_rate(ADDRESS))

        assert rate == settings.DEFAULT_TAX_RATE


class TestShippingCost:

    def test_cheapest_rate(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"rates": [{"amount": 9.99}, {"amount": 4.5}, {"amount": 7}]})

        items = [
            {"price": Decimal("10.00"), "quantity": 2, "weight": 1.5},
            {"price": Decimal("5.00"), "quantity": 1, "weight": None},
        ]
        cost = asyncio.run(connector(handler).get_shipping_cost(ADDRESS, items))

        assert cost == Decimal("4.5")
        assert seen[0].url.path == "/shipping/rates"
        assert seen[0].url.params["weight"] == "3.0"
        assert seen[0].url.params["value"] == "25.00"
        assert seen[0].url.params["to_zip"] == "62701"
        assert seen[0].headers["Authorization"] == "Bearer shipping-key"

    def test_default_on_error(self):
        cost = asyncio.run(connector(failing).get_shipping_cost(ADDRESS, []))

        assert cost == settings.DEFAULT_SHIPPING_COST

    def test_default_when_no_rates(self):
        cost = asyncio.run(connector(lambda r: httpx.Response(200, json={"rates": []})).get_shipping_cost(ADDRESS))

        assert cost == settings.DEFAULT_SHIPPING_COST

    def test_default_on_malformed_rates(self):
        cost = asyncio.run(
            connector(lambda r: httpx.Response(200, json={"rates": [{"price": 1}]})).get_shipping_cost(ADDRESS)
        )

        assert cost == settings.DEFAULT_SHIPPING_COST


class TestEstimatedDelivery:

    def test_date_from_api(self):
        def handler(request):
            assert request.url.params["method"] == "express"
            return httpx.Response(200, json={"estimated_delivery": "2030-01-10T12:00:00Z"})

        estimate = asyncio.run(connector(handler).get_estimated_delivery(ADDRESS, "express"))

        assert estimate == datetime(2030, 1, 10, 12, 0, 0)

    def test_fallback_days(self):
        estimate = asyncio.run(connector(failing).get_estimated_delivery(ADDRESS))

        expected = utcnow() + timedelta(days=settings.DEFAULT_DELIVERY_DAYS)
        assert abs(estimate - expected) < timedelta(minutes=1)
