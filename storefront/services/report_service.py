"""
Report Service
Admin dashboard figures and the monthly sales report
"""
from collections import OrderedDict
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.domain.catalog import ProductResponse
from storefront.domain.order import OrderResponse
from storefront.repositories import OrderRepository, ProductRepository, UserRepository
from storefront.services.pricing import ZERO, money, to_decimal


class ReportService:

    def __init__(self, db: Session):
        self.db = db
        self.orders = OrderRepository(db)
        self.products = ProductRepository(db)
        self.users = UserRepository(db)

    def dashboard(self) -> dict:
        """
        Store totals, 5 most recent orders, 5 top-rated products
        and products at or below the low-stock threshold
        """
        return {
            "total_users": self.users.count(),
            "total_products": self.products.count(),
            "total_orders": self.orders.count(),
            "total_revenue": float(money(self.orders.delivered_revenue())),
            "recent_orders": [OrderResponse.model_validate(o).to_dict() for o in self.orders.recent(5)],
            "top_products": [ProductResponse.model_validate(p).to_dict() for p in self.products.top_rated(5)],
            "low_stock_products": [
                {"id": p.id, "name": p.name, "sku": p.sku, "stock": p.stock}
                for p in self.products.low_stock(settings.LOW_STOCK_THRESHOLD)
            ],
        }

    def sales_report(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> List[dict]:
        """
        Delivered orders grouped by year-month

        Returns:
            [{"period": "2025-01", "orders": 3, "revenue": 120.5, "average_order_value": 40.17}]
        """
        buckets = OrderedDict()
        for order in self.orders.delivered_between(start_date, end_date):
            period = order.created_at.strftime("%Y-%m")
            bucket = buckets.setdefault(period, {"orders": 0, "revenue": ZERO})
            bucket["orders"] += 1
            bucket["revenue"] += to_decimal(order.total)

        return [
            {
                "period": period,
                "orders": bucket["orders"],
                "revenue": float(money(bucket["revenue"])),
                "average_order_value": float(money(bucket["revenue"] / bucket["orders"])),
            }
            for period, bucket in buckets.items()
        ]
