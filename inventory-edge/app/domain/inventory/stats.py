from collections import Counter
from decimal import Decimal
from typing import Iterable, List

from app.domain.inventory.schemas import CategoryCount, InventoryStats, Product


def compute_stats(products: Iterable[Product]) -> InventoryStats:
    products = list(products)
    per_category = Counter(p.category for p in products)
    return InventoryStats(
        total_products=len(products),
        total_value=sum((p.price * p.quantity for p in products), Decimal("0")),
        low_stock_count=sum(1 for p in products if p.is_low_stock),
        categories=[CategoryCount(name=name, value=count) for name, count in per_category.items()],
    )


def low_stock_products(products: Iterable[Product]) -> List[Product]:
    return [p for p in products if p.is_low_stock]
