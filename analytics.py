"""
Analytics derived from the current store contents.

Nothing here is cached: ``compute_analytics`` is a pure function and the
store calls it on every read.
"""
from typing import Dict, List, Sequence

from schemas import Analytics, MonthlyRevenue, Order, Product, Customer, TopProduct

TOP_PRODUCTS = 5
RECENT_ORDERS = 5
# No storefront visit data is tracked, so conversion is reported as a fixed figure
CONVERSION_RATE = 2.5


def top_products(products: Sequence[Product], orders: Sequence[Order], limit: int = TOP_PRODUCTS) -> List[TopProduct]:
    """Rank catalog products by revenue from order line items.

    ``orders`` counts distinct orders containing the product. Ties keep
    catalog order; products with no sales rank after those with sales.
    """
    revenue: Dict[str, float] = {p.id: 0.0 for p in products}
    order_ids: Dict[str, set] = {p.id: set() for p in products}
    for order in orders:
        for item in order.items:
            if item.product_id in revenue:
                revenue[item.product_id] += item.total
                order_ids[item.product_id].add(order.id)
    position = {p.id: i for i, p in enumerate(products)}
    ranked = sorted(products, key=lambda p: (-revenue[p.id], position[p.id]))
    return [
        TopProduct(id=p.id, name=p.name, revenue=round(revenue[p.id], 2), orders=len(order_ids[p.id]))
        for p in ranked[:limit]
    ]


def recent_orders(orders: Sequence[Order], limit: int = RECENT_ORDERS) -> List[Order]:
    # sorted() is stable, so orders with equal timestamps keep insertion order
    return sorted(orders, key=lambda o: o.created_at, reverse=True)[:limit]


def monthly_revenue(orders: Sequence[Order]) -> List[MonthlyRevenue]:
    buckets: Dict[str, float] = {}
    for order in orders:
        month = order.created_at.strftime("%Y-%m")
        buckets[month] = buckets.get(month, 0.0) + order.total
    return [MonthlyRevenue(month=m, revenue=round(r, 2)) for m, r in sorted(buckets.items())]


def compute_analytics(products: Sequence[Product], orders: Sequence[Order], customers: Sequence[Customer]) -> Analytics:
    total_revenue = sum(o.total for o in orders)
    total_orders = len(orders)
    return Analytics(
        total_revenue=total_revenue,
        total_orders=total_orders,
        total_customers=len(customers),
        total_products=len(products),
        average_order_value=total_revenue / total_orders if total_orders else 0,
        conversion_rate=CONVERSION_RATE,
        top_products=top_products(products, orders),
        recent_orders=recent_orders(orders),
        monthly_revenue=monthly_revenue(orders),
    )
