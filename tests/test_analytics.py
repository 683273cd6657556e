from datetime import datetime, timezone

import pytest

from analytics import CONVERSION_RATE, compute_analytics


def test_demo_scenario(demo_store):
    analytics = demo_store.analytics()
    assert analytics.total_revenue == 229.98
    assert analytics.average_order_value == 229.98
    assert analytics.total_orders == 1
    assert analytics.total_customers == 1
    assert analytics.total_products == 2
    assert analytics.conversion_rate == CONVERSION_RATE


def test_no_orders_means_zero_average(store, headphones):
    store.create("products", headphones)
    analytics = store.analytics()
    assert analytics.total_orders == 0
    assert analytics.total_revenue == 0
    assert analytics.average_order_value == 0
    assert analytics.recent_orders == []
    assert analytics.monthly_revenue == []


def _place(store, product_id, customer_id, quantity, when):
    order = store.create("orders", {
        "customer_id": customer_id,
        "items": [{"product_id": product_id, "quantity": quantity}],
    })[-1]
    # Backdate through the model; created_at is not patchable through the store
    backdated = order.model_copy(update={"created_at": when})
    store._collections["orders"] = [backdated if o.id == order.id else o for o in store._collections["orders"]]
    return backdated


@pytest.fixture
def busy_store(store, headphones, tshirt, jane):
    cheap = store.create("products", tshirt)[-1]
    pricey = store.create("products", headphones)[-1]
    customer = store.create("customers", jane)[-1]
    _place(store, cheap.id, customer.id, 1, datetime(2024, 1, 5, tzinfo=timezone.utc))
    _place(store, pricey.id, customer.id, 2, datetime(2024, 3, 1, tzinfo=timezone.utc))
    _place(store, cheap.id, customer.id, 4, datetime(2024, 2, 10, tzinfo=timezone.utc))
    return store


def test_average_is_revenue_over_orders(busy_store):
    analytics = busy_store.analytics()
    assert analytics.total_orders == 3
    assert analytics.average_order_value == analytics.total_revenue / analytics.total_orders
    assert analytics.total_revenue == sum(o.total for o in busy_store.orders)


def test_recent_orders_newest_first(busy_store):
    recent = busy_store.analytics().recent_orders
    assert [o.created_at.month for o in recent] == [3, 2, 1]


def test_top_products_from_order_items(busy_store):
    top = busy_store.analytics().top_products
    assert [p.name for p in top] == ["Wireless Bluetooth Headphones", "Organic Cotton T-Shirt"]
    assert top[0].revenue == round(199.99 * 2, 2)
    assert top[0].orders == 1
    assert top[1].revenue == round(29.99 + 29.99 * 4, 2)
    assert top[1].orders == 2


def test_monthly_revenue_buckets(busy_store):
    months = busy_store.analytics().monthly_revenue
    assert [m.month for m in months] == ["2024-01", "2024-02", "2024-03"]
    totals = {o.created_at.strftime("%Y-%m"): o.total for o in busy_store.orders}
    assert [m.revenue for m in months] == [round(totals[m.month], 2) for m in months]


def test_top_products_limited_to_five(store):
    for n in range(7):
        store.create("products", {"name": f"Item {n}", "price": n + 1, "sku": f"SKU-{n}"})
    top = compute_analytics(store.products, [], [])
    assert len(top.top_products) == 5
    assert [p.name for p in top.top_products] == [f"Item {n}" for n in range(5)]
    assert all(p.revenue == 0 and p.orders == 0 for p in top.top_products)


def test_analytics_reflects_latest_state(demo_store):
    assert demo_store.analytics().total_orders == 1
    demo_store.delete("orders", "1")
    assert demo_store.analytics().total_orders == 0
    assert demo_store.analytics().average_order_value == 0
