"""
Fixture sets loaded into a fresh store.

``load_fixtures(env)`` returns slice name -> raw records. The store uses a
fixture slice only when the persisted namespace blob has no value for it.
"""
import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

_JOHN_ADDRESS = {
    "id": "1",
    "first_name": "John",
    "last_name": "Doe",
    "address1": "123 Main St",
    "city": "New York",
    "province": "NY",
    "country": "United States",
    "zip": "10001",
    "phone": "+1234567890",
    "is_default": True,
}

_JOHN = {
    "id": "1",
    "first_name": "John",
    "last_name": "Doe",
    "email": "john.doe@example.com",
    "phone": "+1234567890",
    "accepts_marketing": True,
    "total_spent": 459.98,
    "orders_count": 3,
    "status": "active",
    "addresses": [_JOHN_ADDRESS],
    "tags": ["vip", "repeat-customer"],
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-20T10:00:00Z",
}

DEMO = {
    "products": [
        {
            "id": "1",
            "name": "Wireless Bluetooth Headphones",
            "slug": "wireless-bluetooth-headphones",
            "description": "Premium quality wireless headphones with noise cancellation and 30-hour battery life.",
            "short_description": "Premium wireless headphones with noise cancellation.",
            "price": 199.99,
            "compare_at_price": 249.99,
            "cost": 120.0,
            "sku": "WBH-001",
            "barcode": "123456789012",
            "quantity": 45,
            "weight": 0.3,
            "category": "Electronics",
            "tags": ["headphones", "wireless", "bluetooth", "audio"],
            "vendor": "AudioTech",
            "product_type": "Headphones",
            "images": ["https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=500"],
            "seo_title": "Best Wireless Bluetooth Headphones - AudioTech",
            "seo_description": "Shop premium wireless headphones with superior sound quality and long battery life.",
            "created_at": "2024-01-15T10:00:00Z",
            "updated_at": "2024-01-20T15:30:00Z",
        },
        {
            "id": "2",
            "name": "Organic Cotton T-Shirt",
            "slug": "organic-cotton-t-shirt",
            "description": "Comfortable organic cotton t-shirt made from sustainably sourced materials.",
            "short_description": "Comfortable organic cotton t-shirt.",
            "price": 29.99,
            "compare_at_price": 39.99,
            "cost": 15.0,
            "sku": "OCT-001",
            "barcode": "123456789013",
            "quantity": 120,
            "weight": 0.15,
            "category": "Clothing",
            "tags": ["t-shirt", "organic", "cotton", "sustainable"],
            "vendor": "EcoWear",
            "product_type": "T-Shirt",
            "images": ["https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?w=500"],
            "variants": [
                {
                    "id": "2-1",
                    "product_id": "2",
                    "title": "Small / Black",
                    "price": 29.99,
                    "cost": 15.0,
                    "sku": "OCT-001-S-BLK",
                    "quantity": 30,
                    "weight": 0.15,
                    "options": {"size": "Small", "color": "Black"},
                },
                {
                    "id": "2-2",
                    "product_id": "2",
                    "title": "Medium / White",
                    "price": 29.99,
                    "cost": 15.0,
                    "sku": "OCT-001-M-WHT",
                    "quantity": 40,
                    "weight": 0.15,
                    "options": {"size": "Medium", "color": "White"},
                },
            ],
            "created_at": "2024-01-10T08:00:00Z",
            "updated_at": "2024-01-18T12:00:00Z",
        },
    ],
    "customers": [_JOHN],
    "orders": [
        {
            "id": "1",
            "order_number": "#1001",
            "customer": _JOHN,
            "items": [
                {
                    "id": "1",
                    "product_id": "1",
                    "name": "Wireless Bluetooth Headphones",
                    "sku": "WBH-001",
                    "quantity": 1,
                    "price": 199.99,
                    "total": 199.99,
                    "image": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=500",
                }
            ],
            "subtotal": 199.99,
            "tax": 20.0,
            "shipping": 9.99,
            "discount": 0,
            "total": 229.98,
            "status": "confirmed",
            "payment_status": "paid",
            "fulfillment_status": "unfulfilled",
            "shipping_address": _JOHN_ADDRESS,
            "billing_address": _JOHN_ADDRESS,
            "payment_method": "Credit Card",
            "created_at": "2024-01-15T14:30:00Z",
            "updated_at": "2024-01-15T14:30:00Z",
        }
    ],
    "categories": [
        {"id": "1", "name": "Electronics", "slug": "electronics", "description": "Electronic devices and accessories"},
        {"id": "2", "name": "Clothing", "slug": "clothing", "description": "Fashion and apparel"},
    ],
    "collections": [],
    "discounts": [],
    "pages": [
        {
            "id": "1",
            "name": "About Us",
            "slug": "about-us",
            "content": "<h1>About Our Store</h1><p>We are a leading e-commerce store...</p>",
            "meta_title": "About Us - Learn More About Our Story",
            "meta_description": "Discover our story, mission, and values.",
            "template": "about",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-01T00:00:00Z",
        },
        {
            "id": "2",
            "name": "Contact Us",
            "slug": "contact",
            "content": "<h1>Contact Us</h1><p>Get in touch with our team...</p>",
            "meta_title": "Contact Us - Get in Touch",
            "meta_description": "Contact our customer service team for any questions.",
            "template": "contact",
            "created_at": "2024-01-02T00:00:00Z",
            "updated_at": "2024-01-02T00:00:00Z",
        },
    ],
    "storeSettings": {},
    "paymentSettings": {},
}

EMPTY = {
    "products": [],
    "customers": [],
    "orders": [],
    "categories": [],
    "collections": [],
    "discounts": [],
    "pages": [],
    "storeSettings": {},
    "paymentSettings": {},
}

FIXTURES = {"demo": DEMO, "empty": EMPTY}


def load_fixtures(env: str = "demo") -> Dict[str, Any]:
    try:
        fixtures = FIXTURES[env]
    except KeyError:
        raise ValueError(f"Unknown seed {env!r}; expected one of {sorted(FIXTURES)}")
    logger.debug("Loading %s fixtures", env)
    return copy.deepcopy(fixtures)
