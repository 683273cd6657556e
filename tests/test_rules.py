import pytest

from rules import condition_holds, matching_products
from schemas import CollectionCondition


@pytest.fixture
def catalog(demo_store):
    demo_store.create("products", {
        "name": "Bamboo Socks", "price": 9.5, "sku": "BS-1", "vendor": "EcoWear",
        "product_type": "Socks", "tags": "organic, bamboo",
    })
    return demo_store


def _collection(store, conditions, sort_order="manual"):
    return store.create("collections", {"name": "Test", "conditions": conditions, "sort_order": sort_order})[-1]


def test_vendor_and_price_rules(catalog):
    collection = _collection(catalog, [
        {"field": "vendor", "relation": "equals", "value": "ecowear"},
        {"field": "price", "relation": "less_than", "value": "20"},
    ])
    assert [p.name for p in catalog.collection_products(collection.id)] == ["Bamboo Socks"]


def test_tag_rule_and_sort(catalog):
    collection = _collection(catalog, [{"field": "tag", "relation": "equals", "value": "organic"}], "price-desc")
    assert [p.name for p in catalog.collection_products(collection.id)] == ["Organic Cotton T-Shirt", "Bamboo Socks"]


def test_no_conditions_matches_all_in_catalog_order(catalog):
    collection = _collection(catalog, [])
    assert len(catalog.collection_products(collection.id)) == 3


@pytest.mark.parametrize("relation,value,expected", [
    ("starts_with", "wire", True),
    ("ends_with", "PHONES", True),
    ("contains", "tooth", True),
    ("not_contains", "tooth", False),
    ("not_equals", "Headphones", True),
    ("greater_than", "a", False),
])
def test_title_relations(demo_store, relation, value, expected):
    product = demo_store.get("products", "1")
    assert condition_holds(product, CollectionCondition(field="title", relation=relation, value=value)) is expected


def test_numeric_relations(demo_store):
    product = demo_store.get("products", "1")
    assert condition_holds(product, CollectionCondition(field="weight", relation="greater_than", value="0.2"))
    assert condition_holds(product, CollectionCondition(field="price", relation="equals", value="199.99"))
    assert not condition_holds(product, CollectionCondition(field="price", relation="less_than", value="oops"))


def test_collection_slug_and_matching_helper(catalog):
    collection = _collection(catalog, [{"field": "type", "relation": "equals", "value": "socks"}])
    assert collection.slug == "test"
    assert [p.sku for p in matching_products(collection, catalog.products)] == ["BS-1"]
