"""
Rule-based collection membership.

A product belongs to a collection when every condition holds. Text
relations compare case-insensitively; ``greater_than`` / ``less_than`` only
apply to the numeric fields (price, weight).
"""
from typing import List, Sequence

from schemas import Collection, CollectionCondition, Product

NUMERIC_FIELDS = {"price", "weight"}


def _field_values(product: Product, field: str) -> List[str]:
    if field == "title":
        return [product.name]
    if field == "type":
        return [product.product_type]
    if field == "vendor":
        return [product.vendor]
    if field == "tag":
        return list(product.tags)
    return [str(getattr(product, field))]


def _compare_numeric(product: Product, cond: CollectionCondition) -> bool:
    try:
        target = float(cond.value)
    except ValueError:
        return False
    actual = float(getattr(product, cond.field))
    return {
        "equals": actual == target,
        "not_equals": actual != target,
        "greater_than": actual > target,
        "less_than": actual < target,
    }.get(cond.relation, False)


def condition_holds(product: Product, cond: CollectionCondition) -> bool:
    if cond.field in NUMERIC_FIELDS and cond.relation in ("equals", "not_equals", "greater_than", "less_than"):
        return _compare_numeric(product, cond)
    if cond.relation in ("greater_than", "less_than"):
        return False

    needle = cond.value.lower()
    values = [v.lower() for v in _field_values(product, cond.field)]
    if cond.relation == "equals":
        return needle in values
    if cond.relation == "not_equals":
        return needle not in values
    if cond.relation == "starts_with":
        return any(v.startswith(needle) for v in values)
    if cond.relation == "ends_with":
        return any(v.endswith(needle) for v in values)
    if cond.relation == "contains":
        return any(needle in v for v in values)
    # not_contains
    return not any(needle in v for v in values)


def _sort(products: List[Product], sort_order: str) -> List[Product]:
    if sort_order == "alpha-asc":
        return sorted(products, key=lambda p: p.name.lower())
    if sort_order == "alpha-desc":
        return sorted(products, key=lambda p: p.name.lower(), reverse=True)
    if sort_order == "price-asc":
        return sorted(products, key=lambda p: p.price)
    if sort_order == "price-desc":
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort_order == "created-asc":
        return sorted(products, key=lambda p: p.created_at)
    if sort_order == "created-desc":
        return sorted(products, key=lambda p: p.created_at, reverse=True)
    # manual and best-selling keep catalog order
    return products


def matching_products(collection: Collection, products: Sequence[Product]) -> List[Product]:
    matched = [p for p in products if all(condition_holds(p, c) for c in collection.conditions)]
    return _sort(matched, collection.sort_order)
