"""
Case-insensitive substring search over store collections.

Each entity kind is matched against a fixed set of string fields. Results
keep the collection's order and are always a subsequence of it.
"""
from typing import Callable, Dict, Iterable, List, Sequence, TypeVar

T = TypeVar("T")

SEARCH_FIELDS: Dict[str, Callable[[object], Iterable[str]]] = {
    "products": lambda p: (p.name, p.sku, p.category),
    "orders": lambda o: (o.order_number, o.customer.email, o.status),
    "customers": lambda c: (c.first_name, c.last_name, c.email),
    "pages": lambda p: (p.name, p.slug, p.template),
    "categories": lambda c: (c.name, c.slug),
    "collections": lambda c: (c.name, c.slug),
    "discounts": lambda d: (d.code, d.type),
}


def filter_entities(kind: str, collection: Sequence[T], query: str) -> List[T]:
    if not query or not query.strip():
        return list(collection)
    try:
        fields = SEARCH_FIELDS[kind]
    except KeyError:
        raise ValueError(f"No search fields defined for {kind!r}")
    q = query.lower()
    return [item for item in collection if any(q in (value or "").lower() for value in fields(item))]
