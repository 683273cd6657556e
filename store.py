"""
Entity store

The single owner of the storefront's in-memory collections. Every mutation
goes through ``create`` / ``update`` / ``delete`` (or one of the variant and
settings helpers), validates before touching state, replaces the affected
collection with a new list and notifies subscribers. Reads hand out copies
of the list, so callers never mutate a collection in place.
"""
import logging
import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from analytics import compute_analytics
from collaborators import always_confirm
from errors import AuthorizationError, DeleteCancelled, NotFoundError, ValidationError
from pages import project_page, project_product
from rules import matching_products
from search import filter_entities
from slugs import slugify, unique_slug
from schemas import (
    Analytics, Category, CategoryCreate, CategoryUpdate, Collection, CollectionCreate, CollectionUpdate,
    Customer, CustomerCreate, CustomerUpdate, Discount, DiscountCreate, DiscountUpdate, Order, OrderCreate,
    OrderItem, OrderUpdate, Page, PageCreate, PageUpdate, PaymentSettings, Product, ProductCreate,
    ProductUpdate, ProductVariant, StoreSettings, VariantCreate, VariantUpdate, utcnow,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityKind:
    name: str
    label: str
    model: Type[BaseModel]
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    id_prefix: str
    has_slug: bool = False


KINDS: Dict[str, EntityKind] = {
    k.name: k
    for k in (
        EntityKind("products", "product", Product, ProductCreate, ProductUpdate, "product", has_slug=True),
        EntityKind("orders", "order", Order, OrderCreate, OrderUpdate, "order"),
        EntityKind("customers", "customer", Customer, CustomerCreate, CustomerUpdate, "customer"),
        EntityKind("categories", "category", Category, CategoryCreate, CategoryUpdate, "category", has_slug=True),
        EntityKind("collections", "collection", Collection, CollectionCreate, CollectionUpdate, "collection", has_slug=True),
        EntityKind("discounts", "discount", Discount, DiscountCreate, DiscountUpdate, "discount"),
        EntityKind("pages", "page", Page, PageCreate, PageUpdate, "page", has_slug=True),
    )
}

SETTINGS = {"storeSettings": StoreSettings, "paymentSettings": PaymentSettings}

_ORDER_FORMAT = re.compile(r"^(\D*)(\d+)$")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _build(model: Type[BaseModel], data: Any):
    """Validate ``data`` into ``model``, converting pydantic errors to ValidationError."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


def _field_names(model: Type[BaseModel], data: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase aliases in a raw patch onto field names."""
    by_alias = {f.alias: name for name, f in model.model_fields.items() if f.alias}
    out = {}
    for key, value in data.items():
        name = by_alias.get(key, key)
        if name not in model.model_fields:
            raise ValidationError(f"Unknown field: {key}", [{"field": key, "error": "unknown field"}])
        out[name] = value
    return out


class EntityStore:
    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        identity=None,
        confirm: Callable[[str], bool] = always_confirm,
        media=None,
        projector=None,
    ):
        self.identity = identity
        self.confirm = confirm
        self.media = media
        self.projector = projector
        self._collections: Dict[str, List[Any]] = {name: [] for name in KINDS}
        self.store_settings = StoreSettings()
        self.payment_settings = PaymentSettings()
        self._listeners: List[Callable] = []
        self._batch_depth = 0
        self._batched: set = set()
        if data:
            self._load(data)

    @classmethod
    def from_state(cls, persisted: Optional[Dict[str, Any]], fixtures: Dict[str, Any], **collaborators) -> "EntityStore":
        """Build a store from the persisted blob, using fixtures for slices it lacks."""
        persisted = persisted or {}
        data = {}
        for key in list(KINDS) + list(SETTINGS):
            if persisted.get(key) is not None:
                data[key] = persisted[key]
            elif key in fixtures:
                data[key] = fixtures[key]
        store = cls(data, **collaborators)
        logger.info(
            "Store loaded: %s",
            ", ".join(f"{len(items)} {name}" for name, items in store._collections.items()),
        )
        return store

    def _load(self, data: Dict[str, Any]) -> None:
        for name, kind in KINDS.items():
            self._collections[name] = [_build(kind.model, raw) for raw in data.get(name) or []]
        if data.get("storeSettings") is not None:
            self.store_settings = _build(StoreSettings, data["storeSettings"])
        if data.get("paymentSettings") is not None:
            self.payment_settings = _build(PaymentSettings, data["paymentSettings"])

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable) -> None:
        self._listeners.append(listener)

    @contextmanager
    def batch(self):
        """Group mutations so subscribers get one notification for all of them."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._batched:
                changed, self._batched = frozenset(self._batched), set()
                self._notify(changed)

    def _changed(self, slice_name: str) -> None:
        if self._batch_depth:
            self._batched.add(slice_name)
        else:
            self._notify(frozenset([slice_name]))

    def _notify(self, slices) -> None:
        for listener in list(self._listeners):
            listener(slices)

    def _replace(self, name: str, items: List[Any]) -> List[Any]:
        self._collections[name] = items
        self._changed(name)
        return list(items)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _kind(self, name: str) -> EntityKind:
        try:
            return KINDS[name]
        except KeyError:
            raise ValueError(f"Unknown entity kind {name!r}")

    def collection(self, name: str) -> List[Any]:
        self._kind(name)
        return list(self._collections[name])

    @property
    def products(self) -> List[Product]:
        return self.collection("products")

    @property
    def orders(self) -> List[Order]:
        return self.collection("orders")

    @property
    def customers(self) -> List[Customer]:
        return self.collection("customers")

    @property
    def categories(self) -> List[Category]:
        return self.collection("categories")

    @property
    def collections(self) -> List[Collection]:
        return self.collection("collections")

    @property
    def discounts(self) -> List[Discount]:
        return self.collection("discounts")

    @property
    def pages(self) -> List[Page]:
        return self.collection("pages")

    def _find(self, name: str, entity_id: str) -> Tuple[int, Any]:
        kind = self._kind(name)
        for i, record in enumerate(self._collections[name]):
            if record.id == entity_id:
                return i, record
        raise NotFoundError(kind.label, entity_id)

    def get(self, name: str, entity_id: str):
        return self._find(name, entity_id)[1]

    def search(self, name: str, query: str) -> List[Any]:
        return filter_entities(name, self.collection(name), query)

    def analytics(self) -> Analytics:
        return compute_analytics(self._collections["products"], self._collections["orders"], self._collections["customers"])

    def collection_products(self, collection_id: str) -> List[Product]:
        return matching_products(self.get("collections", collection_id), self._collections["products"])

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready value of every tracked slice, keyed by slice name."""
        data = {
            name: [r.model_dump(mode="json", by_alias=True) for r in items]
            for name, items in self._collections.items()
        }
        data["storeSettings"] = self.store_settings.model_dump(mode="json", by_alias=True)
        data["paymentSettings"] = self.payment_settings.model_dump(mode="json", by_alias=True)
        return data

    # ------------------------------------------------------------------
    # Generic mutations
    # ------------------------------------------------------------------

    def create(self, name: str, data: Any) -> List[Any]:
        """Validate and append a new entity; returns the updated collection."""
        kind = self._kind(name)
        payload = _build(kind.create_model, data)
        record = getattr(self, f"_new_{kind.label}")(payload)
        self._after_create(name, record)
        logger.debug("Created %s %s", kind.label, record.id)
        return self._replace(name, self._collections[name] + [record])

    def update(self, name: str, entity_id: str, patch: Any) -> List[Any]:
        """Merge ``patch`` onto an existing entity; returns the updated collection."""
        kind = self._kind(name)
        index, current = self._find(name, entity_id)
        changes = _build(kind.update_model, patch).model_dump(exclude_unset=True)
        merged = {**current.model_dump(), **changes}
        if "updated_at" in kind.model.model_fields:
            merged["updated_at"] = utcnow()
        if kind.has_slug:
            merged["slug"] = self._slug_for_update(name, current, changes)
        if name == "products" and "sku" in changes:
            self._check_sku(changes["sku"], exclude=current.id)
        record = _build(kind.model, merged)
        items = list(self._collections[name])
        items[index] = record
        logger.debug("Updated %s %s (%s)", kind.label, entity_id, ", ".join(sorted(changes)) or "no fields")
        return self._replace(name, items)

    def delete(self, name: str, entity_id: str, confirm: Optional[Callable[[str], bool]] = None) -> List[Any]:
        """Remove one entity after confirmation. Dependents are left untouched."""
        kind = self._kind(name)
        index, _ = self._find(name, entity_id)
        confirm = confirm or self.confirm
        if not confirm(f"Are you sure you want to delete this {kind.label}?"):
            logger.warning("Delete of %s %s was not confirmed", kind.label, entity_id)
            raise DeleteCancelled(f"Delete of {kind.label} {entity_id} was not confirmed")
        items = list(self._collections[name])
        del items[index]
        logger.debug("Deleted %s %s", kind.label, entity_id)
        return self._replace(name, items)

    # ------------------------------------------------------------------
    # Slugs and uniqueness
    # ------------------------------------------------------------------

    def _taken_slugs(self, name: str, exclude: Optional[str] = None) -> set:
        return {r.slug for r in self._collections[name] if r.id != exclude}

    def _resolve_slug(self, name: str, source: str, explicit: Optional[str] = None, exclude: Optional[str] = None) -> str:
        taken = self._taken_slugs(name, exclude)
        if explicit:
            slug = slugify(explicit)
            if not slug:
                raise ValidationError(f"Slug has no letters or digits: {explicit!r}", [{"field": "slug", "error": "empty"}])
            if slug in taken:
                raise ValidationError(f"Slug already in use: {slug}", [{"field": "slug", "error": "duplicate"}])
            return slug
        # Names without ASCII letters or digits fall back to the kind label
        return unique_slug(slugify(source) or KINDS[name].label, taken)

    def _slug_for_update(self, name: str, current, changes: Dict[str, Any]) -> str:
        if changes.get("slug"):
            if slugify(changes["slug"]) == current.slug:
                return current.slug
            return self._resolve_slug(name, current.name, explicit=changes["slug"], exclude=current.id)
        if "name" in changes and changes["name"] != current.name:
            return self._resolve_slug(name, changes["name"] or "", exclude=current.id)
        return current.slug

    def _all_skus(self, exclude: Optional[str] = None) -> set:
        skus = set()
        for product in self._collections["products"]:
            if product.id != exclude:
                skus.add(product.sku)
            skus.update(v.sku for v in product.variants if v.id != exclude)
        return skus

    def _check_sku(self, sku: Optional[str], exclude: Optional[str] = None) -> None:
        if sku and sku in self._all_skus(exclude):
            raise ValidationError(f"SKU already in use: {sku}", [{"field": "sku", "error": "duplicate"}])

    # ------------------------------------------------------------------
    # Per-kind construction
    # ------------------------------------------------------------------

    def _new_product(self, payload: ProductCreate) -> Product:
        actor = self.identity.current_actor() if self.identity is not None else None
        if not actor:
            raise AuthorizationError("Creating a product requires an authenticated user")
        self._check_sku(payload.sku)
        now = utcnow()
        return _build(Product, {
            **payload.model_dump(),
            "id": new_id("product"),
            "slug": self._resolve_slug("products", payload.name),
            "created_at": now,
            "updated_at": now,
        })

    def _new_customer(self, payload: CustomerCreate) -> Customer:
        now = utcnow()
        return _build(Customer, {**payload.model_dump(), "id": new_id("customer"), "created_at": now, "updated_at": now})

    def _new_category(self, payload: CategoryCreate) -> Category:
        data = payload.model_dump()
        data["slug"] = self._resolve_slug("categories", payload.name, explicit=payload.slug)
        return _build(Category, {**data, "id": new_id("category")})

    def _new_collection(self, payload: CollectionCreate) -> Collection:
        slug = self._resolve_slug("collections", payload.name)
        return _build(Collection, {**payload.model_dump(), "id": new_id("collection"), "slug": slug})

    def _new_discount(self, payload: DiscountCreate) -> Discount:
        data = payload.model_dump()
        data["starts_at"] = payload.starts_at or utcnow()
        return _build(Discount, {**data, "id": new_id("discount")})

    def _new_page(self, payload: PageCreate) -> Page:
        now = utcnow()
        data = payload.model_dump()
        data["slug"] = self._resolve_slug("pages", payload.name, explicit=payload.slug)
        return _build(Page, {**data, "id": new_id("page"), "created_at": now, "updated_at": now})

    def _new_order(self, payload: OrderCreate) -> Order:
        if payload.customer_id is not None:
            try:
                customer = self.get("customers", payload.customer_id).model_copy(deep=True)
            except NotFoundError:
                raise ValidationError(
                    f"Unknown customer: {payload.customer_id}",
                    [{"field": "customer_id", "error": "not found"}],
                )
        else:
            customer = _build(Customer, {**payload.customer.model_dump(), "id": new_id("guest")})

        products = {p.id: p for p in self._collections["products"]}
        items = []
        for n, line in enumerate(payload.items):
            product = products.get(line.product_id)
            if product is None:
                raise ValidationError(
                    f"Unknown product: {line.product_id}",
                    [{"field": f"items.{n}.product_id", "error": "not found"}],
                )
            variant = None
            if line.variant_id is not None:
                variant = next((v for v in product.variants if v.id == line.variant_id), None)
                if variant is None:
                    raise ValidationError(
                        f"Unknown variant: {line.variant_id}",
                        [{"field": f"items.{n}.variant_id", "error": "not found"}],
                    )
            price = line.price if line.price is not None else (variant or product).price
            default_image = (variant.image if variant else None) or (product.images[0] if product.images else None)
            items.append(OrderItem(
                id=new_id("item"),
                product_id=product.id,
                variant_id=line.variant_id,
                name=line.name or (f"{product.name} - {variant.title}" if variant else product.name),
                sku=line.sku or (variant or product).sku,
                quantity=line.quantity,
                price=price,
                total=round(price * line.quantity, 2),
                image=line.image or default_image,
            ))

        settings = self.store_settings
        subtotal = round(sum(i.total for i in items), 2)
        if payload.tax is not None:
            tax = payload.tax
        elif settings.enable_taxes:
            tax = round(subtotal * settings.tax_rate / 100, 2)
        else:
            tax = 0.0
        shipping = payload.shipping
        if not settings.enable_shipping:
            shipping = 0.0
        elif settings.free_shipping_threshold is not None and subtotal >= settings.free_shipping_threshold:
            shipping = 0.0

        now = utcnow()
        data = payload.model_dump(exclude={"items", "customer_id", "customer", "tax", "shipping"})
        return _build(Order, {
            **data,
            "id": new_id("order"),
            "order_number": self._next_order_number(),
            "customer": customer,
            "items": items,
            "subtotal": subtotal,
            "tax": tax,
            "shipping": shipping,
            "total": round(subtotal + tax + shipping - payload.discount, 2),
            "created_at": now,
            "updated_at": now,
        })

    def _next_order_number(self) -> str:
        match = _ORDER_FORMAT.match(self.store_settings.order_id_format)
        prefix, highest = (match.group(1), int(match.group(2))) if match else (self.store_settings.order_id_format, 1000)
        for order in self._collections["orders"]:
            rest = order.order_number[len(prefix):]
            if order.order_number.startswith(prefix) and rest.isdigit():
                highest = max(highest, int(rest))
        return f"{prefix}{highest + 1}"

    def _after_create(self, name: str, record) -> None:
        # Collaborator side effects run before the record is appended, so a
        # failing collaborator leaves the collection untouched
        if name == "products":
            if record.images and self.media is not None:
                self.media.add_media({
                    "id": new_id("media"),
                    "title": record.name,
                    "date": utcnow().isoformat(),
                    "url": record.images[0],
                    "type": "image",
                    "alt": "Product Image",
                })
            if self.projector is not None:
                self.projector.publish(project_product(record))
        elif name == "pages" and self.projector is not None:
            self.projector.publish(project_page(record))

    # ------------------------------------------------------------------
    # Variants (owned by their product)
    # ------------------------------------------------------------------

    def _set_variants(self, product: Product, variants: List[ProductVariant]) -> List[Product]:
        index, _ = self._find("products", product.id)
        items = list(self._collections["products"])
        items[index] = product.model_copy(update={"variants": variants, "updated_at": utcnow()})
        return self._replace("products", items)

    def add_variant(self, product_id: str, data: Any) -> List[Product]:
        product = self.get("products", product_id)
        payload = _build(VariantCreate, data)
        self._check_sku(payload.sku)
        variant = _build(ProductVariant, {**payload.model_dump(), "id": new_id("variant"), "product_id": product_id})
        return self._set_variants(product, product.variants + [variant])

    def update_variant(self, product_id: str, variant_id: str, patch: Any) -> List[Product]:
        product = self.get("products", product_id)
        index = next((i for i, v in enumerate(product.variants) if v.id == variant_id), None)
        if index is None:
            raise NotFoundError("variant", variant_id)
        changes = _build(VariantUpdate, patch).model_dump(exclude_unset=True)
        if "sku" in changes:
            self._check_sku(changes["sku"], exclude=variant_id)
        current = product.variants[index]
        variants = list(product.variants)
        variants[index] = _build(ProductVariant, {**current.model_dump(), **changes, "product_id": product_id})
        return self._set_variants(product, variants)

    def delete_variant(self, product_id: str, variant_id: str, confirm: Optional[Callable[[str], bool]] = None) -> List[Product]:
        product = self.get("products", product_id)
        if not any(v.id == variant_id for v in product.variants):
            raise NotFoundError("variant", variant_id)
        confirm = confirm or self.confirm
        if not confirm("Are you sure you want to delete this variant?"):
            logger.warning("Delete of variant %s was not confirmed", variant_id)
            raise DeleteCancelled(f"Delete of variant {variant_id} was not confirmed")
        return self._set_variants(product, [v for v in product.variants if v.id != variant_id])

    # ------------------------------------------------------------------
    # Orders and settings
    # ------------------------------------------------------------------

    def update_order_status(self, order_id: str, status: str) -> List[Order]:
        return self.update("orders", order_id, {"status": status})

    def update_store_settings(self, patch: Dict[str, Any]) -> StoreSettings:
        merged = {**self.store_settings.model_dump(), **_field_names(StoreSettings, patch)}
        self.store_settings = _build(StoreSettings, merged)
        self._changed("storeSettings")
        return self.store_settings

    def update_payment_settings(self, patch: Dict[str, Any]) -> PaymentSettings:
        merged = {**self.payment_settings.model_dump(), **_field_names(PaymentSettings, patch)}
        self.payment_settings = _build(PaymentSettings, merged)
        self._changed("paymentSettings")
        return self.payment_settings

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def generate_pages(self):
        if self.projector is None:
            raise RuntimeError("No page projector configured")
        return self.projector.generate_all(self._collections["products"], self._collections["categories"])
