"""
Storefront Schemas

Each entity is a pydantic model holding value data only. The store keeps one
list per entity kind (products, orders, customers, ...) plus two singleton
settings records. Field names are snake_case in Python and camelCase when
dumped with ``by_alias=True`` (the shape persisted under the store namespace).

The *Create / *Update models are the inputs accepted by the store: Create
models declare the required fields, Update models are all-optional patches.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Literal
from datetime import datetime, timezone


WeightUnit = Literal["kg", "lb", "oz", "g"]
ProductStatus = Literal["active", "draft", "archived"]
OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled", "refunded"]
PaymentStatus = Literal["pending", "paid", "partially_paid", "refunded", "voided"]
FulfillmentStatus = Literal["unfulfilled", "partial", "fulfilled"]
CustomerStatus = Literal["active", "disabled"]
DiscountType = Literal["percentage", "fixed_amount", "free_shipping"]
Eligibility = Literal["all", "specific", "group"]
PageTemplate = Literal["default", "landing", "about", "contact", "custom"]
ConditionField = Literal["title", "type", "vendor", "price", "tag", "weight"]
ConditionRelation = Literal[
    "equals", "not_equals", "starts_with", "ends_with",
    "contains", "not_contains", "greater_than", "less_than",
]
SortOrder = Literal[
    "manual", "best-selling", "alpha-asc", "alpha-desc",
    "price-asc", "price-desc", "created-asc", "created-desc",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _split_tags(value):
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    return value


class StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InputModel(StoreModel):
    # Unknown fields in create/patch payloads are errors, not silently dropped
    model_config = ConfigDict(extra="forbid")


# ----- Entities -----

class Address(StoreModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    company: Optional[str] = None
    address1: str
    address2: Optional[str] = None
    city: str
    province: str = ""
    country: str = "United States"
    zip: str = ""
    phone: Optional[str] = None
    is_default: bool = False


class ProductVariant(StoreModel):
    id: str
    product_id: str = Field(..., description="Owning product id (back-reference)")
    title: str
    price: float = Field(..., ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    cost: float = Field(0, ge=0)
    sku: str
    barcode: Optional[str] = None
    quantity: int = Field(0, ge=0)
    weight: float = Field(0, ge=0)
    options: Dict[str, str] = Field(default_factory=dict, description="Option name -> value, e.g. size -> Small")
    image: Optional[str] = None


class Product(StoreModel):
    id: str
    name: str = Field(..., min_length=1)
    slug: str = Field(..., description="URL-friendly unique slug derived from name")
    description: str = ""
    short_description: str = ""
    price: float = Field(..., ge=0, description="Price in store currency")
    compare_at_price: Optional[float] = Field(None, ge=0, description="Original price for discounts")
    cost: float = Field(0, ge=0)
    sku: str = Field(..., min_length=1, description="Unique stock-keeping unit")
    barcode: Optional[str] = None
    track_quantity: bool = True
    quantity: int = Field(0, ge=0, description="Units in stock")
    weight: float = Field(0, ge=0)
    weight_unit: WeightUnit = "kg"
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    status: ProductStatus = "active"
    vendor: str = "Default Vendor"
    product_type: str = "General"
    images: List[str] = Field(default_factory=list, description="Image URLs, first is the primary image")
    variants: List[ProductVariant] = Field(default_factory=list)
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class Customer(StoreModel):
    id: str
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    accepts_marketing: bool = False
    total_spent: float = Field(0, ge=0)
    orders_count: int = Field(0, ge=0)
    status: CustomerStatus = "active"
    addresses: List[Address] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class OrderItem(StoreModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    name: str = Field(..., description="Snapshot of product name at purchase time")
    sku: str = ""
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price at purchase time")
    total: float = Field(..., ge=0)
    image: Optional[str] = None


class Order(StoreModel):
    id: str
    order_number: str
    customer: Customer = Field(..., description="Customer snapshot taken when the order was placed")
    items: List[OrderItem]
    subtotal: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    shipping: float = Field(0, ge=0)
    discount: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    fulfillment_status: FulfillmentStatus = "unfulfilled"
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    payment_method: str = ""
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _total_matches_parts(self):
        expected = self.subtotal + self.tax + self.shipping - self.discount
        if abs(self.total - expected) > 0.005:
            raise ValueError(f"total {self.total} != subtotal + tax + shipping - discount ({expected:.2f})")
        return self


class Category(StoreModel):
    id: str
    name: str = Field(..., min_length=1, description="Category display name")
    slug: str = Field(..., description="URL-friendly unique slug")
    description: str = ""
    image: Optional[str] = None
    parent_id: Optional[str] = Field(None, description="Optional parent category id")
    is_visible: bool = True


class CollectionCondition(StoreModel):
    field: ConditionField
    relation: ConditionRelation
    value: str


class Collection(StoreModel):
    id: str
    name: str = Field(..., min_length=1)
    slug: str
    description: str = ""
    image: Optional[str] = None
    conditions: List[CollectionCondition] = Field(default_factory=list)
    is_visible: bool = True
    sort_order: SortOrder = "manual"


class Discount(StoreModel):
    id: str
    code: str = Field(..., min_length=1)
    type: DiscountType = "percentage"
    value: float = Field(..., ge=0)
    minimum_amount: Optional[float] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=0)
    usage_count: int = Field(0, ge=0)
    starts_at: datetime = Field(default_factory=utcnow)
    ends_at: Optional[datetime] = None
    is_active: bool = True
    applies_to_products: List[str] = Field(default_factory=list)
    applies_to_collections: List[str] = Field(default_factory=list)
    customer_eligibility: Eligibility = "all"
    eligible_customers: List[str] = Field(default_factory=list)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _assume_utc(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def _check_limits(self):
        if self.usage_limit is not None and self.usage_count > self.usage_limit:
            raise ValueError(f"usage_count {self.usage_count} exceeds usage_limit {self.usage_limit}")
        if self.type == "percentage" and self.value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("ends_at is before starts_at")
        return self

    def is_redeemable(self, at: Optional[datetime] = None) -> bool:
        at = at or utcnow()
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        if not self.is_active or at < self.starts_at:
            return False
        if self.ends_at is not None and at > self.ends_at:
            return False
        return self.usage_limit is None or self.usage_count < self.usage_limit


class Page(StoreModel):
    id: str
    name: str = Field(..., min_length=1)
    slug: str
    content: str = ""
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_published: bool = True
    template: PageTemplate = "default"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class StoreSettings(StoreModel):
    store_name: str = "My Store"
    store_description: str = "Your online store description"
    store_email: str = "store@example.com"
    store_phone: str = "+1234567890"
    currency: str = "USD"
    weight_unit: WeightUnit = "kg"
    timezone: str = "UTC"
    order_id_format: str = "#1000"
    enable_inventory_tracking: bool = True
    enable_taxes: bool = True
    tax_rate: float = Field(10, ge=0, le=100, description="Tax rate in percent")
    enable_shipping: bool = True
    free_shipping_threshold: Optional[float] = Field(100, ge=0)
    enable_reviews: bool = True
    enable_wishlist: bool = True
    enable_compare_products: bool = True
    enable_guest_checkout: bool = True
    require_phone_number: bool = False


class PaymentSettings(StoreModel):
    enable_stripe: bool = False
    stripe_publishable_key: str = ""
    stripe_secret_key: str = ""
    enable_pay_pal: bool = False
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    enable_cod: bool = Field(True, alias="enableCOD")
    enable_bank_transfer: bool = True
    bank_details: str = ""


# ----- Derived analytics (never stored) -----

class TopProduct(StoreModel):
    id: str
    name: str
    revenue: float
    orders: int


class MonthlyRevenue(StoreModel):
    month: str = Field(..., description="YYYY-MM bucket of order.created_at")
    revenue: float


class Analytics(StoreModel):
    total_revenue: float
    total_orders: int
    total_customers: int
    total_products: int
    average_order_value: float
    conversion_rate: float
    top_products: List[TopProduct]
    recent_orders: List[Order]
    monthly_revenue: List[MonthlyRevenue]


# ----- Inputs -----

class ProductCreate(InputModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    sku: str = Field(..., min_length=1)
    description: str = ""
    short_description: str = ""
    compare_at_price: Optional[float] = Field(None, ge=0)
    cost: float = Field(0, ge=0)
    barcode: Optional[str] = None
    track_quantity: bool = True
    quantity: int = Field(0, ge=0)
    weight: float = Field(0, ge=0)
    weight_unit: WeightUnit = "kg"
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    status: ProductStatus = "active"
    vendor: str = "Default Vendor"
    product_type: str = "General"
    images: List[str] = Field(default_factory=list)
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class ProductUpdate(InputModel):
    name: Optional[str] = None
    price: Optional[float] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    compare_at_price: Optional[float] = None
    cost: Optional[float] = None
    barcode: Optional[str] = None
    track_quantity: Optional[bool] = None
    quantity: Optional[int] = None
    weight: Optional[float] = None
    weight_unit: Optional[WeightUnit] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    images: Optional[List[str]] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class VariantCreate(InputModel):
    title: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    sku: str = Field(..., min_length=1)
    compare_at_price: Optional[float] = Field(None, ge=0)
    cost: float = Field(0, ge=0)
    barcode: Optional[str] = None
    quantity: int = Field(0, ge=0)
    weight: float = Field(0, ge=0)
    options: Dict[str, str] = Field(default_factory=dict)
    image: Optional[str] = None


class VariantUpdate(InputModel):
    title: Optional[str] = None
    price: Optional[float] = None
    sku: Optional[str] = None
    compare_at_price: Optional[float] = None
    cost: Optional[float] = None
    barcode: Optional[str] = None
    quantity: Optional[int] = None
    weight: Optional[float] = None
    options: Optional[Dict[str, str]] = None
    image: Optional[str] = None


class CustomerCreate(InputModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    accepts_marketing: bool = False
    status: CustomerStatus = "active"
    addresses: List[Address] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class CustomerUpdate(InputModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    accepts_marketing: Optional[bool] = None
    total_spent: Optional[float] = None
    orders_count: Optional[int] = None
    status: Optional[CustomerStatus] = None
    addresses: Optional[List[Address]] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class OrderItemIn(InputModel):
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(1, ge=1)
    # Snapshot fields default to the catalog values when omitted
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None


class OrderCreate(InputModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    customer_id: Optional[str] = None
    customer: Optional[CustomerCreate] = Field(None, description="Inline snapshot for guest checkout")
    tax: Optional[float] = Field(None, ge=0, description="Explicit tax; computed from settings when omitted")
    shipping: float = Field(0, ge=0)
    discount: float = Field(0, ge=0)
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    fulfillment_status: FulfillmentStatus = "unfulfilled"
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    payment_method: str = ""
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _needs_customer(self):
        if self.customer_id is None and self.customer is None:
            raise ValueError("either customer_id or customer is required")
        if self.customer_id is not None and self.customer is not None:
            raise ValueError("customer_id and customer are mutually exclusive")
        return self


class OrderUpdate(InputModel):
    # Money fields are fixed at creation time and cannot be patched
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    fulfillment_status: Optional[FulfillmentStatus] = None
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class CategoryCreate(InputModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: str = ""
    image: Optional[str] = None
    parent_id: Optional[str] = None
    is_visible: bool = True


class CategoryUpdate(InputModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    parent_id: Optional[str] = None
    is_visible: Optional[bool] = None


class CollectionCreate(InputModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    image: Optional[str] = None
    conditions: List[CollectionCondition] = Field(default_factory=list)
    is_visible: bool = True
    sort_order: SortOrder = "manual"


class CollectionUpdate(InputModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    conditions: Optional[List[CollectionCondition]] = None
    is_visible: Optional[bool] = None
    sort_order: Optional[SortOrder] = None


class DiscountCreate(InputModel):
    code: str = Field(..., min_length=1)
    value: float = Field(..., ge=0)
    type: DiscountType = "percentage"
    minimum_amount: Optional[float] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=0)
    usage_count: int = Field(0, ge=0)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: bool = True
    applies_to_products: List[str] = Field(default_factory=list)
    applies_to_collections: List[str] = Field(default_factory=list)
    customer_eligibility: Eligibility = "all"
    eligible_customers: List[str] = Field(default_factory=list)


class DiscountUpdate(InputModel):
    code: Optional[str] = None
    value: Optional[float] = None
    type: Optional[DiscountType] = None
    minimum_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    usage_count: Optional[int] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: Optional[bool] = None
    applies_to_products: Optional[List[str]] = None
    applies_to_collections: Optional[List[str]] = None
    customer_eligibility: Optional[Eligibility] = None
    eligible_customers: Optional[List[str]] = None


class PageCreate(InputModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, description="Auto-generated from name when omitted")
    content: str = ""
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_published: bool = True
    template: PageTemplate = "default"


class PageUpdate(InputModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    content: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_published: Optional[bool] = None
    template: Optional[PageTemplate] = None
