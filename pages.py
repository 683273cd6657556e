"""
Projection of store entities into published site pages.

Publishing hands a descriptor to the page registry, which upserts by id, so
republishing the same entity overwrites its page.
"""
from __future__ import annotations
import logging
from pydantic import BaseModel, Field
from typing import Any, List, Sequence

from schemas import Category, Page, Product

logger = logging.getLogger(__name__)


class WidgetSetting(BaseModel):
    name: str
    value: Any
    description: str
    type: str


class WidgetRef(BaseModel):
    id: str
    type: str = "plugin"
    plugin_name: str = Field("E-commerce", serialization_alias="pluginName")
    content: str
    plugin: str
    plugin_settings: List[WidgetSetting] = Field(default_factory=list, serialization_alias="pluginSettings")


class PageDescriptor(BaseModel):
    id: str
    name: str
    description: str = ""
    url: str
    components: List[WidgetRef] = Field(default_factory=list)


PRODUCT_LIST = WidgetRef(
    id="wx-product-list",
    content="Product List",
    plugin="product-grid",
    plugin_settings=[
        WidgetSetting(name="Category", value="", description="Filter by category", type="string"),
        WidgetSetting(name="ProductsPerPage", value="12", description="Number of products to show", type="number"),
        WidgetSetting(name="ShowPrice", value=True, description="Show product price", type="boolean"),
        WidgetSetting(name="ShowAddToCart", value=True, description="Show add to cart button", type="boolean"),
    ],
)

PRODUCT_DETAIL = WidgetRef(
    id="wx-product-detail",
    content="Product Detail",
    plugin="product-detail",
    plugin_settings=[
        WidgetSetting(name="ShowRelatedProducts", value=True, description="Show related products", type="boolean"),
        WidgetSetting(name="ShowReviews", value=True, description="Show product reviews", type="boolean"),
        WidgetSetting(name="EnableZoom", value=True, description="Enable image zoom", type="boolean"),
    ],
)

SHOPPING_CART = WidgetRef(
    id="wx-shopping-cart",
    content="Shopping Cart",
    plugin="shopping-cart",
    plugin_settings=[
        WidgetSetting(name="EnableCoupons", value=True, description="Enable coupon codes", type="boolean"),
        WidgetSetting(name="ShowShipping", value=True, description="Show shipping calculator", type="boolean"),
    ],
)

CHECKOUT = WidgetRef(
    id="wx-checkout",
    content="Checkout",
    plugin="checkout",
    plugin_settings=[
        WidgetSetting(name="EnableGuestCheckout", value=True, description="Allow guest checkout", type="boolean"),
        WidgetSetting(name="RequirePhone", value=False, description="Require phone number", type="boolean"),
    ],
)


def project_product(product: Product) -> PageDescriptor:
    return PageDescriptor(
        id=product.id,
        name=product.name,
        description=product.short_description,
        url=f"products/{product.slug}",
        components=[PRODUCT_DETAIL],
    )


def project_category(category: Category) -> PageDescriptor:
    return PageDescriptor(
        id=category.id,
        name=category.name,
        description=category.description,
        url=f"categories/{category.slug}",
        components=[PRODUCT_LIST],
    )


def project_page(page: Page) -> PageDescriptor:
    return PageDescriptor(id=page.id, name=page.name, description=page.meta_description or "", url=page.slug)


def fixed_routes() -> List[PageDescriptor]:
    return [
        PageDescriptor(id="shop", name="Shop", description="Browse all products", url="shop", components=[PRODUCT_LIST]),
        PageDescriptor(id="cart", name="Shopping Cart", description="Your shopping cart", url="cart", components=[SHOPPING_CART]),
        PageDescriptor(id="checkout", name="Checkout", description="Complete your purchase", url="checkout", components=[CHECKOUT]),
    ]


class PageProjector:
    def __init__(self, registry):
        self.registry = registry

    def publish(self, descriptor: PageDescriptor) -> PageDescriptor:
        self.registry.add_page(descriptor.model_dump(by_alias=True))
        logger.debug("Published page %s -> /%s", descriptor.id, descriptor.url)
        return descriptor

    def generate_all(self, products: Sequence[Product], categories: Sequence[Category]) -> List[PageDescriptor]:
        descriptors = [project_product(p) for p in products]
        descriptors += [project_category(c) for c in categories]
        descriptors += fixed_routes()
        for descriptor in descriptors:
            self.publish(descriptor)
        logger.info(
            "Generated %d pages (%d products, %d categories)",
            len(descriptors), len(products), len(categories),
        )
        return descriptors
