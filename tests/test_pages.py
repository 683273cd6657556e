from pages import CHECKOUT, PRODUCT_DETAIL, PRODUCT_LIST, PageProjector, fixed_routes, project_category, project_product


def test_project_product(demo_store):
    descriptor = project_product(demo_store.get("products", "1"))
    assert descriptor.id == "1"
    assert descriptor.url == "products/wireless-bluetooth-headphones"
    assert descriptor.description == "Premium wireless headphones with noise cancellation."
    assert descriptor.components == [PRODUCT_DETAIL]


def test_project_category(demo_store):
    descriptor = project_category(demo_store.get("categories", "2"))
    assert descriptor.url == "categories/clothing"
    assert descriptor.components == [PRODUCT_LIST]


def test_fixed_routes():
    routes = {d.id: d for d in fixed_routes()}
    assert [routes[k].url for k in ("shop", "cart", "checkout")] == ["shop", "cart", "checkout"]
    assert routes["checkout"].components == [CHECKOUT]


def test_generate_all_publishes_everything(store, registry, headphones, tshirt):
    store.create("products", headphones)
    store.create("products", tshirt)
    store.create("categories", {"name": "Electronics"})
    registry.pages.clear()

    descriptors = store.generate_pages()
    assert len(descriptors) == 2 + 1 + 3
    assert set(registry.pages) == {d.id for d in descriptors}
    urls = sorted(p["url"] for p in registry.pages.values())
    assert urls == sorted([
        "products/wireless-bluetooth-headphones",
        "products/organic-cotton-t-shirt",
        "categories/electronics",
        "shop", "cart", "checkout",
    ])
    widget = registry.pages["shop"]["components"][0]
    assert widget["pluginName"] == "E-commerce"
    assert widget["pluginSettings"][0]["name"] == "Category"


def test_publishing_is_upsert_by_id(store, registry, headphones):
    product = store.create("products", headphones)[-1]
    store.update("products", product.id, {"name": "Studio Headphones"})
    store.generate_pages()
    store.generate_pages()
    assert registry.pages[product.id]["url"] == "products/studio-headphones"
    assert len(registry.pages) == 1 + 3


def test_projector_does_not_mutate_store(demo_store, registry):
    before = demo_store.snapshot()
    PageProjector(registry).generate_all(demo_store.products, demo_store.categories)
    assert demo_store.snapshot() == before
