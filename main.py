import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Header, Query, Body
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Any, Dict, Optional

import config
import database
from collaborators import RequestIdentity, default_collaborators
from commands import (
    AddVariant, CreateEntity, DeleteEntity, DeleteVariant, GeneratePages, UpdateEntity,
    UpdateOrderStatus, UpdateSettings, UpdateVariant, build_bus,
)
from errors import (
    AuthorizationError, DeleteCancelled, NotFoundError, PersistenceError, StoreError, ValidationError,
)
from pages import PageProjector
from schemas import OrderStatus
from seed import load_fixtures
from store import KINDS, EntityStore
from sync import PersistenceSync

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    sync = app.state.sync
    try:
        await sync.drain()
    except PersistenceError:
        logger.exception("Final flush of namespace %s failed", sync.namespace)


app = FastAPI(title="Storefront Management API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def init_app(storage=None, page_registry=None, media=None, namespace: Optional[str] = None, seed: Optional[str] = None) -> FastAPI:
    """Load the store and attach it, with its persistence and command bus, to ``app.state``."""
    defaults = default_collaborators() if storage is None or page_registry is None or media is None else {}
    storage = storage or defaults["storage"]
    page_registry = page_registry or defaults["pages"]
    media = media or defaults["media"]
    namespace = namespace or config.STORE_NAMESPACE

    identity = RequestIdentity()
    try:
        persisted = storage.get(namespace)
    except Exception as exc:
        raise PersistenceError(f"Could not read namespace {namespace!r}: {exc}") from exc
    store = EntityStore.from_state(
        persisted,
        load_fixtures(seed or config.STORE_SEED),
        identity=identity,
        media=media,
        projector=PageProjector(page_registry),
    )
    app.state.storage = storage
    app.state.identity = identity
    app.state.store = store
    app.state.sync = PersistenceSync(store, storage, namespace)
    app.state.bus = build_bus(store)
    return app


def http_error(exc: StoreError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail={"message": exc.message, "errors": exc.errors})
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, DeleteCancelled):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def dump(record) -> Dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


def check_kind(kind: str) -> str:
    if kind not in KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {kind}")
    return kind


def run(command):
    try:
        return app.state.bus.dispatch(command)
    except StoreError as e:
        raise http_error(e)


class StatusPayload(BaseModel):
    status: OrderStatus


@app.get("/")
async def read_root():
    return {"message": "Storefront API is running"}


@app.get("/test")
def test_database():
    # Plain def: the database ping runs in the threadpool, off the event loop
    sync = app.state.sync
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "storage": type(app.state.storage).__name__,
        "namespace": sync.namespace,
        "pending_write": sync.pending,
        "writes": sync.writes,
    }
    try:
        if database.db is not None:
            response["database_name"] = getattr(database.db, "name", None) or "unknown"
            database.db.list_collection_names()
            response["database"] = "✅ Connected & Working"
        else:
            response["database"] = "⚠️  Not configured, using in-process storage"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


# Analytics and page generation
@app.get("/api/analytics")
async def get_analytics():
    return dump(app.state.store.analytics())


@app.post("/api/pages/generate")
async def generate_pages():
    descriptors = run(GeneratePages())
    return {"status": "ok", "pages": [d.model_dump(by_alias=True) for d in descriptors]}


# Settings
@app.get("/api/settings/{section}")
async def get_settings(section: str):
    if section == "store":
        return dump(app.state.store.store_settings)
    if section == "payment":
        return dump(app.state.store.payment_settings)
    raise HTTPException(status_code=404, detail=f"Unknown settings section: {section}")


@app.patch("/api/settings/{section}")
async def update_settings(section: str, patch: Dict[str, Any] = Body(...)):
    if section not in ("store", "payment"):
        raise HTTPException(status_code=404, detail=f"Unknown settings section: {section}")
    return dump(run(UpdateSettings(section=section, patch=patch)))


# Orders, collections, variants
@app.patch("/api/orders/{order_id}/status")
async def update_order_status(order_id: str, payload: StatusPayload):
    run(UpdateOrderStatus(order_id=order_id, status=payload.status))
    return dump(app.state.store.get("orders", order_id))


@app.get("/api/collections/{collection_id}/products")
async def list_collection_products(collection_id: str):
    try:
        return [dump(p) for p in app.state.store.collection_products(collection_id)]
    except StoreError as e:
        raise http_error(e)


@app.post("/api/products/{product_id}/variants")
async def add_variant(product_id: str, data: Dict[str, Any] = Body(...)):
    run(AddVariant(product_id=product_id, data=data))
    return dump(app.state.store.get("products", product_id))


@app.patch("/api/products/{product_id}/variants/{variant_id}")
async def update_variant(product_id: str, variant_id: str, patch: Dict[str, Any] = Body(...)):
    run(UpdateVariant(product_id=product_id, variant_id=variant_id, patch=patch))
    return dump(app.state.store.get("products", product_id))


@app.delete("/api/products/{product_id}/variants/{variant_id}")
async def delete_variant(product_id: str, variant_id: str, confirm: bool = Query(False)):
    run(DeleteVariant(product_id=product_id, variant_id=variant_id, confirmed=confirm))
    return {"deleted": True}


# Generic collections
@app.get("/api/{kind}")
async def list_entities(kind: str, q: Optional[str] = Query(None, description="search query")):
    check_kind(kind)
    return [dump(r) for r in app.state.store.search(kind, q or "")]


@app.post("/api/{kind}")
async def create_entity(kind: str, data: Dict[str, Any] = Body(...), x_user: Optional[str] = Header(None)):
    check_kind(kind)
    with app.state.identity.use(x_user):
        items = run(CreateEntity(kind=kind, data=data))
    return dump(items[-1])


@app.get("/api/{kind}/{entity_id}")
async def get_entity(kind: str, entity_id: str):
    check_kind(kind)
    try:
        return dump(app.state.store.get(kind, entity_id))
    except StoreError as e:
        raise http_error(e)


@app.patch("/api/{kind}/{entity_id}")
async def update_entity(kind: str, entity_id: str, patch: Dict[str, Any] = Body(...)):
    check_kind(kind)
    run(UpdateEntity(kind=kind, entity_id=entity_id, patch=patch))
    return dump(app.state.store.get(kind, entity_id))


@app.delete("/api/{kind}/{entity_id}")
async def delete_entity(kind: str, entity_id: str, confirm: bool = Query(False)):
    check_kind(kind)
    run(DeleteEntity(kind=kind, entity_id=entity_id, confirmed=confirm))
    return {"deleted": True}


init_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
