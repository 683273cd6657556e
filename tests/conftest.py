import pytest

from collaborators import MemoryMediaLibrary, MemoryPageRegistry, MemoryStorage, StaticIdentity
from pages import PageProjector
from seed import load_fixtures
from store import EntityStore
from sync import PersistenceSync

NAMESPACE = "E-commerce"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def registry():
    return MemoryPageRegistry()


@pytest.fixture
def media():
    return MemoryMediaLibrary()


def _store(env, registry, media, **kwargs):
    options = {"identity": StaticIdentity("admin"), "media": media, "projector": PageProjector(registry)}
    options.update(kwargs)
    return EntityStore.from_state(None, load_fixtures(env), **options)


@pytest.fixture
def store(registry, media):
    return _store("empty", registry, media)


@pytest.fixture
def demo_store(registry, media):
    return _store("demo", registry, media)


@pytest.fixture
def synced(store, storage):
    return PersistenceSync(store, storage, NAMESPACE)


@pytest.fixture
def headphones():
    return {
        "name": "Wireless Bluetooth Headphones",
        "price": 199.99,
        "sku": "WBH-001",
        "short_description": "Premium wireless headphones.",
        "category": "Electronics",
        "tags": "headphones, wireless, audio",
        "images": ["https://images.example.com/headphones.jpg"],
    }


@pytest.fixture
def tshirt():
    return {"name": "Organic Cotton T-Shirt", "price": 29.99, "sku": "OCT-001", "category": "Clothing"}


@pytest.fixture
def jane():
    return {"first_name": "Jane", "last_name": "Smith", "email": "jane.smith@example.com"}
