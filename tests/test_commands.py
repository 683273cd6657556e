import pytest

from commands import (
    CommandBus, CreateEntity, DeleteEntity, GeneratePages, UpdateEntity, UpdateOrderStatus, UpdateSettings,
    build_bus,
)
from errors import DeleteCancelled, NotFoundError


@pytest.fixture
def bus(demo_store):
    return build_bus(demo_store)


def test_create_and_update_through_bus(bus, demo_store, jane):
    customers = bus.dispatch(CreateEntity(kind="customers", data=jane))
    customer_id = customers[-1].id
    bus.dispatch(UpdateEntity(kind="customers", entity_id=customer_id, patch={"tags": "wholesale, vip"}))
    assert demo_store.get("customers", customer_id).tags == ["wholesale", "vip"]


def test_delete_confirmation_from_command(bus, demo_store):
    with pytest.raises(DeleteCancelled):
        bus.dispatch(DeleteEntity(kind="pages", entity_id="1", confirmed=False))
    assert len(demo_store.pages) == 2
    bus.dispatch(DeleteEntity(kind="pages", entity_id="1", confirmed=True))
    assert [p.id for p in demo_store.pages] == ["2"]
    with pytest.raises(NotFoundError):
        bus.dispatch(DeleteEntity(kind="pages", entity_id="1", confirmed=True))


def test_order_status_and_settings(bus, demo_store):
    bus.dispatch(UpdateOrderStatus(order_id="1", status="delivered"))
    assert demo_store.get("orders", "1").status == "delivered"
    settings = bus.dispatch(UpdateSettings(section="payment", patch={"enableStripe": True}))
    assert settings.enable_stripe is True


def test_generate_pages_command(bus):
    descriptors = bus.dispatch(GeneratePages())
    assert {"shop", "cart", "checkout"} <= {d.id for d in descriptors}


def test_bus_rejects_unregistered_and_duplicate_handlers():
    bus = CommandBus()
    with pytest.raises(ValueError):
        bus.dispatch(GeneratePages())
    bus.register_handler(GeneratePages, lambda c: [])
    with pytest.raises(ValueError):
        bus.register_handler(GeneratePages, lambda c: [])
