"""
Typed commands for store mutations.

Each user action becomes a command value; ``CommandBus.dispatch`` routes it
to the store operation that applies it. The HTTP layer only builds commands,
which keeps the store usable (and testable) without any presentation layer.
"""
from __future__ import annotations
import logging
import uuid
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Callable, Dict, Literal, Optional, Type

from schemas import OrderStatus, utcnow

logger = logging.getLogger(__name__)

Kind = Literal["products", "orders", "customers", "categories", "collections", "discounts", "pages"]


class Command(BaseModel):
    command_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    issued_at: datetime = Field(default_factory=utcnow)


class CreateEntity(Command):
    kind: Kind
    data: Dict[str, Any]


class UpdateEntity(Command):
    kind: Kind
    entity_id: str
    patch: Dict[str, Any]


class DeleteEntity(Command):
    kind: Kind
    entity_id: str
    # None defers to the store's confirmation collaborator
    confirmed: Optional[bool] = None


class AddVariant(Command):
    product_id: str
    data: Dict[str, Any]


class UpdateVariant(Command):
    product_id: str
    variant_id: str
    patch: Dict[str, Any]


class DeleteVariant(Command):
    product_id: str
    variant_id: str
    confirmed: Optional[bool] = None


class UpdateOrderStatus(Command):
    order_id: str
    status: OrderStatus


class UpdateSettings(Command):
    section: Literal["store", "payment"]
    patch: Dict[str, Any]


class GeneratePages(Command):
    pass


def _answer(confirmed: Optional[bool]):
    if confirmed is None:
        return None
    return lambda message: confirmed


class CommandBus:
    """Routes each command type to exactly one handler."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[Command], Callable[[Any], Any]] = {}

    def register_handler(self, command_type: Type[Command], handler: Callable[[Any], Any]) -> None:
        if command_type in self._handlers:
            raise ValueError(f"Handler already registered for {command_type.__name__}")
        self._handlers[command_type] = handler
        logger.debug("CommandBus: registered handler for %s", command_type.__name__)

    def dispatch(self, command: Command) -> Any:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValueError(f"No handler registered for {type(command).__name__}")
        logger.info("CommandBus: dispatching %s (id=%s)", type(command).__name__, command.command_id)
        try:
            return handler(command)
        except Exception as exc:
            logger.warning("CommandBus: %s failed: %s", type(command).__name__, exc)
            raise


def build_bus(store) -> CommandBus:
    bus = CommandBus()
    bus.register_handler(CreateEntity, lambda c: store.create(c.kind, c.data))
    bus.register_handler(UpdateEntity, lambda c: store.update(c.kind, c.entity_id, c.patch))
    bus.register_handler(DeleteEntity, lambda c: store.delete(c.kind, c.entity_id, confirm=_answer(c.confirmed)))
    bus.register_handler(AddVariant, lambda c: store.add_variant(c.product_id, c.data))
    bus.register_handler(UpdateVariant, lambda c: store.update_variant(c.product_id, c.variant_id, c.patch))
    bus.register_handler(
        DeleteVariant,
        lambda c: store.delete_variant(c.product_id, c.variant_id, confirm=_answer(c.confirmed)),
    )
    bus.register_handler(UpdateOrderStatus, lambda c: store.update_order_status(c.order_id, c.status))
    bus.register_handler(
        UpdateSettings,
        lambda c: store.update_store_settings(c.patch) if c.section == "store" else store.update_payment_settings(c.patch),
    )
    bus.register_handler(GeneratePages, lambda c: store.generate_pages())
    return bus
