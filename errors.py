"""
Store error taxonomy

Every failed store operation raises one of these before any state change.
"""
from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """Base class for errors raised by the entity store."""


class ValidationError(StoreError):
    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        errors = [
            {"field": ".".join(str(p) for p in e.get("loc", ())), "error": e.get("msg", "")}
            for e in exc.errors()
        ]
        fields = ", ".join(e["field"] for e in errors) or "input"
        return cls(f"Invalid or missing fields: {fields}", errors)


class NotFoundError(StoreError):
    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class AuthorizationError(StoreError):
    """Raised when an actor-gated mutation runs without an authenticated actor."""


class DeleteCancelled(StoreError):
    """Raised when the confirmation collaborator declines a delete."""


class PersistenceError(StoreError):
    """Raised when the storage collaborator fails to read or write the namespace blob."""
