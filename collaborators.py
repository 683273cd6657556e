"""
External collaborators used by the store.

Each collaborator has a database-backed implementation used when MongoDB is
configured and an in-process one used otherwise (and in tests).
"""
import copy
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Dict, List, Optional, Protocol

import database

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class StateStorage(Protocol):
    def get(self, namespace: str) -> Optional[Dict[str, Any]]: ...

    def put(self, namespace: str, blob: Dict[str, Any]) -> None: ...


class PageRegistry(Protocol):
    def add_page(self, page: Dict[str, Any]) -> None: ...


class MediaLibrary(Protocol):
    def add_media(self, media: Dict[str, Any]) -> None: ...


class Identity(Protocol):
    def current_actor(self) -> Optional[str]: ...


# ----- Storage -----

class DatabaseStorage:
    def get(self, namespace):
        return database.get_state(namespace)

    def put(self, namespace, blob):
        database.put_state(namespace, blob)


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._blobs = copy.deepcopy(initial) if initial else {}
        self.writes = 0

    def get(self, namespace):
        blob = self._blobs.get(namespace)
        return copy.deepcopy(blob) if blob is not None else None

    def put(self, namespace, blob):
        self._blobs[namespace] = copy.deepcopy(blob)
        self.writes += 1


# ----- Page registry -----

class DatabasePageRegistry:
    def add_page(self, page):
        database.upsert_document(database.PAGE_COLLECTION, page["id"], page)


class MemoryPageRegistry:
    def __init__(self):
        self.pages: Dict[str, Dict[str, Any]] = {}

    def add_page(self, page):
        self.pages[page["id"]] = copy.deepcopy(page)


# ----- Media -----

class DatabaseMediaLibrary:
    def add_media(self, media):
        database.upsert_document(database.MEDIA_COLLECTION, media["id"], media)


class MemoryMediaLibrary:
    def __init__(self):
        self.items: List[Dict[str, Any]] = []

    def add_media(self, media):
        self.items.append(dict(media))


# ----- Identity -----

class StaticIdentity:
    def __init__(self, actor: Optional[str] = None):
        self.actor = actor

    def current_actor(self):
        return self.actor


_request_actor: ContextVar[Optional[str]] = ContextVar("request_actor", default=None)


class RequestIdentity:
    """Actor bound to the current request context (set from the X-User header)."""

    def current_actor(self):
        return _request_actor.get()

    @contextmanager
    def use(self, actor: Optional[str]):
        token = _request_actor.set(actor)
        try:
            yield
        finally:
            _request_actor.reset(token)


# ----- Confirmation -----

def always_confirm(message: str) -> bool:
    return True


def never_confirm(message: str) -> bool:
    logger.debug("Declining: %s", message)
    return False


def default_collaborators() -> Dict[str, Any]:
    """Collaborators for the running app: MongoDB-backed when configured."""
    if database.db is not None:
        return {
            "storage": DatabaseStorage(),
            "pages": DatabasePageRegistry(),
            "media": DatabaseMediaLibrary(),
        }
    logger.warning("DATABASE_URL/DATABASE_NAME not set; store state lives in process memory only")
    return {
        "storage": MemoryStorage(),
        "pages": MemoryPageRegistry(),
        "media": MemoryMediaLibrary(),
    }
