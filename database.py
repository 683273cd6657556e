"""
Database access

MongoDB connection configured from DATABASE_URL / DATABASE_NAME. ``db`` is
None when the environment does not configure a database; callers fall back
to in-process collaborators in that case.
"""
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from pymongo import MongoClient

import config

_client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]

STATE_COLLECTION = "plugin_state"
PAGE_COLLECTION = "site_page"
MEDIA_COLLECTION = "media"


def get_state(namespace: str) -> Optional[Dict[str, Any]]:
    """Return the blob stored under ``namespace``, or None when nothing is stored."""
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    doc = db[STATE_COLLECTION].find_one({"_id": namespace})
    if not doc:
        return None
    return doc.get("state")


def put_state(namespace: str, state: Dict[str, Any]) -> None:
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    db[STATE_COLLECTION].replace_one(
        {"_id": namespace},
        {"_id": namespace, "state": state, "updated_at": datetime.now(timezone.utc)},
        upsert=True,
    )


def upsert_document(collection_name: str, doc_id: str, data: Dict[str, Any]) -> str:
    """Insert or overwrite the document keyed by ``doc_id``."""
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    payload = dict(data)
    payload["_id"] = doc_id
    payload["updated_at"] = datetime.now(timezone.utc)
    db[collection_name].replace_one({"_id": doc_id}, payload, upsert=True)
    return doc_id


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None):
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
