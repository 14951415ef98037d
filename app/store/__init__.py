"""Persistence adapters for intake documents and attachment blobs."""

from app.store.memory_store import InMemoryDocumentStore
from app.store.object_store import InMemoryObjectStore, ObjectStore, SupabaseObjectStore
from app.store.ports import DocumentStore
from app.store.sql_store import SqlDocumentStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "ObjectStore",
    "InMemoryObjectStore",
    "SupabaseObjectStore",
]
