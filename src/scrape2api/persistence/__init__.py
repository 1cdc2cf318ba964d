# ABOUTME: Slug store and its durable backends
# ABOUTME: Pipeline Stage 3: extracted record → cached, TTL-bounded entry

"""
Persistence Layer: Cache generated endpoints' data

This layer handles:
- The slug-addressed Store with lazy TTL expiry and a background sweep
- Write-through persistence to a JSON file or a SQLModel database
- Slug generation

Data Flow: core/ pipeline → Store.set → backend; server/ → Store.get
"""

from .backends import DatabaseBackend, JsonFileBackend, MemoryBackend, PersistenceBackend, create_backend
from .models import CacheEntry, CacheRecord
from .store import Store, create_store, generate_slug

__all__ = [
    "CacheEntry",
    "CacheRecord",
    "DatabaseBackend",
    "JsonFileBackend",
    "MemoryBackend",
    "PersistenceBackend",
    "Store",
    "create_backend",
    "create_store",
    "generate_slug",
]
