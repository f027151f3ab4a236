"""objfs object store adapters.

Backends:
- InMemoryObjectStore: dict-backed store (dev/test)
- S3ObjectStore: AWS S3 compatible (production)
"""

from objfs.adapters.base import ObjectStoreAdapter, ObjectStream
from objfs.adapters.memory import InMemoryObjectStore
from objfs.adapters.s3 import S3ObjectStore

__all__ = [
    "ObjectStoreAdapter",
    "ObjectStream",
    "InMemoryObjectStore",
    "S3ObjectStore",
]
