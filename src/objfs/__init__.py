"""objfs: a directory-aware filesystem over flat object stores.

Maps virtual paths onto key-prefix addressed storage (S3 and compatible),
with root confinement, composable access policies, hierarchical listings
and name collision avoidance.
"""

from objfs.adapters import InMemoryObjectStore, ObjectStoreAdapter, ObjectStream, S3ObjectStore
from objfs.config import DriveConfig
from objfs.errors import (
    AccessDeniedError,
    ConfigError,
    InvalidRootError,
    NotFoundError,
    ObjfsError,
    StoreError,
)
from objfs.factory import open_filesystem
from objfs.models import FsObject, ListConfig, OperationConfig, StorageStats
from objfs.policy import (
    AllowAllPolicy,
    CombinedPolicy,
    DenyAllPolicy,
    ForceRootPolicy,
    Operation,
    Policy,
    ReadOnlyPolicy,
)
from objfs.vfs import VirtualFilesystem

__all__ = [
    "VirtualFilesystem",
    "open_filesystem",
    "DriveConfig",
    "FsObject",
    "ListConfig",
    "OperationConfig",
    "StorageStats",
    "ObjectStoreAdapter",
    "ObjectStream",
    "InMemoryObjectStore",
    "S3ObjectStore",
    "Operation",
    "Policy",
    "AllowAllPolicy",
    "DenyAllPolicy",
    "ReadOnlyPolicy",
    "ForceRootPolicy",
    "CombinedPolicy",
    "ObjfsError",
    "InvalidRootError",
    "AccessDeniedError",
    "NotFoundError",
    "StoreError",
    "ConfigError",
]
