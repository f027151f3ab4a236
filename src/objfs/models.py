"""objfs data models.

Provides typed dataclasses for filesystem entries, raw store metadata and
per-call configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

FOLDER_TYPE = "folder"
DIRECTORY_CONTENT_TYPE = "application/x-directory"

NamePredicate = Callable[[str], bool]


@dataclass(frozen=True)
class FsObject:
    """A file or folder as seen through the virtual filesystem.

    Attributes:
        id: Virtual path, always with a single leading separator.
        value: Basename of the entry.
        size: Size in bytes (0 for folders).
        date: Modification time in seconds since the epoch, or None for
            folders without stored metadata.
        type: Classification ("folder", "image", "code", ..., "file").
        data: Child entries; only set by nested listings.
    """

    id: str
    value: str
    size: int
    date: float | None
    type: str
    data: list[FsObject] | None = None

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER_TYPE

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape; ``data`` is omitted unless present."""
        result: dict[str, Any] = {
            "id": self.id,
            "value": self.value,
            "size": self.size,
            "date": self.date,
            "type": self.type,
        }
        if self.data is not None:
            result["data"] = [child.to_dict() for child in self.data]
        return result


@dataclass(frozen=True)
class ObjectHead:
    """Metadata for a single stored object.

    Attributes:
        key: Store key of the object.
        size: Content length in bytes.
        last_modified: Last modification timestamp, if known.
        content_type: MIME type reported by the store.
    """

    key: str
    size: int
    last_modified: datetime | None
    content_type: str | None = None

    @property
    def is_directory(self) -> bool:
        return self.content_type == DIRECTORY_CONTENT_TYPE


@dataclass(frozen=True)
class ListingEntry:
    """A plain object returned by a prefix listing."""

    key: str
    size: int
    last_modified: datetime | None


@dataclass(frozen=True)
class ListingPage:
    """One page of a delimiter-bounded prefix listing.

    Attributes:
        entries: Objects directly under the prefix.
        common_prefixes: Grouped sub-prefixes (each ending with the delimiter).
        continuation_token: Token for the next page, None on the last page.
    """

    entries: list[ListingEntry] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    continuation_token: str | None = None


@dataclass(frozen=True)
class ListConfig:
    """Options for hierarchical listings.

    Attributes:
        skip_files: Return folders only.
        sub_folders: Descend into subfolders.
        nested: With sub_folders, attach children as ``data`` instead of
            merging them into one flat list.
        include: Keep only basenames for which the predicate is true.
        exclude: Drop basenames for which the predicate is true.
    """

    skip_files: bool = False
    sub_folders: bool = False
    nested: bool = False
    include: NamePredicate | None = None
    exclude: NamePredicate | None = None


@dataclass(frozen=True)
class OperationConfig:
    """Options for mutating operations."""

    prevent_name_collision: bool = False


@dataclass(frozen=True)
class StorageStats:
    """Space usage under a folder; object stores report no free space."""

    used: int
    free: int = 0
