"""In-memory object store backend.

Provides a dict-backed adapter for development and testing. Listing follows
S3 ListObjectsV2 semantics: lexicographic key order, delimiter grouping into
common prefixes, and continuation tokens over a bounded page size.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import UTC, datetime

from objfs.adapters.base import ObjectStoreAdapter, ObjectStream, PutBody, read_body
from objfs.errors import NotFoundError
from objfs.models import ListingEntry, ListingPage, ObjectHead

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class _StoredBlob:
    body: bytes
    last_modified: datetime
    content_type: str | None


class InMemoryObjectStore(ObjectStoreAdapter):
    """Dict-backed object store.

    Attributes:
        page_size: Maximum keys plus prefixes returned per listing page.
        chunk_size: Chunk size used by read streams.
    """

    def __init__(
        self,
        objects: dict[str, bytes] | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._objects: dict[str, _StoredBlob] = {}
        self.page_size = page_size
        self.chunk_size = chunk_size
        self.calls: list[tuple[str, str]] = []
        for key, body in (objects or {}).items():
            self._store(key, body, None)
        logger.debug("InMemoryObjectStore initialized with %d objects", len(self._objects))

    @property
    def backend_name(self) -> str:
        return "memory"

    @property
    def keys(self) -> list[str]:
        """All stored keys in lexicographic order."""
        return sorted(self._objects)

    def _store(self, key: str, body: bytes, content_type: str | None) -> None:
        self._objects[key] = _StoredBlob(
            body=body,
            last_modified=datetime.now(UTC),
            content_type=content_type,
        )

    def _get(self, key: str) -> _StoredBlob:
        try:
            return self._objects[key]
        except KeyError:
            raise NotFoundError(key=key) from None

    async def head_object(self, key: str) -> ObjectHead:
        self.calls.append(("head_object", key))
        blob = self._get(key)
        return ObjectHead(
            key=key,
            size=len(blob.body),
            last_modified=blob.last_modified,
            content_type=blob.content_type,
        )

    async def get_object_stream(self, key: str) -> ObjectStream:
        self.calls.append(("get_object_stream", key))
        blob = self._get(key)

        async def chunks() -> AsyncIterator[bytes]:
            for start in range(0, len(blob.body), self.chunk_size):
                yield blob.body[start : start + self.chunk_size]

        return ObjectStream(
            chunks(),
            key=key,
            size=len(blob.body),
            content_type=blob.content_type,
        )

    async def put_object(
        self,
        key: str,
        data: PutBody,
        *,
        content_type: str | None = None,
    ) -> None:
        self.calls.append(("put_object", key))
        self._store(key, await read_body(data), content_type)

    async def delete_object(self, key: str) -> None:
        self.calls.append(("delete_object", key))
        self._objects.pop(key, None)

    async def delete_objects(self, keys: list[str]) -> None:
        self.calls.append(("delete_objects", ",".join(keys)))
        for key in keys:
            self._objects.pop(key, None)

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        self.calls.append(("copy_object", f"{source_key}->{dest_key}"))
        blob = self._get(source_key)
        self._store(dest_key, blob.body, blob.content_type)

    async def list_by_prefix(
        self,
        prefix: str,
        delimiter: str | None = "/",
        *,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListingPage:
        self.calls.append(("list_by_prefix", prefix))
        limit = min(max_keys or self.page_size, self.page_size)

        entries: list[ListingEntry] = []
        prefixes: list[str] = []
        last_returned: str | None = None

        # A common prefix is reported once, even when its keys span pages.
        consumed_prefix: str | None = None
        if continuation_token is not None and delimiter:
            rest = continuation_token[len(prefix) :]
            if delimiter in rest:
                consumed_prefix = prefix + rest[: rest.index(delimiter) + len(delimiter)]

        for key in sorted(self._objects):
            if not key.startswith(prefix):
                continue
            if continuation_token is not None and key <= continuation_token:
                continue
            if consumed_prefix is not None and key.startswith(consumed_prefix):
                continue

            rest = key[len(prefix) :]
            if delimiter and delimiter in rest:
                common = prefix + rest[: rest.index(delimiter) + len(delimiter)]
                if prefixes and prefixes[-1] == common:
                    last_returned = key
                    continue
                if len(entries) + len(prefixes) >= limit:
                    return ListingPage(entries, prefixes, last_returned)
                prefixes.append(common)
            else:
                if len(entries) + len(prefixes) >= limit:
                    return ListingPage(entries, prefixes, last_returned)
                blob = self._objects[key]
                entries.append(ListingEntry(key, len(blob.body), blob.last_modified))
            last_returned = key

        return ListingPage(entries, prefixes, None)
