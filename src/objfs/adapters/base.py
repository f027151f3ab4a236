"""objfs object store adapter interface.

Provides the ObjectStoreAdapter contract that every storage backend must
implement. Adapters expose flat key primitives only; all directory semantics
live above this boundary, except for ``head_folder`` which backends with
native directory objects may override.

Implementations:
- InMemoryObjectStore: dict-backed store (dev/test)
- S3ObjectStore: AWS S3 compatible (production)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from typing import BinaryIO

from objfs.errors import NotFoundError
from objfs.models import DIRECTORY_CONTENT_TYPE, ListingPage, ObjectHead

PutBody = bytes | BinaryIO | AsyncIterable[bytes]


class ObjectStream:
    """Lazy byte stream over an object's content.

    Iterate with ``async for`` to receive chunks, or call ``read()`` to
    collect the whole body. The underlying response is released when the
    iteration finishes or ``aclose()`` is called.
    """

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        *,
        key: str,
        size: int | None = None,
        content_type: str | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._chunks = chunks
        self._on_close = on_close
        self._closed = False
        self.key = key
        self.size = size
        self.content_type = content_type

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._chunks:
                yield chunk
        finally:
            await self.aclose()

    async def read(self) -> bytes:
        """Read the remaining content into memory."""
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> ObjectStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def read_body(data: PutBody) -> bytes:
    """Collect a put body into bytes."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if hasattr(data, "read"):
        return data.read()  # type: ignore[union-attr]
    return b"".join([chunk async for chunk in data])  # type: ignore[union-attr]


class ObjectStoreAdapter(ABC):
    """Abstract base class for object store backends.

    All methods are coroutines. Implementations must raise NotFoundError for
    missing keys and StoreError for any other backend failure.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability (e.g. "memory", "s3")."""
        ...

    @abstractmethod
    async def head_object(self, key: str) -> ObjectHead:
        """Get object metadata without retrieving content.

        Raises:
            NotFoundError: If the key does not exist.
            StoreError: If the backend cannot complete the request.
        """
        ...

    @abstractmethod
    async def get_object_stream(self, key: str) -> ObjectStream:
        """Open a lazy stream over the object's content.

        The request is issued immediately so a missing key fails here, not
        on first iteration.

        Raises:
            NotFoundError: If the key does not exist.
            StoreError: If the backend cannot complete the request.
        """
        ...

    @abstractmethod
    async def put_object(
        self,
        key: str,
        data: PutBody,
        *,
        content_type: str | None = None,
    ) -> None:
        """Store an object, replacing any existing one (last write wins)."""
        ...

    @abstractmethod
    async def delete_object(self, key: str) -> None:
        """Delete a single key. Deleting a missing key is not an error."""
        ...

    @abstractmethod
    async def delete_objects(self, keys: list[str]) -> None:
        """Delete a batch of keys.

        Aborts on the first failed request; keys already deleted stay deleted.
        """
        ...

    @abstractmethod
    async def copy_object(self, source_key: str, dest_key: str) -> None:
        """Server-side copy of one key.

        Raises:
            NotFoundError: If the source key does not exist.
        """
        ...

    @abstractmethod
    async def list_by_prefix(
        self,
        prefix: str,
        delimiter: str | None = "/",
        *,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListingPage:
        """List one page of keys under ``prefix``.

        With a delimiter, keys containing the delimiter after the prefix are
        grouped into ``common_prefixes``. Without one, every key under the
        prefix is returned as an entry.
        """
        ...

    async def head_folder(self, key: str, placeholder: str) -> ObjectHead:
        """Synthesize metadata for a folder that has no object of its own.

        Flat stores have no directory objects, so the folder's date is taken
        from its placeholder object. A folder without a placeholder but with
        descendants gets metadata without a date. Stores with native
        directories override this.

        Raises:
            NotFoundError: If nothing exists under the key.
        """
        folder_key = key.rstrip("/")
        try:
            marker = await self.head_object(f"{folder_key}/{placeholder}")
        except NotFoundError:
            page = await self.list_by_prefix(f"{folder_key}/", None, max_keys=1)
            if not page.entries:
                raise NotFoundError(key=key) from None
            return ObjectHead(
                key=folder_key,
                size=0,
                last_modified=None,
                content_type=DIRECTORY_CONTENT_TYPE,
            )

        return ObjectHead(
            key=folder_key,
            size=0,
            last_modified=marker.last_modified,
            content_type=DIRECTORY_CONTENT_TYPE,
        )

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
