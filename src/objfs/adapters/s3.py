"""S3 object store backend.

Provides an aiobotocore-backed adapter for AWS S3 and S3-compatible
services. A single client is opened lazily and kept until ``close()``.

Error mapping:
    - 404 / NoSuchKey / NotFound -> NotFoundError
    - any other ClientError or BotoCoreError -> StoreError (original chained)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from typing import Any

from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from objfs.adapters.base import ObjectStoreAdapter, ObjectStream, PutBody, read_body
from objfs.errors import NotFoundError, ObjfsError, StoreError
from objfs.models import ListingEntry, ListingPage, ObjectHead

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000
DEFAULT_CHUNK_SIZE = 64 * 1024

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _translate_error(exc: Exception, key: str | None) -> ObjfsError:
    """Map a botocore failure onto the objfs taxonomy."""
    if isinstance(exc, ClientError):
        code = str(exc.response.get("Error", {}).get("Code", ""))
        if code in _NOT_FOUND_CODES:
            return NotFoundError(key=key)
        return StoreError(f"S3 request failed: {code or 'unknown'}", key=key, cause=exc)
    return StoreError(f"S3 request failed: {type(exc).__name__}", key=key, cause=exc)


class S3ObjectStore(ObjectStoreAdapter):
    """S3 adapter bound to one bucket.

    Args:
        bucket: Bucket name.
        access_key: AWS access key id (falls back to the default credential chain).
        secret_key: AWS secret access key.
        region: AWS region name.
        endpoint_url: Custom endpoint for S3-compatible services.
        chunk_size: Chunk size for read streams.
        client: Pre-built client; when given the adapter does not own it.
    """

    def __init__(
        self,
        bucket: str,
        *,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        client: Any | None = None,
    ) -> None:
        self._bucket = bucket
        self._access_key = access_key
        self._secret_key = secret_key
        self._region = region
        self._endpoint_url = endpoint_url
        self._chunk_size = chunk_size
        self._client = client
        self._exit_stack: AsyncExitStack | None = None
        logger.debug(
            "S3ObjectStore initialized: bucket=%s, region=%s, endpoint=%s",
            bucket,
            region,
            endpoint_url,
        )

    @property
    def backend_name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    async def _get_client(self) -> Any:
        if self._client is None:
            stack = AsyncExitStack()
            session = get_session()
            self._client = await stack.enter_async_context(
                session.create_client(
                    "s3",
                    region_name=self._region,
                    endpoint_url=self._endpoint_url,
                    aws_access_key_id=self._access_key,
                    aws_secret_access_key=self._secret_key,
                    config=Config(retries={"max_attempts": 1, "mode": "standard"}),
                )
            )
            self._exit_stack = stack
        return self._client

    async def close(self) -> None:
        if self._exit_stack is not None:
            stack, self._exit_stack = self._exit_stack, None
            self._client = None
            await stack.aclose()

    async def head_object(self, key: str) -> ObjectHead:
        client = await self._get_client()
        try:
            response = await client.head_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate_error(e, key) from e

        return ObjectHead(
            key=key,
            size=int(response.get("ContentLength", 0)),
            last_modified=response.get("LastModified"),
            content_type=response.get("ContentType"),
        )

    async def get_object_stream(self, key: str) -> ObjectStream:
        client = await self._get_client()
        try:
            response = await client.get_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate_error(e, key) from e

        body = response["Body"]
        chunk_size = self._chunk_size

        async def chunks() -> AsyncIterator[bytes]:
            try:
                async for chunk in body.iter_chunks(chunk_size):
                    yield chunk
            except (ClientError, BotoCoreError) as e:
                raise _translate_error(e, key) from e

        async def release() -> None:
            body.close()

        return ObjectStream(
            chunks(),
            key=key,
            size=response.get("ContentLength"),
            content_type=response.get("ContentType"),
            on_close=release,
        )

    async def put_object(
        self,
        key: str,
        data: PutBody,
        *,
        content_type: str | None = None,
    ) -> None:
        client = await self._get_client()
        kwargs: dict[str, Any] = {"Bucket": self._bucket, "Key": key}
        kwargs["Body"] = data if hasattr(data, "read") else await read_body(data)
        if content_type:
            kwargs["ContentType"] = content_type
        try:
            await client.put_object(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise _translate_error(e, key) from e

    async def delete_object(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate_error(e, key) from e

    async def delete_objects(self, keys: list[str]) -> None:
        client = await self._get_client()
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            try:
                response = await client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                raise _translate_error(e, batch[0]) from e

            errors = response.get("Errors") or []
            if errors:
                first = errors[0]
                raise StoreError(
                    f"S3 batch delete failed for {len(errors)} key(s): {first.get('Code')}",
                    key=first.get("Key"),
                )

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        client = await self._get_client()
        try:
            await client.copy_object(
                Bucket=self._bucket,
                Key=dest_key,
                CopySource={"Bucket": self._bucket, "Key": source_key},
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate_error(e, source_key) from e

    async def list_by_prefix(
        self,
        prefix: str,
        delimiter: str | None = "/",
        *,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListingPage:
        client = await self._get_client()
        kwargs: dict[str, Any] = {"Bucket": self._bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        if max_keys:
            kwargs["MaxKeys"] = max_keys

        try:
            response = await client.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise _translate_error(e, prefix) from e

        entries = [
            ListingEntry(
                key=item["Key"],
                size=int(item.get("Size", 0)),
                last_modified=item.get("LastModified"),
            )
            for item in response.get("Contents", [])
        ]
        prefixes = [item["Prefix"] for item in response.get("CommonPrefixes", [])]
        token = response.get("NextContinuationToken") if response.get("IsTruncated") else None

        return ListingPage(entries=entries, common_prefixes=prefixes, continuation_token=token)
