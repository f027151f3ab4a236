"""Tests for the S3 object store backend.

The aiobotocore client is replaced with an AsyncMock; no network access.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from objfs.adapters.s3 import DELETE_BATCH_SIZE, S3ObjectStore
from objfs.errors import NotFoundError, StoreError

BUCKET = "test-bucket"


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeBody:
    """Stand-in for an aiobotocore StreamingBody."""

    def __init__(self, content: bytes) -> None:
        self._content = content
        self.closed = False

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        for start in range(0, len(self._content), chunk_size):
            yield self._content[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def client() -> Any:
    return AsyncMock()


@pytest.fixture
def s3(client: Any) -> S3ObjectStore:
    return S3ObjectStore(BUCKET, client=client, chunk_size=3)


class TestErrorMapping:
    """Tests for botocore error translation."""

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_missing_key_maps_to_not_found(
        self, s3: S3ObjectStore, client: Any, code: str, run: Callable[..., Any]
    ) -> None:
        client.head_object.side_effect = _client_error(code)

        with pytest.raises(NotFoundError) as exc_info:
            run(s3.head_object("a.txt"))

        assert exc_info.value.key == "a.txt"

    def test_other_client_errors_map_to_store_error(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        original = _client_error("AccessDenied", "GetObject")
        client.get_object.side_effect = original

        with pytest.raises(StoreError) as exc_info:
            run(s3.get_object_stream("a.txt"))

        assert exc_info.value.cause is original
        assert exc_info.value.__cause__ is original
        assert "AccessDenied" in str(exc_info.value)

    def test_connection_errors_map_to_store_error(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        client.list_objects_v2.side_effect = EndpointConnectionError(endpoint_url="http://s3")

        with pytest.raises(StoreError):
            run(s3.list_by_prefix("docs/"))

    def test_copy_missing_source(self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]) -> None:
        client.copy_object.side_effect = _client_error("NoSuchKey", "CopyObject")

        with pytest.raises(NotFoundError) as exc_info:
            run(s3.copy_object("gone.txt", "dest.txt"))

        assert exc_info.value.key == "gone.txt"


class TestObjects:
    """Tests for single-object requests."""

    def test_head_object(self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]) -> None:
        modified = datetime(2024, 1, 2, tzinfo=UTC)
        client.head_object.return_value = {
            "ContentLength": 12,
            "LastModified": modified,
            "ContentType": "application/x-directory",
        }

        head = run(s3.head_object("docs"))

        client.head_object.assert_awaited_once_with(Bucket=BUCKET, Key="docs")
        assert head.size == 12
        assert head.last_modified == modified
        assert head.is_directory is True

    def test_stream_reads_chunks_and_releases_body(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        body = FakeBody(b"abcdefg")
        client.get_object.return_value = {"Body": body, "ContentLength": 7}

        async def scenario() -> list[bytes]:
            stream = await s3.get_object_stream("a.txt")
            return [chunk async for chunk in stream]

        assert run(scenario()) == [b"abc", b"def", b"g"]
        assert body.closed is True

    def test_stream_close_without_reading(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        body = FakeBody(b"abc")
        client.get_object.return_value = {"Body": body}

        async def scenario() -> None:
            async with await s3.get_object_stream("a.txt"):
                pass

        run(scenario())
        assert body.closed is True

    def test_put_object(self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]) -> None:
        run(s3.put_object("a.txt", b"hello", content_type="text/plain"))

        client.put_object.assert_awaited_once_with(
            Bucket=BUCKET, Key="a.txt", Body=b"hello", ContentType="text/plain"
        )

    def test_copy_object_uses_bucket_source(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        run(s3.copy_object("a.txt", "sub/a.txt"))

        client.copy_object.assert_awaited_once_with(
            Bucket=BUCKET,
            Key="sub/a.txt",
            CopySource={"Bucket": BUCKET, "Key": "a.txt"},
        )


class TestBatchDelete:
    """Tests for batched deletion."""

    def test_batches_of_one_thousand(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        client.delete_objects.return_value = {}
        keys = [f"logs/{i:05d}" for i in range(2500)]

        run(s3.delete_objects(keys))

        sizes = [
            len(call.kwargs["Delete"]["Objects"]) for call in client.delete_objects.await_args_list
        ]
        assert sizes == [DELETE_BATCH_SIZE, DELETE_BATCH_SIZE, 500]
        assert all(call.kwargs["Delete"]["Quiet"] is True for call in client.delete_objects.await_args_list)

    def test_reported_errors_raise(self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]) -> None:
        client.delete_objects.return_value = {
            "Errors": [{"Key": "logs/1", "Code": "AccessDenied", "Message": "denied"}]
        }

        with pytest.raises(StoreError) as exc_info:
            run(s3.delete_objects(["logs/0", "logs/1"]))

        assert exc_info.value.key == "logs/1"

    def test_failed_batch_stops_later_batches(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        client.delete_objects.side_effect = _client_error("SlowDown", "DeleteObjects")

        with pytest.raises(StoreError):
            run(s3.delete_objects([f"k{i}" for i in range(1500)]))

        assert client.delete_objects.await_count == 1


class TestListing:
    """Tests for ListObjectsV2 mapping."""

    def test_maps_contents_and_prefixes(
        self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]
    ) -> None:
        modified = datetime(2024, 5, 6, tzinfo=UTC)
        client.list_objects_v2.return_value = {
            "Contents": [{"Key": "docs/a.txt", "Size": 5, "LastModified": modified}],
            "CommonPrefixes": [{"Prefix": "docs/sub/"}],
            "IsTruncated": True,
            "NextContinuationToken": "tok-2",
        }

        page = run(s3.list_by_prefix("docs/", continuation_token="tok-1", max_keys=50))

        client.list_objects_v2.assert_awaited_once_with(
            Bucket=BUCKET,
            Prefix="docs/",
            Delimiter="/",
            ContinuationToken="tok-1",
            MaxKeys=50,
        )
        assert [(e.key, e.size, e.last_modified) for e in page.entries] == [
            ("docs/a.txt", 5, modified)
        ]
        assert page.common_prefixes == ["docs/sub/"]
        assert page.continuation_token == "tok-2"

    def test_last_page_has_no_token(self, s3: S3ObjectStore, client: Any, run: Callable[..., Any]) -> None:
        client.list_objects_v2.return_value = {"IsTruncated": False}

        page = run(s3.list_by_prefix("", None))

        client.list_objects_v2.assert_awaited_once_with(Bucket=BUCKET, Prefix="")
        assert page.entries == []
        assert page.common_prefixes == []
        assert page.continuation_token is None


class TestLifecycle:
    """Tests for client ownership."""

    def test_injected_client_is_not_closed(self, client: Any, run: Callable[..., Any]) -> None:
        s3 = S3ObjectStore(BUCKET, client=client)
        run(s3.close())
        assert s3.backend_name == "s3"
        assert s3.bucket == BUCKET

    def test_lazy_client_created_once(self, monkeypatch: pytest.MonkeyPatch, run: Callable[..., Any]) -> None:
        client = AsyncMock()
        client.head_object.return_value = {"ContentLength": 1}
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=client)
        context.__aexit__ = AsyncMock(return_value=None)
        session = MagicMock()
        session.create_client.return_value = context
        monkeypatch.setattr("objfs.adapters.s3.get_session", lambda: session)

        s3 = S3ObjectStore(BUCKET, region="eu-west-1", access_key="AK", secret_key="SK")

        async def scenario() -> None:
            await s3.head_object("a")
            await s3.head_object("b")
            await s3.close()

        run(scenario())

        session.create_client.assert_called_once()
        assert session.create_client.call_args.kwargs["region_name"] == "eu-west-1"
        context.__aexit__.assert_awaited_once()
