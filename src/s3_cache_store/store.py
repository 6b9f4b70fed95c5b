from datetime import datetime
from datetime import timezone
from s3_cache_store.errors import DeleteError
from s3_cache_store.errors import error_code
from s3_cache_store.errors import FetchError
from s3_cache_store.errors import MetadataError
from s3_cache_store.errors import ParseError
from s3_cache_store.errors import SerializationError
from s3_cache_store.errors import status_code_for
from s3_cache_store.errors import STORE_ERRORS
from s3_cache_store.errors import TransferError
from s3_cache_store.interfaces import IS3CacheStore
from s3_cache_store.paths import StoragePaths
from s3_cache_store.streams import DownloadStream
from s3_cache_store.streams import feed
from s3_cache_store.streams import PassThrough
from typing import NamedTuple
from zope.interface import implementer

import asyncio
import contextlib
import io
import json
import logging


OCTET_STREAM = "application/octet-stream"
JSON_CONTENT_TYPE = "application/json"
DEFAULT_STORAGE_CLASS = "STANDARD"


class DeletionBatch(NamedTuple):
    """Keys from one listing page plus whether more pages remain."""

    keys: list
    truncated: bool


def _stored_timestamp(now):
    # e.g. "Sat Oct 17 2026 12:00:00 GMT+0000"
    return now.strftime("%a %b %d %Y %H:%M:%S GMT%z")


@implementer(IS3CacheStore)
class S3CacheStore:
    """Cache storage on top of a boto3 S3 client.

    Each coroutine runs the blocking client calls in a worker thread, so the
    event loop only waits at request boundaries. Nothing is retried here; a
    failed request surfaces immediately as a CacheStoreError subclass.
    """

    def __init__(self, client, config, logger=None):
        self._client = client
        self.config = config
        self.bucket = config.bucket
        self.paths = StoragePaths(config.segment)
        self._transfer_config = config.transfer_config()
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config, logger=None):
        return cls(config.create_client(), config, logger=logger)

    def __repr__(self):
        return f"<S3CacheStore bucket={self.bucket!r} segment={self.paths.segment!r}>"

    def _wrap_error(self, error_class, e, operation, key):
        """Log the store error and raise it as ``error_class``."""
        self._logger.error("S3 %s failed for key=%s: %s", operation, key, e)
        raise error_class(
            f"S3 {operation} failed for key={key}: {error_code(e)}",
            status_code=status_code_for(e),
        ) from e

    async def _call(self, func, **kwargs):
        return await asyncio.to_thread(func, **kwargs)

    # -- Transfer --

    async def upload_as_stream(self, payload, cache_key):
        """Stream ``payload`` to the cache path of ``cache_key``.

        ``payload`` is either an async iterable of bytes or a binary
        file-like object. Neither is read into memory as a whole; the
        multipart upload pulls one part at a time.
        """
        key = self.paths.cache_path(cache_key)
        extra_args = {
            "ContentType": OCTET_STREAM,
            "Expires": datetime.now(timezone.utc),
        }

        pump = None
        if hasattr(payload, "__aiter__"):
            body = PassThrough()
            pump = asyncio.create_task(feed(payload, body))
        else:
            body = payload

        try:
            await asyncio.to_thread(
                self._client.upload_fileobj,
                body,
                self.bucket,
                key,
                ExtraArgs=extra_args,
                Config=self._transfer_config,
            )
        except STORE_ERRORS as e:
            self._wrap_error(TransferError, e, "upload", cache_key)
        finally:
            if pump is not None:
                body.abort()
                if not pump.done():
                    pump.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await pump

    async def upload_object(self, payload, object_key):
        """Store ``payload`` as JSON under the object path of ``object_key``."""
        try:
            data = json.dumps(payload)
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationError("Could not convert object to JSON") from e

        key = self.paths.object_path(object_key)
        extra_args = {
            "ContentType": JSON_CONTENT_TYPE,
            "Metadata": {"stored": _stored_timestamp(datetime.now(timezone.utc))},
        }
        try:
            await asyncio.to_thread(
                self._client.upload_fileobj,
                io.BytesIO(data.encode("utf-8")),
                self.bucket,
                key,
                ExtraArgs=extra_args,
                Config=self._transfer_config,
            )
        except STORE_ERRORS as e:
            self._wrap_error(TransferError, e, "upload", object_key)

    async def get_download_stream(self, cache_key):
        """Return a DownloadStream over the cache entry for ``cache_key``.

        Raises FetchError with the store's status code when the request
        fails; no stream is returned in that case.
        """
        key = self.paths.cache_path(cache_key)
        try:
            response = await self._call(
                self._client.get_object, Bucket=self.bucket, Key=key
            )
        except STORE_ERRORS as e:
            self._wrap_error(FetchError, e, "fetch", cache_key)

        # boto3 raises ClientError for error statuses; this covers clients that do not
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode", 200)
        if status >= 400:
            self._logger.error("Fetch %s request failed: %s", cache_key, status)
            response["Body"].close()
            raise FetchError("Fetch cache request failed", status_code=status)

        return DownloadStream(
            response["Body"],
            key,
            content_length=response.get("ContentLength"),
            content_type=response.get("ContentType"),
            logger=self._logger,
        )

    async def get_object(self, object_key):
        """Fetch the object for ``object_key`` and return the decoded JSON."""
        key = self.paths.object_path(object_key)
        try:
            response = await self._call(
                self._client.get_object, Bucket=self.bucket, Key=key
            )
            data = await asyncio.to_thread(response["Body"].read)
        except STORE_ERRORS as e:
            self._wrap_error(FetchError, e, "fetch", object_key)

        try:
            return json.loads(data)
        except ValueError as e:
            self._logger.error("Fetch %s request failed: %s", object_key, e)
            raise ParseError("Failed to parse the data from s3") from e

    async def delete_object(self, object_key):
        key = self.paths.object_path(object_key)
        try:
            await self._call(self._client.delete_object, Bucket=self.bucket, Key=key)
        except STORE_ERRORS as e:
            self._wrap_error(DeleteError, e, "delete", object_key)

    # -- Lifecycle --

    async def update_last_modified(self, cache_key):
        """Copy the entry onto itself to refresh its last-modified time.

        Lifecycle rules based on object age then count from now. The
        storage class is read first and passed along unchanged.
        """
        key = self.paths.cache_path(cache_key)
        try:
            head = await self._call(
                self._client.head_object, Bucket=self.bucket, Key=key
            )
        except STORE_ERRORS as e:
            self._wrap_error(MetadataError, e, "head", cache_key)

        try:
            await self._call(
                self._client.copy_object,
                Bucket=self.bucket,
                Key=key,
                CopySource={"Bucket": self.bucket, "Key": key},
                StorageClass=head.get("StorageClass") or DEFAULT_STORAGE_CLASS,
            )
        except STORE_ERRORS as e:
            self._wrap_error(TransferError, e, "copy", cache_key)

    async def _list_batch(self, prefix, cache_path):
        try:
            page = await self._call(
                self._client.list_objects_v2,
                Bucket=self.bucket,
                Prefix=prefix,
                MaxKeys=self.config.list_page_size,
            )
        except STORE_ERRORS as e:
            self._wrap_error(FetchError, e, "list", cache_path)
        return DeletionBatch(
            keys=[obj["Key"] for obj in page.get("Contents", [])],
            truncated=bool(page.get("IsTruncated", False)),
        )

    async def _delete_batch(self, batch, cache_path):
        try:
            result = await self._call(
                self._client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in batch.keys]},
            )
        except STORE_ERRORS as e:
            self._wrap_error(DeleteError, e, "delete", cache_path)

        errors = result.get("Errors") or []
        if errors:
            first = errors[0]
            self._logger.error(
                "S3 delete failed for %d of %d keys under %s, first %s: %s",
                len(errors),
                len(batch.keys),
                cache_path,
                first.get("Key"),
                first.get("Code"),
            )
            raise DeleteError(
                f"S3 delete failed for key={first.get('Key')}: "
                f"{first.get('Code', 'Unknown')}"
            )

    async def invalidate_cache(self, cache_path):
        """Delete every cache entry whose path starts with ``cache_path``.

        Lists one page at a time and deletes it in a single batch request,
        starting over from the first page until the listing is no longer
        truncated. A failed page aborts the whole invalidation.
        """
        prefix = self.paths.cache_path(cache_path)
        pages = 0
        while True:
            batch = await self._list_batch(prefix, cache_path)
            if not batch.keys:
                break
            await self._delete_batch(batch, cache_path)
            pages += 1
            if not batch.truncated:
                break
        self._logger.debug("Invalidated %s in %d page(s)", prefix, pages)
