from zope.interface import Attribute
from zope.interface import Interface


class IStoragePaths(Interface):
    """Map logical keys to storage paths inside a segment."""

    segment = Attribute("Namespace prefix isolating one deployment's objects")

    def cache_path(cache_key):
        """Return ``{segment}/caches/{sanitized key}``."""

    def object_path(object_key):
        """Return ``{segment}/{sanitized key}``."""


class IS3CacheStore(Interface):
    """Cache storage backed by an S3-compatible object store.

    Every method is a coroutine.
    """

    paths = Attribute("IStoragePaths used to derive storage keys")

    def upload_as_stream(payload, cache_key):
        """Stream ``payload`` to the cache path as a multipart upload."""

    def upload_object(payload, object_key):
        """Store ``payload`` as JSON under the object path."""

    def get_download_stream(cache_key):
        """Return a DownloadStream for the cache entry."""

    def get_object(object_key):
        """Fetch and decode a JSON object."""

    def delete_object(object_key):
        """Delete a single object."""

    def update_last_modified(cache_key):
        """Refresh the last-modified timestamp of a cache entry."""

    def invalidate_cache(cache_path):
        """Delete every cache entry under ``cache_path``."""
