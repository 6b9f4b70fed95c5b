from s3_cache_store.interfaces import IStoragePaths
from zope.interface import implementer

import re


CACHES_PREFIX = "caches"

_RESERVED_RE = re.compile(r"[?&#%]")


def sanitize_key(key):
    """Strip one leading and one trailing slash, replace ``? & # %`` with ``~``."""
    if key.startswith("/"):
        key = key[1:]
    if key.endswith("/"):
        key = key[:-1]
    return _RESERVED_RE.sub("~", key)


@implementer(IStoragePaths)
class StoragePaths:
    """Derive storage paths for cache entries and plain objects.

    Cache entries live under ``{segment}/caches/{key}``, other objects
    under ``{segment}/{key}``.
    """

    def __init__(self, segment):
        self.segment = segment

    def cache_path(self, cache_key):
        return f"{self.segment}/{CACHES_PREFIX}/{sanitize_key(cache_key)}"

    def object_path(self, object_key):
        return f"{self.segment}/{sanitize_key(object_key)}"
