from s3_cache_store.config import ClientConfig
from s3_cache_store.config import config_from_string
from s3_cache_store.errors import CacheStoreError
from s3_cache_store.errors import DeleteError
from s3_cache_store.errors import FetchError
from s3_cache_store.errors import MetadataError
from s3_cache_store.errors import ParseError
from s3_cache_store.errors import SerializationError
from s3_cache_store.errors import TransferError
from s3_cache_store.mime import content_type_for_extension
from s3_cache_store.paths import sanitize_key
from s3_cache_store.paths import StoragePaths
from s3_cache_store.store import S3CacheStore
from s3_cache_store.streams import DownloadStream


__all__ = [
    "CacheStoreError",
    "ClientConfig",
    "DeleteError",
    "DownloadStream",
    "FetchError",
    "MetadataError",
    "ParseError",
    "S3CacheStore",
    "SerializationError",
    "StoragePaths",
    "TransferError",
    "config_from_string",
    "content_type_for_extension",
    "sanitize_key",
]
