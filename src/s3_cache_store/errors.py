"""Error taxonomy surfaced to callers of the cache store.

Store-level failures (botocore ``ClientError``, transport errors, boto3
transfer errors) never leak to callers directly. They are wrapped in one of
the classes below with the original exception chained as ``__cause__``.
"""

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError


STORE_ERRORS = (ClientError, BotoCoreError, Boto3Error)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "NoSuchBucket"})


class CacheStoreError(Exception):
    """Base class for all cache store failures.

    ``status_code`` carries the HTTP status reported by the store when one is
    known, and is ``None`` otherwise.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class SerializationError(CacheStoreError):
    """Payload could not be encoded before any request was made."""


class TransferError(CacheStoreError):
    """Upload or copy rejected by the store."""


class FetchError(CacheStoreError):
    """Read or listing failed at the store."""


class ParseError(FetchError):
    """Object was fetched but its body is not valid JSON.

    Never carries a status code, so callers can tell it apart from a
    store-side fetch failure either by type or by ``status_code is None``.
    """

    def __init__(self, message):
        super().__init__(message, status_code=None)


class DeleteError(CacheStoreError):
    """Single-object or batch delete rejected by the store."""


class MetadataError(CacheStoreError):
    """Metadata lookup failed, typically because the object does not exist."""


def _find_client_error(error):
    # boto3 transfer errors wrap the ClientError instead of subclassing it
    seen = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, ClientError):
            return error
        seen.add(id(error))
        error = error.__cause__ or error.__context__
    return None


def error_code(error):
    """Return the store's error code for ``error``, or ``"Unknown"``."""
    client_error = _find_client_error(error)
    if client_error is None:
        return type(error).__name__
    return client_error.response.get("Error", {}).get("Code", "Unknown")


def status_code_for(error):
    """Return the HTTP status behind a store error, or ``None``."""
    client_error = _find_client_error(error)
    if client_error is None:
        return None
    status = client_error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if status:
        return int(status)
    code = client_error.response.get("Error", {}).get("Code", "")
    if code.isdigit():
        return int(code)
    if code in _NOT_FOUND_CODES:
        return 404
    return None
