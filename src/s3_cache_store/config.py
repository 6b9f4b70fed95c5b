from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from importlib import resources

import boto3
import dataclasses
import io
import logging
import re
import ZConfig


logger = logging.getLogger(__name__)

MIN_PART_SIZE = 5 * 1024 * 1024
MAX_LIST_PAGE_SIZE = 1000


@dataclasses.dataclass(frozen=True)
class ClientConfig:
    """Connection and layout settings, fixed for the lifetime of a store.

    ``http_timeout`` is in milliseconds and bounds every single request.
    ``list_page_size`` is the number of keys requested per listing page
    during cache invalidation.
    """

    bucket: str
    segment: str
    endpoint: str = None
    access_key_id: str = None
    secret_access_key: str = None
    region: str = None
    force_path_style: bool = False
    part_size: int = MIN_PART_SIZE
    http_timeout: int = 120000
    list_page_size: int = MAX_LIST_PAGE_SIZE

    def __post_init__(self):
        if not self.bucket:
            raise ValueError("bucket must not be empty")
        segment = self.segment.strip("/") if self.segment else ""
        if not segment:
            raise ValueError("segment must not be empty")
        if not re.fullmatch(r"[a-zA-Z0-9._/-]*", segment):
            raise ValueError(
                f"segment contains invalid characters: {segment!r}. "
                "Only alphanumeric characters, dots, hyphens, underscores, "
                "and slashes are allowed."
            )
        if ".." in segment:
            raise ValueError(f"segment must not contain '..': {segment!r}")
        # frozen, so bypass __setattr__ for the normalized value
        object.__setattr__(self, "segment", segment)

        if self.part_size < MIN_PART_SIZE:
            raise ValueError(
                f"part_size must be at least {MIN_PART_SIZE} bytes, "
                f"got {self.part_size}"
            )
        if self.http_timeout <= 0:
            raise ValueError(f"http_timeout must be positive, got {self.http_timeout}")
        if not 0 < self.list_page_size <= MAX_LIST_PAGE_SIZE:
            raise ValueError(
                f"list_page_size must be between 1 and {MAX_LIST_PAGE_SIZE}, "
                f"got {self.list_page_size}"
            )

    def botocore_config(self):
        seconds = self.http_timeout / 1000
        return Config(
            s3={"addressing_style": "path" if self.force_path_style else "auto"},
            connect_timeout=seconds,
            read_timeout=seconds,
        )

    def transfer_config(self):
        return TransferConfig(
            multipart_threshold=self.part_size,
            multipart_chunksize=self.part_size,
        )

    def create_client(self):
        """Build the boto3 S3 client described by this config."""
        kwargs = {"config": self.botocore_config()}
        if self.endpoint:
            kwargs["endpoint_url"] = self.endpoint
        if self.region:
            kwargs["region_name"] = self.region
        if self.access_key_id:
            kwargs["aws_access_key_id"] = self.access_key_id
        if self.secret_access_key:
            kwargs["aws_secret_access_key"] = self.secret_access_key
        if self.endpoint and self.endpoint.startswith("http://"):
            logger.warning(
                "S3 endpoint %s is not using TLS; data and credentials are "
                "transmitted in cleartext",
                self.endpoint,
            )
        return boto3.client("s3", **kwargs)


class S3CacheStoreFactory:
    """ZConfig factory for S3CacheStore."""

    def __init__(self, config):
        self.config = config
        self.name = config.getSectionName()

    def client_config(self):
        config = self.config
        return ClientConfig(
            bucket=config.bucket_name,
            segment=config.segment,
            endpoint=config.s3_endpoint_url,
            access_key_id=config.s3_access_key,
            secret_access_key=config.s3_secret_key,
            region=config.s3_region,
            force_path_style=config.s3_force_path_style,
            part_size=config.part_size,
            http_timeout=config.http_timeout,
            list_page_size=config.list_page_size,
        )

    def open(self, logger=None):
        from s3_cache_store.store import S3CacheStore

        return S3CacheStore.from_config(self.client_config(), logger=logger)


def load_schema():
    with resources.files("s3_cache_store").joinpath("schema.xml").open("rb") as f:
        return ZConfig.loadSchemaFile(f)


def factory_from_string(text):
    """Parse an ``<s3cachestore>`` section and return its factory."""
    config, _handler = ZConfig.loadConfigFile(load_schema(), io.StringIO(text))
    return config.store


def config_from_string(text, logger=None):
    """Parse an ``<s3cachestore>`` section and return the opened store."""
    return factory_from_string(text).open(logger=logger)
