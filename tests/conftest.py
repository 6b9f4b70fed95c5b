from moto import mock_aws
from s3_cache_store.config import ClientConfig
from s3_cache_store.store import S3CacheStore

import boto3
import pytest


@pytest.fixture
def s3_env():
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(
            Bucket="test-bucket"
        )
        yield


@pytest.fixture
def raw_client(s3_env):
    """Plain boto3 client for inspecting the bucket behind the store."""
    return boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def config():
    return ClientConfig(bucket="test-bucket", segment="builds", region="us-east-1")


@pytest.fixture
def store(s3_env, config):
    return S3CacheStore.from_config(config)
