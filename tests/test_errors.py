from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError
from botocore.exceptions import EndpointConnectionError
from s3_cache_store.errors import CacheStoreError
from s3_cache_store.errors import error_code
from s3_cache_store.errors import FetchError
from s3_cache_store.errors import ParseError
from s3_cache_store.errors import status_code_for


def _client_error(code, status=None, operation="GetObject"):
    response = {"Error": {"Code": code, "Message": "msg"}}
    if status is not None:
        response["ResponseMetadata"] = {"HTTPStatusCode": status}
    return ClientError(response, operation)


class TestStatusCode:
    def test_from_response_metadata(self):
        assert status_code_for(_client_error("AccessDenied", 403)) == 403

    def test_from_numeric_error_code(self):
        assert status_code_for(_client_error("404")) == 404

    def test_not_found_codes(self):
        assert status_code_for(_client_error("NoSuchKey")) == 404

    def test_unknown_code(self):
        assert status_code_for(_client_error("SlowDown")) is None

    def test_transport_error_has_no_status(self):
        error = EndpointConnectionError(endpoint_url="http://localhost:9000")
        assert status_code_for(error) is None

    def test_wrapped_client_error(self):
        try:
            try:
                raise _client_error("AccessDenied", 403, "PutObject")
            except ClientError as e:
                raise S3UploadFailedError("Failed to upload") from e
        except S3UploadFailedError as wrapped:
            assert status_code_for(wrapped) == 403
            assert error_code(wrapped) == "AccessDenied"


class TestErrorCode:
    def test_client_error(self):
        assert error_code(_client_error("NoSuchBucket", 404)) == "NoSuchBucket"

    def test_other_error(self):
        error = EndpointConnectionError(endpoint_url="http://localhost:9000")
        assert error_code(error) == "EndpointConnectionError"


class TestTaxonomy:
    def test_status_code_default(self):
        assert CacheStoreError("x").status_code is None
        assert FetchError("x", status_code=500).status_code == 500

    def test_parse_error_is_fetch_error_without_status(self):
        error = ParseError("bad body")
        assert isinstance(error, FetchError)
        assert error.status_code is None
