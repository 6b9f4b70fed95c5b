from s3_cache_store.mime import content_type_for_extension

import pytest


@pytest.mark.parametrize(
    "extension, expected",
    [
        ("css", "text/css"),
        ("JS", "text/javascript"),
        ("Html", "text/html"),
        ("png", ""),
        ("", ""),
    ],
)
def test_content_type_for_extension(extension, expected):
    assert content_type_for_extension(extension) == expected
