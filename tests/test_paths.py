from s3_cache_store.interfaces import IStoragePaths
from s3_cache_store.paths import sanitize_key
from s3_cache_store.paths import StoragePaths

import pytest


@pytest.fixture
def paths():
    return StoragePaths("seg")


class TestSanitizeKey:
    @pytest.mark.parametrize(
        "key, expected",
        [
            ("foo", "foo"),
            ("/foo", "foo"),
            ("foo/", "foo"),
            ("/foo/bar/", "foo/bar"),
            ("a?b&c#d%e", "a~b~c~d~e"),
            ("??", "~~"),
            ("", ""),
            ("/", ""),
        ],
    )
    def test_sanitize(self, key, expected):
        assert sanitize_key(key) == expected

    def test_strips_only_one_slash_each_side(self):
        assert sanitize_key("//foo//") == "/foo/"

    @pytest.mark.parametrize(
        "key", ["/foo/bar?baz#1", "events/%20&x", "plain/key", "a#b/"]
    )
    def test_idempotent(self, key):
        once = sanitize_key(key)
        assert sanitize_key(once) == once
        assert not set("?&#%") & set(once)


class TestStoragePaths:
    def test_interface_provided(self, paths):
        assert IStoragePaths.providedBy(paths)

    def test_cache_path(self, paths):
        assert paths.cache_path("/foo/bar?baz#1") == "seg/caches/foo/bar~baz~1"

    def test_object_path(self, paths):
        assert paths.object_path("builds/42/meta.json") == "seg/builds/42/meta.json"

    def test_object_path_has_no_caches_infix(self, paths):
        assert paths.object_path("/x?y") == "seg/x~y"

    def test_distinct_keys_give_distinct_paths(self, paths):
        assert paths.cache_path("a/b") != paths.cache_path("a/c")
        # equal after sanitizing
        assert paths.cache_path("/a?b") == paths.cache_path("a#b/")
