from obs_storage.storage.keys import KeyMapper


def test_storage_key_without_prefix():
    mapper = KeyMapper()
    assert mapper.to_storage_key("demo/example.txt") == "demo/example.txt"
    assert mapper.to_storage_key("//demo/example.txt") == "demo/example.txt"


def test_storage_key_with_prefix():
    mapper = KeyMapper("uploads")
    assert mapper.to_storage_key("file.txt") == "uploads/file.txt"
    assert mapper.to_storage_key("/sub/f.txt") == "uploads/sub/f.txt"


def test_prefix_slashes_are_normalized():
    assert KeyMapper("/uploads/").to_storage_key("file.txt") == "uploads/file.txt"
    assert KeyMapper("/").prefix is None


def test_logical_path_strips_prefix_once():
    mapper = KeyMapper("uploads")
    assert mapper.to_logical_path("uploads/sub/f.txt") == "/sub/f.txt"
    assert mapper.to_logical_path("uploads/uploads/f.txt") == "/uploads/f.txt"
    assert mapper.to_logical_path("other/f.txt") == "/other/f.txt"


def test_round_trip():
    for prefix in (None, "uploads", "a/b"):
        mapper = KeyMapper(prefix)
        for path in ("file.txt", "/file.txt", "dir/sub/file.txt", "//x/y"):
            expected = "/" + path.lstrip("/")
            assert mapper.to_logical_path(mapper.to_storage_key(path)) == expected


def test_double_mapping_is_distinguishable():
    mapper = KeyMapper("uploads")
    once = mapper.to_storage_key("file.txt")
    twice = mapper.to_storage_key(once)
    assert twice == "uploads/uploads/file.txt"
    assert twice != once


def test_directory_key():
    assert KeyMapper().to_directory_key("") == ""
    assert KeyMapper().to_directory_key("/") == ""
    assert KeyMapper().to_directory_key("dir") == "dir/"
    assert KeyMapper().to_directory_key("dir//") == "dir/"
    assert KeyMapper("uploads").to_directory_key("") == "uploads/"
    assert KeyMapper("uploads").to_directory_key("/dir") == "uploads/dir/"
