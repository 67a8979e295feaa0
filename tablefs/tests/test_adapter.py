from __future__ import annotations

import io
import tempfile

import pytest
from sqlalchemy import text

from tablefs.infrastructure import TableFilesystemAdapter
from tablefs.shared.errors import (
    InvalidConfigurationError,
    PathExistsError,
    StorageError,
    UnsupportedOperationError,
)

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


@pytest.mark.parametrize("table", ["a$b", "a/b", "a*b", "ab*", "Abcde_f&", "", "1files", "a b"])
def test_invalid_table_names_are_rejected(engine, table: str) -> None:
    with pytest.raises(InvalidConfigurationError) as info:
        TableFilesystemAdapter(engine, table)
    assert info.value.code == "invalid_configuration"


@pytest.mark.parametrize("table", ["files", "_files", "Files2", "main.files", "a.b.c"])
def test_valid_table_names_are_accepted(engine, table: str) -> None:
    adapter = TableFilesystemAdapter(engine, table)
    assert adapter.table == table


def test_write_inserts_file_row(adapter, table_rows) -> None:
    adapter.create_dir("foo")
    record = adapter.write("foo/bar.txt", b"ala ma kota", {"timestamp": 1500000000})

    assert record["size"] == 11
    assert record["mimetype"] == "text/plain"
    assert record["timestamp"] == 1500000000
    assert table_rows() == [
        {"path": "foo", "contents": None, "type": "dir", "size": 0, "mimetype": None},
        {
            "path": "foo/bar.txt",
            "contents": b"ala ma kota",
            "type": "file",
            "size": 11,
            "mimetype": "text/plain",
        },
    ]


def test_write_duplicate_path_raises_path_exists(adapter, table_rows) -> None:
    adapter.write("foo.txt", b"abc")

    with pytest.raises(PathExistsError) as info:
        adapter.write("foo.txt", b"def")

    assert info.value.context == {"path": "foo.txt"}
    assert len(table_rows()) == 1


def test_write_then_read_returns_identical_bytes(adapter) -> None:
    adapter.write("foo/bar.txt", b"abc123")
    adapter.write("test/image.jpg", JPEG_BYTES)

    assert adapter.read("foo/bar.txt")["contents"] == b"abc123"
    assert adapter.read("test/image.jpg")["contents"] == JPEG_BYTES


def test_write_accepts_text(adapter) -> None:
    adapter.write("note.md", "zażółć")

    assert adapter.read("note.md")["contents"] == "zażółć".encode()
    assert adapter.get_metadata("note.md")["size"] == len("zażółć".encode())


def test_read_missing_path_returns_none(adapter) -> None:
    assert adapter.read("foo/nonexisting_bar.txt") is None
    assert adapter.read_stream("foo/nonexisting_bar.txt") is None


def test_write_stream_corrects_size(adapter) -> None:
    source = io.BytesIO(JPEG_BYTES)

    record = adapter.write_stream("foo/bar.jpg", source)

    assert "size" not in record
    assert record["mimetype"] == "image/jpeg"
    assert adapter.get_metadata("foo/bar.jpg")["size"] == len(JPEG_BYTES)
    stream = adapter.read_stream("foo/bar.jpg")["stream"]
    assert stream.read() == JPEG_BYTES


def test_read_stream_is_rewound_and_seekable(adapter) -> None:
    adapter.write("foo.txt", b"hello world")

    stream = adapter.read_stream("foo.txt")["stream"]

    assert stream.tell() == 0
    assert stream.read(5) == b"hello"
    stream.seek(0)
    assert stream.read() == b"hello world"


def test_read_stream_spills_to_disk_past_spool_size(engine) -> None:
    adapter = TableFilesystemAdapter(engine, "files", spool_max_size=4)
    adapter.write("big.bin", b"\x00" * 64)

    stream = adapter.read_stream("big.bin")["stream"]

    assert stream.read() == b"\x00" * 64


def test_update_replaces_contents_and_keeps_path_and_type(adapter, table_rows) -> None:
    adapter.write("foo/bar.txt", b"abc")

    record = adapter.update("foo/bar.txt", b"defgh", {"timestamp": 42})

    assert record == {
        "path": "foo/bar.txt",
        "contents": b"defgh",
        "size": 5,
        "mimetype": "text/plain",
        "timestamp": 42,
    }
    assert table_rows() == [
        {
            "path": "foo/bar.txt",
            "contents": b"defgh",
            "type": "file",
            "size": 5,
            "mimetype": "text/plain",
        }
    ]


def test_update_of_missing_path_returns_none_and_creates_nothing(adapter, table_rows) -> None:
    assert adapter.update("missing.txt", b"abc") is None
    assert adapter.update_stream("missing.txt", io.BytesIO(b"abc")) is None
    assert table_rows() == []


def test_update_stream_corrects_size(adapter) -> None:
    adapter.write("foo/bar.txt", b"abc")

    adapter.update_stream("foo/bar.txt", io.BytesIO(b"a much longer body"))

    assert adapter.read("foo/bar.txt")["contents"] == b"a much longer body"
    assert adapter.get_metadata("foo/bar.txt")["size"] == len(b"a much longer body")


def test_rename_file(adapter) -> None:
    adapter.write("foo.txt", b"abc")

    assert adapter.rename("foo.txt", "bar.txt") is True

    assert adapter.has("foo.txt") is False
    assert adapter.read("bar.txt")["contents"] == b"abc"


def test_rename_directory_moves_descendants(adapter) -> None:
    adapter.create_dir("foo")
    adapter.write("foo/bar.txt", b"abc")
    adapter.create_dir("foo/baz")
    adapter.write("foo/baz/buzz.txt", b"def")

    assert adapter.rename("foo", "renamed") is True

    assert adapter.has("foo") is False
    assert adapter.has("foo/baz") is False
    assert adapter.has("renamed") is True
    assert adapter.has("renamed/baz") is True
    assert adapter.read("renamed/bar.txt")["contents"] == b"abc"
    assert adapter.read("renamed/baz/buzz.txt")["contents"] == b"def"


def test_rename_missing_path_returns_false(adapter) -> None:
    assert adapter.rename("nope", "other") is False


def test_rename_onto_existing_path_raises(adapter) -> None:
    adapter.write("a.txt", b"a")
    adapter.write("b.txt", b"b")

    with pytest.raises(PathExistsError):
        adapter.rename("a.txt", "b.txt")

    assert adapter.read("a.txt")["contents"] == b"a"


def test_copy_missing_source_returns_false(adapter, table_rows) -> None:
    adapter.write("foo/bar.txt", b"abc")

    assert adapter.copy("foo/nonexisting_bar.txt", "copied.txt") is False
    assert len(table_rows()) == 1


def test_copy_duplicates_content_and_metadata(adapter) -> None:
    adapter.write("foo/bar.png", b"abc", {"timestamp": 100})

    assert adapter.copy("foo/bar.png", "copied.png") is True

    original = adapter.get_metadata("foo/bar.png")
    copied = adapter.get_metadata("copied.png")
    assert adapter.read("copied.png")["contents"] == b"abc"
    assert copied["size"] == original["size"] == 3
    assert copied["mimetype"] == original["mimetype"] == "image/png"
    assert adapter.read("foo/bar.png")["contents"] == b"abc"


def test_copy_onto_existing_path_raises(adapter) -> None:
    adapter.write("a.txt", b"a")
    adapter.write("b.txt", b"b")

    with pytest.raises(PathExistsError):
        adapter.copy("a.txt", "b.txt")


def test_delete_removes_single_row(adapter) -> None:
    adapter.create_dir("foo")
    adapter.write("foo/bar.txt", b"abc")

    assert adapter.delete("foo/bar.txt") is True
    assert adapter.has("foo/bar.txt") is False
    assert adapter.has("foo") is True
    assert adapter.delete("foo/bar.txt") is False


def test_delete_dir_removes_directory_and_descendants(adapter, table_rows) -> None:
    adapter.create_dir("foo")
    adapter.write("foo/bar.txt", b"abc")
    adapter.create_dir("foo/baz")
    adapter.write("foo/baz/buzz.txt", b"def")
    adapter.write("foobar.txt", b"sibling")

    assert adapter.delete_dir("foo") is True

    assert [row["path"] for row in table_rows()] == ["foobar.txt"]


def test_delete_dir_does_not_delete_file_with_same_path(adapter) -> None:
    adapter.write("foo", b"a file named foo")

    assert adapter.delete_dir("foo") is False
    assert adapter.has("foo") is True


def test_has(adapter) -> None:
    adapter.create_dir("foo")
    adapter.write("foo/baz/buzz.txt", b"def")

    assert adapter.has("foo") is True
    assert adapter.has("foo/baz/buzz.txt") is True
    assert adapter.has("foo/baz") is False
    assert adapter.has("foo/nonexisting_bar.txt") is False


def test_has_raises_on_storage_failure(engine) -> None:
    adapter = TableFilesystemAdapter(engine, "no_such_table")

    with pytest.raises(StorageError) as info:
        adapter.has("foo.txt")

    assert info.value.code == "storage_error"
    assert info.value.context == {"operation": "has", "path": "foo.txt"}


def test_get_metadata_returns_full_row(adapter) -> None:
    adapter.write("foo/bar.jpg", b"abc", {"timestamp": 1448170001})

    metadata = adapter.get_metadata("foo/bar.jpg")

    assert isinstance(metadata.pop("id"), int)
    assert metadata == {
        "path": "foo/bar.jpg",
        "dirname": "foo",
        "type": "file",
        "size": 3,
        "mimetype": "image/jpeg",
        "timestamp": 1448170001,
    }
    assert adapter.get_size("foo/bar.jpg") == adapter.get_metadata("foo/bar.jpg")
    assert adapter.get_mimetype("foo/bar.jpg") == adapter.get_metadata("foo/bar.jpg")
    assert adapter.get_timestamp("foo/bar.jpg") == adapter.get_metadata("foo/bar.jpg")


def test_get_metadata_of_directory_strips_file_fields(adapter) -> None:
    adapter.create_dir("foo", {"timestamp": 7})

    metadata = adapter.get_metadata("foo")

    assert metadata["type"] == "dir"
    assert metadata["timestamp"] == 7
    assert "size" not in metadata
    assert "mimetype" not in metadata


def test_get_metadata_missing_returns_none(adapter) -> None:
    assert adapter.get_metadata("missing") is None


@pytest.mark.parametrize(
    ("path", "mimetype"),
    [("foo/bar.jpg", "image/jpeg"), ("foo/bar.png", "image/png"), ("foo/bar.mp3", "audio/mpeg")],
)
def test_mimetype_is_inferred_from_extension(adapter, path: str, mimetype: str) -> None:
    adapter.write(path, b"abc")

    assert adapter.get_mimetype(path)["mimetype"] == mimetype


def test_visibility_is_not_supported(adapter) -> None:
    adapter.write("foo.txt", b"abc")

    with pytest.raises(UnsupportedOperationError):
        adapter.get_visibility("foo.txt")
    with pytest.raises(UnsupportedOperationError):
        adapter.set_visibility("foo.txt", "public")


def test_adapter_works_on_caller_connection(engine) -> None:
    with engine.connect() as connection:
        transaction = connection.begin()
        adapter = TableFilesystemAdapter(connection, "files")
        adapter.write("foo.txt", b"abc")
        assert adapter.has("foo.txt") is True
        transaction.rollback()

        assert adapter.has("foo.txt") is False


def test_adapter_commits_on_bare_connection(engine) -> None:
    with engine.connect() as connection:
        TableFilesystemAdapter(connection, "files").write("foo.txt", b"abc")

    with engine.connect() as connection:
        count = connection.execute(text("SELECT COUNT(*) FROM files")).scalar_one()
    assert count == 1


def test_delete_dir_leaves_differently_cased_sibling(adapter) -> None:
    adapter.create_dir("Docs")
    adapter.write("Docs/old.txt", b"old")
    adapter.write("docs/keep.txt", b"precious")

    assert adapter.delete_dir("Docs") is True

    assert adapter.has("Docs") is False
    assert adapter.has("Docs/old.txt") is False
    assert adapter.read("docs/keep.txt")["contents"] == b"precious"


def test_rename_leaves_differently_cased_sibling(adapter) -> None:
    adapter.create_dir("Docs")
    adapter.write("Docs/old.txt", b"old")
    adapter.write("docs/keep.txt", b"precious")

    assert adapter.rename("Docs", "moved") is True

    assert adapter.read("moved/old.txt")["contents"] == b"old"
    assert adapter.read("docs/keep.txt")["contents"] == b"precious"
    assert adapter.has("moved/keep.txt") is False


def test_read_stream_is_spooled_copy(adapter) -> None:
    adapter.write("foo.txt", b"abc")

    stream = adapter.read_stream("foo.txt")["stream"]
    adapter.update("foo.txt", b"changed")

    assert isinstance(stream, tempfile.SpooledTemporaryFile)
    assert stream.read() == b"abc"
