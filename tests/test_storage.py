from pathlib import Path

import pytest

from datamapper.storage import FileStore, NotFoundError, StorageError, UploadedFile, utcnow


@pytest.fixture
def store(tmp_path: Path) -> FileStore:
    return FileStore(tmp_path / "uploads", tmp_path / "results")


def test_store_creates_directory_and_prefixes_name(store: FileStore) -> None:
    assert not store.upload_dir.exists()
    record = store.store("template", "invoice.txt", b"Total: {{total}}")
    assert isinstance(record, UploadedFile)
    assert store.upload_dir.is_dir()
    prefix, _, rest = record.generated_name.partition("-")
    assert prefix.isdigit()
    assert rest == "invoice.txt"
    assert record.stored_path == store.upload_dir / record.generated_name
    assert record.stored_path.read_bytes() == b"Total: {{total}}"
    assert record.to_dict() == {
        "filename": record.generated_name,
        "originalName": "invoice.txt",
        "path": str(record.stored_path),
    }


def test_same_original_name_in_quick_succession_never_collides(store: FileStore) -> None:
    first = store.store("template", "same.txt", b"a")
    second = store.store("data", "same.txt", b"b")
    assert first.generated_name != second.generated_name
    assert first.stored_path.read_bytes() == b"a"
    assert second.stored_path.read_bytes() == b"b"


def test_store_failure_raises_storage_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    store = FileStore(blocker, tmp_path / "results")
    with pytest.raises(StorageError):
        store.store("template", "x.txt", b"x")


def test_read_returns_text(store: FileStore, tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_text("name,city\nAlice,Paris\n", encoding="utf-8")
    assert store.read(path) == "name,city\nAlice,Paris\n"
    assert store.read(str(path)) == "name,city\nAlice,Paris\n"


def test_read_missing_file_names_the_path(store: FileStore, tmp_path: Path) -> None:
    missing = tmp_path / "missing.txt"
    with pytest.raises(NotFoundError) as excinfo:
        store.read(missing)
    assert str(missing) in str(excinfo.value)


def test_read_undecodable_file_is_storage_error(store: FileStore, tmp_path: Path) -> None:
    path = tmp_path / "binary.bin"
    path.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(StorageError) as excinfo:
        store.read(path)
    assert not isinstance(excinfo.value, NotFoundError)


def test_save_overwrites_and_preserves_content(store: FileStore) -> None:
    store.save("out.txt", "first")
    path = store.save("out.txt", "line one\r\nline two\n")
    assert path == store.results_dir / "out.txt"
    assert path.read_bytes() == "line one\r\nline two\n".encode("utf-8")


def test_locate(store: FileStore) -> None:
    store.save("found.txt", "here")
    assert store.locate("found.txt") == store.results_dir / "found.txt"
    with pytest.raises(NotFoundError):
        store.locate("absent.txt")


def test_utcnow_format() -> None:
    stamp = utcnow()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2024-01-01T00:00:00.000Z")
