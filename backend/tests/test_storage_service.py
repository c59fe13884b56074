import re

import pytest

from printdesk.services.storage_service import LocalFileStorage, Upload, store_uploads
from printdesk.validation import DependencyFailure


class TestLocalFileStorage:
    def test_store_writes_file_and_returns_url(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path / "uploads"), url_prefix="/uploads/")

        url = storage.store(b"%PDF-1.4", "My Thesis.PDF")

        assert re.fullmatch(r"/uploads/\d{13}-\d+\.pdf", url)
        name = url.rsplit("/", 1)[1]
        assert (tmp_path / "uploads" / name).read_bytes() == b"%PDF-1.4"

    def test_original_path_is_not_trusted(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))
        url = storage.store(b"x", "../../etc/passwd")
        assert ".." not in url
        assert len(list(tmp_path.iterdir())) == 1

    def test_oversized_file_rejected(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path), max_bytes=4)
        with pytest.raises(DependencyFailure):
            storage.store(b"12345", "big.jpg")
        assert list(tmp_path.iterdir()) == []

    def test_io_error_becomes_dependency_failure(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        storage = LocalFileStorage(str(blocker))
        with pytest.raises(DependencyFailure):
            storage.store(b"data", "a.png")


class TestStoreUploads:
    def test_skips_empty_uploads(self, app, storage):
        urls = store_uploads([Upload(b"", "empty.txt"), Upload(b"a", "a.txt")])
        assert urls == ["/uploads/test-1-a.txt"]

    def test_no_uploads(self, app):
        assert store_uploads(None) == []
        assert store_uploads([]) == []

    def test_unexpected_adapter_error_is_wrapped(self, app):
        class Broken:
            def store(self, data, original_name):
                raise OSError("disk gone")

        with pytest.raises(DependencyFailure):
            store_uploads([Upload(b"a", "a.txt")], Broken())
