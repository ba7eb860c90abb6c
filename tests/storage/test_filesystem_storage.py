"""Tests for FileSystemStorage and the storage factory."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from miniblog.config import StorageSectionConfig
from miniblog.posts.models import Post
from miniblog.posts.xmlformat import load_post
from miniblog.storage import create_storage
from miniblog.storage.filesystem import FileSystemStorage
from miniblog.storage.s3 import S3Storage


def _make_post(post_id: str = "my-post") -> Post:
    return Post(
        id=post_id,
        title="My Post",
        pub_date=datetime(2024, 1, 1, tzinfo=UTC),
        last_modified=datetime(2000, 1, 1, tzinfo=UTC),
    )


class TestFileSystemStorage:
    def test_creates_folder(self, tmp_path: Path):
        folder = tmp_path / "nested" / "posts"
        FileSystemStorage(folder)
        assert folder.is_dir()

    def test_save_writes_id_named_file(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        locator = storage.save(_make_post())

        assert locator == str(tmp_path / "my-post.xml")
        loaded = load_post(storage.read_post_source(locator), storage.post_id_for(locator))
        assert loaded.id == "my-post"
        assert loaded.title == "My Post"

    def test_save_stamps_last_modified(self, tmp_path: Path):
        post = _make_post()
        FileSystemStorage(tmp_path).save(post)
        assert post.last_modified.year > 2000

    def test_save_overwrites(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        post = _make_post()
        storage.save(post)
        post.title = "Second"
        storage.save(post)

        assert len(storage.list_post_sources()) == 1
        assert "Second" in (tmp_path / "my-post.xml").read_text(encoding="utf-8")

    def test_lists_only_top_level_xml(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        storage.save(_make_post("a"))
        storage.save(_make_post("b"))
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        storage.save_asset(b"<x/>", "feed.xml", "1")

        names = sorted(Path(p).name for p in storage.list_post_sources())
        assert names == ["a.xml", "b.xml"]

    def test_delete_removes_file(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        post = _make_post()
        storage.save(post)
        storage.delete(post)
        assert not (tmp_path / "my-post.xml").exists()

    def test_delete_missing_is_not_an_error(self, tmp_path: Path):
        FileSystemStorage(tmp_path).delete(_make_post("never-saved"))

    def test_save_asset_with_suffix(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        address = storage.save_asset(b"data", "photo.png", "abc")

        assert address == "/posts/files/photo_abc.png"
        assert (tmp_path / "files" / "photo_abc.png").read_bytes() == b"data"

    def test_save_asset_without_suffix_never_collides(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        first = storage.save_asset(b"1", "photo.png")
        second = storage.save_asset(b"2", "photo.png")

        assert first != second
        assert first.startswith("/posts/files/photo_")
        assert first.endswith(".png")

    def test_save_asset_refuses_to_overwrite(self, tmp_path: Path):
        storage = FileSystemStorage(tmp_path)
        storage.save_asset(b"1", "photo.png", "same")
        with pytest.raises(FileExistsError):
            storage.save_asset(b"2", "photo.png", "same")

    def test_asset_name_ignores_directories(self):
        assert FileSystemStorage.asset_name("C:\\Users\\me\\pic.jpg", "7") == "pic_7.jpg"
        assert FileSystemStorage.asset_name("README", "7") == "README_7"


class TestCreateStorage:
    def test_file_backend(self, tmp_path: Path):
        storage = create_storage(StorageSectionConfig(backend="file", directory=str(tmp_path)))
        assert isinstance(storage, FileSystemStorage)
        assert storage.folder == tmp_path

    def test_s3_backend(self, monkeypatch):
        monkeypatch.setattr("miniblog.storage.s3.make_s3_client", lambda endpoint_url=None: object())
        storage = create_storage(
            StorageSectionConfig(backend="s3", bucket="blog", endpoint_url="http://minio:9000")
        )
        assert isinstance(storage, S3Storage)
        assert storage.endpoint_url == "http://minio:9000"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage(StorageSectionConfig(backend="ftp"))
