"""Local filesystem storage: one XML file per post in a single folder."""

from __future__ import annotations

import logging
from pathlib import Path

from miniblog.posts.models import Post
from miniblog.posts.xmlformat import dump_post
from miniblog.storage.base import POST_SUFFIX, StorageBackend

logger = logging.getLogger(__name__)

ASSETS_DIRNAME = "files"


class FileSystemStorage(StorageBackend):
    """Posts at ``<folder>/<id>.xml``, uploads at ``<folder>/files/``.

    Asset addresses are site-relative (``/posts/files/<name>``), assuming
    the folder is served under ``/posts``.
    """

    def __init__(self, folder: Path, url_prefix: str = "/posts") -> None:
        self.folder = Path(folder)
        self.url_prefix = url_prefix.rstrip("/")
        self.folder.mkdir(parents=True, exist_ok=True)

    def _path(self, post: Post) -> Path:
        return self.folder / self.document_name(post)

    def list_post_sources(self) -> list[str]:
        return [str(p) for p in self.folder.glob(f"*{POST_SUFFIX}") if p.is_file()]

    def read_post_source(self, locator: str) -> str:
        return Path(locator).read_text(encoding="utf-8")

    def save(self, post: Post) -> str:
        path = self._path(post)
        self.touch(post)
        path.write_text(dump_post(post), encoding="utf-8")
        logger.debug("Wrote %s", path)
        return str(path)

    def delete(self, post: Post) -> None:
        path = self._path(post)
        path.unlink(missing_ok=True)
        logger.debug("Removed %s", path)

    def save_asset(self, data: bytes, file_name: str, suffix: str | None = None) -> str:
        name = self.asset_name(file_name, suffix)
        target = self.folder / ASSETS_DIRNAME / name
        target.parent.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to overwrite an existing upload
        with open(target, "xb") as f:
            f.write(data)
        return f"{self.url_prefix}/{ASSETS_DIRNAME}/{name}"
