"""Base class for durable post storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from miniblog.shared.ticks import next_tick

if TYPE_CHECKING:
    from miniblog.posts.models import Post

POST_SUFFIX = ".xml"


class StorageBackend(ABC):
    """Where post documents and uploaded assets live.

    Post documents are addressed by locators (a path or an object key);
    the cache layer only passes them back to ``read_post_source`` and
    ``post_id_for``.  I/O errors are never caught here.
    """

    @abstractmethod
    def list_post_sources(self) -> list[str]:
        """Return locators of every stored post document, in no particular order."""

    @abstractmethod
    def read_post_source(self, locator: str) -> str:
        """Return the raw XML text stored at a locator."""

    @abstractmethod
    def save(self, post: Post) -> str:
        """Write ``<id>.xml`` for a post, overwriting, and return its locator.

        Implementations must call ``touch`` before serializing.
        """

    @abstractmethod
    def delete(self, post: Post) -> None:
        """Remove ``<id>.xml`` for a post.  A missing document is not an error."""

    @abstractmethod
    def save_asset(self, data: bytes, file_name: str, suffix: str | None = None) -> str:
        """Store an uploaded file and return an address readers can resolve."""

    def post_id_for(self, locator: str) -> str:
        return PurePosixPath(locator.replace("\\", "/")).stem

    @staticmethod
    def document_name(post: Post) -> str:
        return f"{post.id}{POST_SUFFIX}"

    @staticmethod
    def touch(post: Post) -> None:
        post.last_modified = datetime.now(tz=UTC)

    @staticmethod
    def asset_name(file_name: str, suffix: str | None = None) -> str:
        """``photo.png`` -> ``photo_<suffix>.png``, with a fresh tick when no suffix is given."""
        if suffix is None:
            suffix = str(next_tick())
        path = PurePosixPath(file_name.replace("\\", "/"))
        return f"{path.stem}_{suffix}{path.suffix}"
