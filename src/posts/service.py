"""In-memory post cache in front of a storage backend.

``BlogService`` loads every post once at construction and answers all
reads from memory.  Writes go to the backend first; the cache is only
touched after the backend call returns, so a failed write leaves it as
it was.  Storage is never re-read after startup.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from miniblog.errors import PostParseError
from miniblog.posts.models import Post
from miniblog.posts.visibility import is_visible
from miniblog.posts.xmlformat import check_post_text, load_post
from miniblog.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def _anonymous() -> bool:
    return False


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class BlogService:
    """Read/write facade over the post catalog.

    Args:
        storage: Durable backend holding the post documents.
        is_admin: Returns whether the current caller is an administrator.
            Consulted by every read that does not pass ``admin=`` itself.
        clock: Returns the current UTC time for the visibility filter.

    Every cache access, mutation and sort happens under one re-entrant
    lock.  Reads return fresh lists; the posts inside are the cached
    instances.
    """

    def __init__(
        self,
        storage: StorageBackend,
        is_admin: Callable[[], bool] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.storage = storage
        self._is_admin = is_admin or _anonymous
        self._clock = clock or _utcnow
        self._lock = threading.RLock()
        self._cache: list[Post] = []
        self.load_errors: dict[str, str] = {}
        self._load()

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> None:
        locators = self.storage.list_post_sources()
        posts: list[Post] = []
        errors: dict[str, str] = {}
        for locator in locators:
            post_id = self.storage.post_id_for(locator)
            try:
                post = load_post(self.storage.read_post_source(locator), post_id)
            except (PostParseError, OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping post %s: %s", locator, exc)
                errors[locator] = str(exc)
                continue
            logger.debug("Loaded post %s", post_id)
            posts.append(post)

        with self._lock:
            self._cache = posts
            self.load_errors = errors
            self._sort()
        logger.info("Loaded %d post(s), skipped %d", len(posts), len(errors))

    def _sort(self) -> None:
        # list.sort is stable, so posts sharing a pub_date keep insertion order
        self._cache.sort(key=lambda p: p.pub_date, reverse=True)

    def _index_of(self, post_id: str) -> int | None:
        wanted = post_id.lower()
        for i, cached in enumerate(self._cache):
            if cached.id.lower() == wanted:
                return i
        return None

    def _visible(self, admin: bool | None) -> list[Post]:
        if admin is None:
            admin = self._is_admin()
        now = self._clock()
        with self._lock:
            return [p for p in self._cache if is_visible(p, admin, now)]

    # ── Read operations ──────────────────────────────────────────

    def get_posts(self, count: int, skip: int = 0, *, admin: bool | None = None) -> list[Post]:
        """Visible posts, newest first, paged by skip/count."""
        if count <= 0:
            return []
        skip = max(skip, 0)
        return self._visible(admin)[skip : skip + count]

    def get_posts_by_category(self, category: str, *, admin: bool | None = None) -> list[Post]:
        """Visible posts tagged with ``category`` (case-insensitive)."""
        wanted = category.lower()
        return [
            p for p in self._visible(admin) if any(c.lower() == wanted for c in p.categories)
        ]

    def get_post_by_slug(self, slug: str, *, admin: bool | None = None) -> Post | None:
        """First visible post with this slug, or None."""
        wanted = slug.lower()
        for post in self._visible(admin):
            if post.slug.lower() == wanted:
                return post
        return None

    def get_post_by_id(self, post_id: str, *, admin: bool | None = None) -> Post | None:
        """Visible post with this id, or None."""
        wanted = post_id.lower()
        for post in self._visible(admin):
            if post.id.lower() == wanted:
                return post
        return None

    def get_categories(self, *, admin: bool | None = None) -> set[str]:
        """Distinct lower-cased categories across visible posts."""
        return {c.lower() for p in self._visible(admin) for c in p.categories}

    # ── Write operations ─────────────────────────────────────────

    def save_post(self, post: Post) -> None:
        """Persist a post, then insert or replace it in the cache.

        The backend stamps ``post.last_modified``.  Backend errors
        propagate and leave the cache untouched, as does
        ``PostFormatError`` for text the XML document cannot hold, which
        is raised before the backend is called.
        """
        check_post_text(post)
        with self._lock:
            self.storage.save(post)
            index = self._index_of(post.id)
            if index is None:
                self._cache.append(post)
            else:
                self._cache[index] = post
            self._sort()
        logger.info("Saved post %s", post.id)

    def delete_post(self, post: Post) -> None:
        """Remove a post from storage and from the cache.

        Deleting a post that is already gone is a no-op.
        """
        with self._lock:
            self.storage.delete(post)
            index = self._index_of(post.id)
            if index is not None:
                del self._cache[index]
        logger.info("Deleted post %s", post.id)

    def save_asset(self, data: bytes, file_name: str, suffix: str | None = None) -> str:
        """Store an uploaded file and return its address."""
        return self.storage.save_asset(data, file_name, suffix)
