"""MetaWeblog remote-publishing adapter.

Maps the MetaWeblog / Blogger XML-RPC verbs used by desktop editors
onto ``BlogService``.  Every verb checks credentials before it touches
the service and fails with ``MetaWeblogFault`` ("Unauthorized") when
they are wrong.  Authenticated calls see drafts, like an admin would.
"""

from __future__ import annotations

import base64
import logging
import xmlrpc.client
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from miniblog.errors import PostFormatError
from miniblog.posts.models import Post, create_slug
from miniblog.posts.service import BlogService

logger = logging.getLogger(__name__)

BAD_REQUEST = 400
UNAUTHORIZED = 401
NOT_FOUND = 404
NOT_IMPLEMENTED = 501

XMLRPC_DATE_FORMAT = "%Y%m%dT%H:%M:%S"


class MetaWeblogFault(xmlrpc.client.Fault):
    """Protocol-level fault returned to the remote client."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)


class MetaWeblogProvider:
    """MetaWeblog verbs over a BlogService.

    Args:
        service: The post catalog.
        verify_credentials: ``(username, password) -> bool``.
        blog_name: Name reported by ``blogger.getUsersBlogs``.
        base_url: Absolute site root used to build permalinks.
    """

    def __init__(
        self,
        service: BlogService,
        verify_credentials: Callable[[str, str], bool],
        *,
        blog_name: str = "Miniblog",
        base_url: str = "",
    ) -> None:
        self.service = service
        self.verify_credentials = verify_credentials
        self.blog_name = blog_name
        self.base_url = base_url.rstrip("/")

    def _validate_user(self, username: str, password: str) -> None:
        if not self.verify_credentials(username, password):
            logger.warning("Rejected MetaWeblog call for user %r", username)
            raise MetaWeblogFault(UNAUTHORIZED, "Unauthorized")

    def _save(self, post: Post) -> None:
        try:
            self.service.save_post(post)
        except PostFormatError as exc:
            raise MetaWeblogFault(BAD_REQUEST, exc.reason) from exc

    def _to_struct(self, post: Post) -> dict[str, Any]:
        return {
            "postid": post.id,
            "title": post.title,
            "wp_slug": post.slug,
            "permalink": self.base_url + post.get_encoded_link(),
            "dateCreated": post.pub_date,
            "description": post.content,
            "categories": list(post.categories),
        }

    # ── metaWeblog.* ─────────────────────────────────────────────

    def add_post(
        self, blog_id: str, username: str, password: str, post: dict[str, Any], publish: bool
    ) -> str:
        self._validate_user(username, password)

        title = post.get("title", "")
        fields: dict[str, Any] = {
            "title": title,
            "slug": post.get("wp_slug") or create_slug(title),
            "content": post.get("description", ""),
            "is_published": bool(publish),
            "categories": list(post.get("categories") or []),
        }
        created = _parse_date(post.get("dateCreated"))
        if created is not None:
            fields["pub_date"] = created

        new_post = Post(**fields)
        self._save(new_post)
        return new_post.id

    def edit_post(
        self, post_id: str, username: str, password: str, post: dict[str, Any], publish: bool
    ) -> bool:
        self._validate_user(username, password)

        existing = self.service.get_post_by_id(post_id, admin=True)
        if existing is None:
            return False

        # edit a copy so a failed save leaves the cached post alone
        updated = existing.model_copy(deep=True)
        updated.title = post.get("title", existing.title)
        updated.slug = (post.get("wp_slug") or create_slug(updated.title)).lower()
        updated.content = post.get("description", existing.content)
        updated.is_published = bool(publish)
        updated.categories = list(post.get("categories") or [])
        created = _parse_date(post.get("dateCreated"))
        if created is not None:
            updated.pub_date = created

        self._save(updated)
        return True

    def get_post(self, post_id: str, username: str, password: str) -> dict[str, Any]:
        self._validate_user(username, password)

        post = self.service.get_post_by_id(post_id, admin=True)
        if post is None:
            raise MetaWeblogFault(NOT_FOUND, f"Post {post_id} not found")
        return self._to_struct(post)

    def get_recent_posts(
        self, blog_id: str, username: str, password: str, number_of_posts: int
    ) -> list[dict[str, Any]]:
        self._validate_user(username, password)
        return [
            self._to_struct(p) for p in self.service.get_posts(int(number_of_posts), admin=True)
        ]

    def get_categories(self, blog_id: str, username: str, password: str) -> list[dict[str, str]]:
        self._validate_user(username, password)
        return [
            {
                "categoryid": category,
                "title": category,
                "description": category,
                "htmlUrl": f"{self.base_url}/blog/category/{category}/",
                "rssUrl": "",
            }
            for category in sorted(self.service.get_categories(admin=True))
        ]

    def new_media_object(
        self, blog_id: str, username: str, password: str, media_object: dict[str, Any]
    ) -> dict[str, str]:
        self._validate_user(username, password)

        address = self.service.save_asset(_decode_bits(media_object["bits"]), media_object["name"])
        if address.startswith("/"):
            address = self.base_url + address
        return {"url": address}

    # ── blogger.* / wp.* ─────────────────────────────────────────

    def delete_post(
        self, key: str, post_id: str, username: str, password: str, publish: bool = False
    ) -> bool:
        self._validate_user(username, password)

        post = self.service.get_post_by_id(post_id, admin=True)
        if post is None:
            return False
        self.service.delete_post(post)
        return True

    def get_users_blogs(self, key: str, username: str, password: str) -> list[dict[str, str]]:
        self._validate_user(username, password)
        return [{"blogid": "1", "blogName": self.blog_name, "url": self.base_url + "/"}]

    def get_user_info(self, key: str, username: str, password: str) -> dict[str, str]:
        self._validate_user(username, password)
        raise MetaWeblogFault(NOT_IMPLEMENTED, "Not implemented")

    def add_category(self, key: str, username: str, password: str, category: dict[str, Any]) -> int:
        self._validate_user(username, password)
        raise MetaWeblogFault(NOT_IMPLEMENTED, "Not implemented")


def register_metaweblog(dispatcher: Any, provider: MetaWeblogProvider) -> None:
    """Register the protocol method names on an XML-RPC dispatcher."""
    methods: dict[str, Callable[..., Any]] = {
        "metaWeblog.newPost": provider.add_post,
        "metaWeblog.editPost": provider.edit_post,
        "metaWeblog.getPost": provider.get_post,
        "metaWeblog.getRecentPosts": provider.get_recent_posts,
        "metaWeblog.getCategories": provider.get_categories,
        "metaWeblog.newMediaObject": provider.new_media_object,
        "blogger.deletePost": provider.delete_post,
        "blogger.getUsersBlogs": provider.get_users_blogs,
        "blogger.getUserInfo": provider.get_user_info,
        "wp.newCategory": provider.add_category,
    }
    for name, method in methods.items():
        dispatcher.register_function(method, name)


def _parse_date(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, xmlrpc.client.DateTime):
        value = value.value
    if isinstance(value, str):
        value = _parse_date_text(value)
    if value.year <= 1:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_date_text(text: str) -> datetime:
    """Parse the XML-RPC ``dateTime.iso8601`` form or an ISO 8601 variant."""
    text = text.strip()
    try:
        return datetime.strptime(text, XMLRPC_DATE_FORMAT)
    except ValueError:
        # dashed or Z-suffixed forms from some editors
        try:
            return datetime.fromisoformat(text)
        except ValueError as exc:
            raise MetaWeblogFault(BAD_REQUEST, f"Invalid dateCreated {text!r}") from exc


def _decode_bits(bits: Any) -> bytes:
    if isinstance(bits, xmlrpc.client.Binary):
        return bits.data
    if isinstance(bits, bytes):
        return bits
    return base64.b64decode(bits)