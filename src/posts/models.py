"""Post and comment models — pure Pydantic v2 data types.

A Post is the unit of storage: one XML document per post, named after
``Post.id``.  Comments live inside their post and have no storage of
their own.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import quote

from miniblog.shared.ticks import next_tick
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_RESERVED_URL_CHARS = re.compile(r"""[!#$%&'()*+,./:;<=>?@\[\]\\^_`{|}~"]""")
_DASHES = re.compile(r"-{2,}")


def create_slug(title: str) -> str:
    """Turn a title into a lowercase, URL-safe slug."""
    slug = title.strip().lower().replace(" ", "-")
    slug = unicodedata.normalize("NFKD", slug)
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = _RESERVED_URL_CHARS.sub("", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _now() -> datetime:
    return datetime.now(tz=UTC)


class Comment(BaseModel):
    """A reader (or admin) comment attached to a post."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    author: str = ""
    email: str = ""
    is_admin: bool = False
    content: str = ""
    pub_date: datetime = Field(default_factory=_now)

    @field_validator("pub_date")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def get_gravatar(self) -> str:
        digest = hashlib.md5(self.email.strip().lower().encode("utf-8")).hexdigest()  # noqa: S324
        return f"https://www.gravatar.com/avatar/{digest}?s=60&d=blank"


class Post(BaseModel):
    """A single blog entry.

    ``id`` doubles as the storage file stem and cannot be changed once the
    post exists.  When no id is given one is derived from the title plus a
    tick value, so two posts with the same title never share a file.
    ``slug`` is what public URLs use; it is created from the title when
    missing and is always lower case.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default="", frozen=True)
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    is_published: bool = True
    pub_date: datetime = Field(default_factory=_now)
    last_modified: datetime = Field(default_factory=_now)
    categories: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _derive_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        title = data.get("title") or ""
        if not data.get("id"):
            stem = create_slug(title)
            tick = next_tick()
            data["id"] = f"{stem}-{tick}" if stem else str(tick)
        if not data.get("slug"):
            data["slug"] = create_slug(title)
        return data

    @field_validator("slug")
    @classmethod
    def _lower_slug(cls, value: str) -> str:
        return value.lower()

    @field_validator("pub_date", "last_modified")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def get_link(self) -> str:
        """Site-relative permalink for this post."""
        return f"/blog/{self.slug}/"

    def get_encoded_link(self) -> str:
        return f"/blog/{quote(self.slug)}/"

    def are_comments_open(self, comments_close_after_days: int, now: datetime | None = None) -> bool:
        """Whether new comments are still accepted for this post."""
        now = now or _now()
        return self.pub_date + timedelta(days=comments_close_after_days) >= now
