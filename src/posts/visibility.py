"""Who gets to see a post."""

from __future__ import annotations

from datetime import datetime

from miniblog.posts.models import Post


def is_visible(post: Post, admin: bool, now: datetime) -> bool:
    """A post is visible once its publish date has passed, and only to
    admins while it is still a draft."""
    return post.pub_date <= now and (post.is_published or admin)
