"""Posts domain — models, XML format, visibility rules and the cached service."""

from miniblog.posts.models import Comment, Post, create_slug
from miniblog.posts.service import BlogService
from miniblog.posts.visibility import is_visible
from miniblog.posts.xmlformat import dump_post, load_post

__all__ = [
    "BlogService",
    "Comment",
    "Post",
    "create_slug",
    "dump_post",
    "is_visible",
    "load_post",
]
