"""Exception types shared across miniblog."""

from __future__ import annotations


class MiniblogError(Exception):
    """Base class for errors raised by miniblog itself."""


class PostParseError(MiniblogError):
    """A persisted post document could not be turned into a Post."""

    def __init__(self, post_id: str, reason: str) -> None:
        super().__init__(f"Cannot parse post {post_id!r}: {reason}")
        self.post_id = post_id
        self.reason = reason


class PostFormatError(MiniblogError):
    """A post holds text that cannot be written to its XML document."""

    def __init__(self, post_id: str, reason: str) -> None:
        super().__init__(f"Cannot store post {post_id!r}: {reason}")
        self.post_id = post_id
        self.reason = reason
