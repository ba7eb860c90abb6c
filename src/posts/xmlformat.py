"""XML document format for persisted posts.

One document per post::

    <post>
      <title/> <slug/> <pubDate/> <lastModified/>
      <excerpt/> <content/> <ispublished/>
      <categories><category/>...</categories>
      <comments>
        <comment id="..." isAdmin="true|false">
          <author/><email/><date/><content/>
        </comment>
      </comments>
    </post>

Loading is tolerant of missing optional elements but strict about the
text of the ones that are present: a bad date or boolean fails the
whole post with ``PostParseError``.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import UTC, datetime

from miniblog.errors import PostFormatError, PostParseError
from miniblog.posts.models import Comment, Post

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_COMMENT_DATE = "2000-01-01 00:00:00"

# characters outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def format_datetime(value: datetime) -> str:
    return value.astimezone(UTC).strftime(DATETIME_FORMAT)


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def check_post_text(post: Post) -> None:
    """Reject posts whose text XML 1.0 cannot represent.

    ElementTree writes control characters such as ``\\x0c`` unescaped,
    which produces a document that no parser will read back.

    Raises:
        PostFormatError: Naming the first offending field.
    """
    fields: list[tuple[str, str]] = [
        ("title", post.title),
        ("slug", post.slug),
        ("excerpt", post.excerpt),
        ("content", post.content),
    ]
    fields.extend(("category", category) for category in post.categories)
    for comment in post.comments:
        fields.extend(
            [
                ("comment id", comment.id),
                ("comment author", comment.author),
                ("comment email", comment.email),
                ("comment content", comment.content),
            ]
        )
    for name, value in fields:
        match = _INVALID_XML_CHARS.search(value)
        if match:
            raise PostFormatError(
                post.id, f"{name} contains character {match.group()!r} not allowed in XML"
            )


def dump_post(post: Post) -> str:
    """Serialize a post to its XML document text.

    Raises:
        PostFormatError: If any text field holds a character XML forbids.
    """
    check_post_text(post)
    root = ET.Element("post")
    ET.SubElement(root, "title").text = post.title
    ET.SubElement(root, "slug").text = post.slug
    ET.SubElement(root, "pubDate").text = format_datetime(post.pub_date)
    ET.SubElement(root, "lastModified").text = format_datetime(post.last_modified)
    ET.SubElement(root, "excerpt").text = post.excerpt
    ET.SubElement(root, "content").text = post.content
    ET.SubElement(root, "ispublished").text = _format_bool(post.is_published)

    categories = ET.SubElement(root, "categories")
    for category in post.categories:
        ET.SubElement(categories, "category").text = category

    comments = ET.SubElement(root, "comments")
    for comment in post.comments:
        node = ET.SubElement(
            comments,
            "comment",
            {"id": comment.id, "isAdmin": _format_bool(comment.is_admin)},
        )
        ET.SubElement(node, "author").text = comment.author
        ET.SubElement(node, "email").text = comment.email
        ET.SubElement(node, "date").text = format_datetime(comment.pub_date)
        ET.SubElement(node, "content").text = comment.content

    ET.indent(root)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'


def load_post(text: str | bytes, post_id: str) -> Post:
    """Parse an XML document into a Post with the given id.

    Raises:
        PostParseError: If the XML, a date or a boolean is malformed,
            or ``pubDate`` is missing.
    """
    try:
        root = ET.fromstring(text)  # noqa: S314
    except ET.ParseError as exc:
        raise PostParseError(post_id, f"invalid XML ({exc})") from exc

    pub_date_text = _read_value(root, "pubDate", None)
    if pub_date_text is None:
        raise PostParseError(post_id, "missing pubDate")

    last_modified_text = _read_value(root, "lastModified", None)
    return Post(
        id=post_id,
        title=_read_value(root, "title"),
        slug=_read_value(root, "slug").lower(),
        excerpt=_read_value(root, "excerpt"),
        content=_read_value(root, "content"),
        pub_date=_parse_datetime(pub_date_text, post_id),
        last_modified=(
            _parse_datetime(last_modified_text, post_id)
            if last_modified_text is not None
            else datetime.now(tz=UTC)
        ),
        is_published=_parse_bool(_read_value(root, "ispublished", "true"), post_id),
        categories=_load_categories(root),
        comments=_load_comments(root, post_id),
    )


def _load_categories(root: ET.Element) -> list[str]:
    container = root.find("categories")
    if container is None:
        return []
    return [node.text or "" for node in container.findall("category")]


def _load_comments(root: ET.Element, post_id: str) -> list[Comment]:
    container = root.find("comments")
    if container is None:
        return []
    return [
        Comment(
            id=node.get("id", ""),
            author=_read_value(node, "author"),
            email=_read_value(node, "email"),
            is_admin=_parse_bool(node.get("isAdmin", "false"), post_id),
            content=_read_value(node, "content"),
            pub_date=_parse_datetime(_read_value(node, "date", _DEFAULT_COMMENT_DATE), post_id),
        )
        for node in container.findall("comment")
    ]


def _read_value(parent: ET.Element, name: str, default: str | None = "") -> str | None:
    node = parent.find(name)
    if node is None:
        return default
    return node.text or ""


def _parse_datetime(text: str, post_id: str) -> datetime:
    value = text.strip()
    try:
        parsed = datetime.strptime(value, DATETIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as exc:
            raise PostParseError(post_id, f"invalid datetime {text!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _parse_bool(text: str, post_id: str) -> bool:
    value = text.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise PostParseError(post_id, f"invalid boolean {text!r}")
