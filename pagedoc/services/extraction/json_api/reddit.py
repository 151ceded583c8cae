"""Reddit ``.json`` listings: ``[post_listing, comment_listing]`` or one listing."""

from typing import Any, List, Optional

from ..constants import CONFIDENCE_GOVERNED
from ..errors import InvalidApiResponseError
from ..models import ContentBlock, LinkBlock, PageMeta, RawDocument, TextBlock, ThreadItemBlock
from .base import as_dict, epoch_to_iso, json_metadata, require

SOURCE = "Reddit"


def _listing_children(listing: Any) -> List[Any]:
    children = require(require(listing, "data", SOURCE), "children", SOURCE)
    if not isinstance(children, list):
        raise InvalidApiResponseError(f"Invalid {SOURCE} response: 'children' is not a list")
    return children


class RedditJsonExtractor:

    @classmethod
    def extract(cls, data: Any, url: Optional[str] = None) -> RawDocument:
        if isinstance(data, list):
            if not data:
                raise InvalidApiResponseError(f"Invalid {SOURCE} response: empty listing array")
            post_listing = data[0]
            comments = _listing_children(data[1]) if len(data) > 1 else []
        else:
            post_listing = data
            comments = []

        posts = _listing_children(post_listing)
        if not posts:
            raise InvalidApiResponseError(f"Invalid {SOURCE} response: listing has no post")
        post = require(posts[0], "data", SOURCE)

        content: List[ContentBlock] = []
        selftext = post.get("selftext")
        post_url = post.get("url") or ""
        if selftext:
            content.append(TextBlock(text=selftext))
        elif post_url and "reddit.com" not in post_url:
            content.append(LinkBlock(text="Link to content", url=post_url))
        content.extend(cls.extract_comments(comments))

        return RawDocument(
            title=post.get("title") or "Reddit Post",
            url=url or post_url or None,
            meta=PageMeta(
                author=post.get("author"),
                site="reddit.com",
                published=epoch_to_iso(post.get("created_utc")),
                pack="reddit.com (JSON)",
                confidence=CONFIDENCE_GOVERNED,
            ),
            kind="thread",
            content=content,
            metadata=json_metadata("json-api"),
        )

    @classmethod
    def extract_comments(cls, children: List[Any]) -> List[ThreadItemBlock]:
        blocks: List[ThreadItemBlock] = []
        for child in children:
            if not isinstance(child, dict) or child.get("kind") != "t1":
                continue  # "more" stubs
            comment = as_dict(child.get("data"))
            body = comment.get("body")
            replies = as_dict(as_dict(comment.get("replies")).get("data")).get("children") or []
            blocks.append(ThreadItemBlock(
                depth=int(comment.get("depth") or 0),
                author=comment.get("author"),
                content=[TextBlock(text=body)] if body else [],
                children=list(cls.extract_comments(replies)),
            ))
        return blocks
