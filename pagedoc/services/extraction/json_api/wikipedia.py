"""Wikipedia REST page summaries (``/api/rest_v1/page/summary/<title>``)."""

from typing import Any, List, Optional

from ..constants import CONFIDENCE_GOVERNED
from ..errors import InvalidApiResponseError
from ..models import ContentBlock, ImageBlock, PageMeta, RawDocument, TextBlock
from .base import as_dict, json_metadata, strip_markup

SOURCE = "Wikipedia"


class WikipediaJsonExtractor:

    @classmethod
    def extract(cls, data: Any, url: Optional[str] = None) -> RawDocument:
        if not isinstance(data, dict) or not (data.get("title") or data.get("extract")):
            raise InvalidApiResponseError(f"Invalid {SOURCE} response: missing 'title' and 'extract'")

        content: List[ContentBlock] = []
        if data.get("extract"):
            content.append(TextBlock(text=data["extract"]))
        thumbnail = as_dict(data.get("thumbnail")).get("source")
        if thumbnail:
            content.append(ImageBlock(src=thumbnail, alt="Article thumbnail"))

        title = strip_markup(data.get("displaytitle")) or data.get("title") or "Wikipedia Article"
        page_url = as_dict(as_dict(data.get("content_urls")).get("desktop")).get("page")
        return RawDocument(
            title=title,
            url=url or page_url,
            meta=PageMeta(
                site="wikipedia.org",
                published=data.get("timestamp"),
                pack="wikipedia.org (JSON)",
                confidence=CONFIDENCE_GOVERNED,
            ),
            kind="article",
            content=content,
            metadata=json_metadata("wikipedia-rest-api"),
        )
