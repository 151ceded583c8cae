"""Stack Exchange ``/questions/<id>?filter=withbody`` responses."""

from typing import Any, List, Optional

from ..constants import CONFIDENCE_GOVERNED
from ..errors import InvalidApiResponseError
from ..models import ContentBlock, PageMeta, RawDocument, TextBlock, ThreadItemBlock
from .base import as_dict, epoch_to_iso, json_metadata, require, strip_markup

SOURCE = "Stack Exchange"


class StackOverflowJsonExtractor:

    @classmethod
    def extract(cls, data: Any, url: Optional[str] = None) -> RawDocument:
        items = require(data, "items", SOURCE)
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            raise InvalidApiResponseError(f"Invalid {SOURCE} response: no question in 'items'")
        question = items[0]
        title = require(question, "title", SOURCE)

        content: List[ContentBlock] = []
        body = strip_markup(question.get("body"))
        if body:
            content.append(TextBlock(text=body))
        for answer in question.get("answers") or []:
            if not isinstance(answer, dict):
                continue
            answer_body = strip_markup(answer.get("body"))
            content.append(ThreadItemBlock(
                depth=0,
                author=as_dict(answer.get("owner")).get("display_name"),
                content=[TextBlock(text=answer_body)] if answer_body else [],
            ))

        return RawDocument(
            title=strip_markup(title) or title,
            url=url or question.get("link"),
            meta=PageMeta(
                author=as_dict(question.get("owner")).get("display_name"),
                site="stackoverflow.com",
                published=epoch_to_iso(question.get("creation_date")),
                pack="stackoverflow.com (JSON)",
                confidence=CONFIDENCE_GOVERNED,
            ),
            kind="thread",
            content=content,
            metadata=json_metadata("stack-exchange-api"),
        )
