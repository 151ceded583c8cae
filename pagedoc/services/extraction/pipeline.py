"""One extraction pass: ingestion payload in, finalized PageDoc and trace out."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
from urllib.parse import urlparse

from selectolax.parser import HTMLParser

from pagedoc.config import Settings, get_settings

from .constants import (
    CONFIDENCE_GOVERNED,
    CONFIDENCE_HEURISTIC,
    CONFIDENCE_LOW_SIGNAL,
    LOW_SIGNAL_BLOCK_COUNT,
    LOW_SIGNAL_WARNING,
)
from .finalizer import DocumentFinalizer
from .json_api import find_json_extractor
from .metadata import MetadataHunter, fallback_title
from .models import ContentBlock, IngestionPayload, PageDoc, PageMeta, RawDocument, ThreadItemBlock, Trace
from .readability import article_blocks, extract_article
from .structural import StructuralExtractor
from ..patterns.registry import PatternPack


logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    force_readability: bool = False
    max_depth: Optional[int] = None
    max_length: Optional[int] = None
    generic_threads: bool = True


def _looks_like_json(payload: IngestionPayload, text: str) -> bool:
    if payload.mime_type and "application/json" in payload.mime_type:
        return True
    stripped = text.lstrip()
    return stripped.startswith("{") or stripped.startswith("[")


def _hostname(identifier: str) -> Optional[str]:
    try:
        return urlparse(identifier).hostname or None
    except ValueError:
        return None


class ExtractionPipeline:
    """
    Single-use extraction pass.

    Each instance owns its own trace; the coordinator creates a fresh
    pipeline for every attempt.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.trace = Trace()
        self.hunter = MetadataHunter()

    def process(
        self,
        payload: IngestionPayload,
        pack: Optional[PatternPack] = None,
        options: Optional[PipelineOptions] = None,
    ) -> Tuple[PageDoc, Trace]:
        options = options or PipelineOptions()
        started = time.monotonic()
        finalizer = DocumentFinalizer(
            max_depth=options.max_depth if options.max_depth is not None else self.settings.max_depth,
            max_length=options.max_length if options.max_length is not None else self.settings.max_length,
        )
        text = payload.text

        if _looks_like_json(payload, text):
            raw = self._from_json(payload, text)
            if raw is not None:
                doc = finalizer.finalize(raw, infer=False)
                return self._stamp(doc, started), self.trace

        raw = self._from_html(payload, text, pack, options)
        doc = finalizer.finalize(raw)
        return self._stamp(doc, started), self.trace

    def _stamp(self, doc: PageDoc, started: float) -> PageDoc:
        self.trace.duration_ms = int((time.monotonic() - started) * 1000)
        doc.metadata["durationMs"] = self.trace.duration_ms
        return doc

    def _from_json(self, payload: IngestionPayload, text: str) -> Optional[RawDocument]:
        try:
            data: Any = json.loads(text)
        except ValueError as exc:
            self.trace.add_step("Parsing", "JSON Failure", f"Attempted JSON parsing but failed: {exc}")
            logger.debug("Payload from %s is not valid JSON: %s", payload.identifier, exc)
            return None

        found = find_json_extractor(payload.identifier)
        if found is None:
            self.trace.add_step("Parsing", "JSON Unrecognized", "No JSON API extractor for this source")
            return None

        name, extract = found
        # InvalidApiResponseError propagates to the caller.
        raw = extract(data, payload.identifier if payload.source == "url" else None)
        self.trace.add_step("Extraction", f"{name} JSON API", "Extracted structured data from API endpoint")
        self.trace.signals["strategy"] = "json-api"
        raw.metadata.update(self.trace.signals)
        return raw

    def _from_html(
        self,
        payload: IngestionPayload,
        text: str,
        pack: Optional[PatternPack],
        options: PipelineOptions,
    ) -> RawDocument:
        tree = HTMLParser(text)
        if pack is not None:
            self.trace.add_step("Pattern Match", pack.domain, "Using domain-specific pattern pack")
        self.trace.add_step("Parsing", "Success (selectolax)", f"Parsed {len(text)} characters of HTML")

        hunted = self.hunter.hunt(tree.root)
        if hunted.headline:
            self.trace.add_step(
                "Metadata Extraction",
                hunted.headline,
                f"Extracted via metadata hunter ({hunted.source})",
            )
        title = hunted.headline or fallback_title(tree.root)

        content: List[ContentBlock]
        if options.force_readability:
            self.trace.add_step("Extraction", "Readability", "Forced readability mode via options")
            article = extract_article(text)
            content = article_blocks(article)
            if article is not None and article.title:
                title = article.title
        else:
            extractor = StructuralExtractor(
                pack=pack,
                trace=self.trace,
                hunter=self.hunter,
                generic_threads=options.generic_threads,
                thin_threshold=self.settings.thin_content_threshold,
            )
            content = extractor.extract(tree)
            has_thread = any(isinstance(b, ThreadItemBlock) for b in content)
            if len(content) < self.settings.thin_content_threshold and not has_thread:
                self.trace.add_step(
                    "Heuristic Fallback",
                    "Readability",
                    "Low content signal; attempting readability extraction",
                )
                article = extract_article(text)
                readable = article_blocks(article)
                if len(readable) > len(content):
                    content = readable
                    if article.title:
                        title = article.title
                    self.trace.add_step(
                        "Readability Result",
                        "Success",
                        f"Extracted {len(content)} blocks via readability",
                    )

        confidence = CONFIDENCE_GOVERNED
        warnings: List[str] = []
        if pack is None:
            confidence = CONFIDENCE_HEURISTIC
            if len(content) < LOW_SIGNAL_BLOCK_COUNT:
                confidence = CONFIDENCE_LOW_SIGNAL
                warnings.append(LOW_SIGNAL_WARNING)

        is_url = payload.source == "url"
        metadata = {"source": payload.source, "mimeType": payload.mime_type}
        metadata.update(self.trace.signals)
        return RawDocument(
            title=title,
            url=payload.identifier if is_url else None,
            meta=PageMeta(
                author=hunted.author,
                site=hunted.site or (_hostname(payload.identifier) if is_url else None),
                published=hunted.date,
                pack=pack.domain if pack is not None else None,
                json_ld=hunted.source == "json-ld",
                confidence=confidence,
                warnings=warnings,
            ),
            content=content,
            metadata=metadata,
        )

