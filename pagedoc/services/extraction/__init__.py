"""Extraction pipeline: markup or API JSON in, PageDoc out."""

from .models import (
    CodeBlock,
    ContentBlock,
    HeadingBlock,
    ImageBlock,
    IngestionPayload,
    LinkBlock,
    LinkRef,
    ListBlock,
    PageDoc,
    PageMeta,
    QuoteBlock,
    RawDocument,
    TextBlock,
    ThreadItemBlock,
    Trace,
    TraceStep,
)
from .errors import (
    ExtractionError,
    ExtractionTimeoutError,
    IngestionError,
    InvalidApiResponseError,
    PageDocError,
    RenderUnavailableError,
)
from .selectors import matches
from .metadata import HuntedMetadata, MetadataHunter
from .structural import StructuralExtractor
from .generic_thread import GenericThreadDetector
from .tree import rebuild_thread_tree
from .readability import ReadableArticle, extract_article
from .finalizer import DocumentFinalizer
from .pipeline import ExtractionPipeline, PipelineOptions

__all__ = [
    # Main entry points
    "ExtractionPipeline",
    "PipelineOptions",

    # Components
    "matches",
    "MetadataHunter",
    "StructuralExtractor",
    "GenericThreadDetector",
    "rebuild_thread_tree",
    "extract_article",
    "DocumentFinalizer",

    # Data models
    "HeadingBlock",
    "TextBlock",
    "CodeBlock",
    "QuoteBlock",
    "ListBlock",
    "LinkBlock",
    "ImageBlock",
    "ThreadItemBlock",
    "ContentBlock",
    "LinkRef",
    "PageMeta",
    "PageDoc",
    "RawDocument",
    "IngestionPayload",
    "Trace",
    "TraceStep",
    "HuntedMetadata",
    "ReadableArticle",

    # Errors
    "PageDocError",
    "ExtractionError",
    "InvalidApiResponseError",
    "IngestionError",
    "RenderUnavailableError",
    "ExtractionTimeoutError",
]
