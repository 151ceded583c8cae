from typing import Optional

from .models import Trace


class PageDocError(RuntimeError):
    def __init__(self, message: str, *, trace: Optional[Trace] = None) -> None:
        super().__init__(message)
        self.trace = trace


class ExtractionError(PageDocError):
    pass


class InvalidApiResponseError(ExtractionError):
    """A JSON API payload is missing the fields its extractor requires."""


class IngestionError(PageDocError):
    pass


class RenderUnavailableError(PageDocError):
    """Browser rendering is not offered in this deployment or failed to start."""


class ExtractionTimeoutError(PageDocError):
    pass
