"""Extraction API routes."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from pagedoc.services.coordinator import Coordinator, CoordinatorOptions
from pagedoc.services.extraction.errors import (
    ExtractionTimeoutError,
    IngestionError,
    InvalidApiResponseError,
    PageDocError,
)

router = APIRouter()

USAGE = "Usage: ?url=<target_url>"


def get_coordinator(request: Request) -> Coordinator:
    return request.app.state.coordinator


@router.get("/extract")
async def extract(
    request: Request,
    url: Optional[str] = Query(default=None),
    mode: str = Query(default="auto", pattern="^(auto|thread|article)$"),
    rendered: bool = Query(default=False),
    max_depth: Optional[int] = Query(default=None, ge=0),
    max_length: Optional[int] = Query(default=None, ge=1),
) -> Dict[str, Any]:
    if not url:
        raise HTTPException(status_code=400, detail=USAGE)

    coordinator = get_coordinator(request)
    options = CoordinatorOptions(
        rendered=rendered,
        mode=mode,
        max_depth=max_depth,
        max_length=max_length,
    )
    try:
        result = await coordinator.run(url, options)
    except InvalidApiResponseError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except ExtractionTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc))
    except IngestionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except PageDocError as exc:
        raise HTTPException(status_code=500, detail=f"Error: {exc}")
    return result.doc.to_dict()
