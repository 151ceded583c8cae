"""Escalation policy around the extraction pipeline.

One invocation ingests the input, optionally renders it through the browser
up front, runs the pipeline, and re-runs it once against rendered markup when
the first pass comes back thin. Domains that only produce content after a
render are remembered in the domain state store.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Union

from pagedoc.config import Settings, get_settings

from .extraction.errors import ExtractionTimeoutError, PageDocError
from .extraction.models import IngestionPayload, PageDoc, Trace
from .extraction.pipeline import ExtractionPipeline, PipelineOptions
from .patterns.registry import PatternPack, PatternRegistry, domain_for_url, transform_url
from .retrieval.browser import BrowserAdapter, NoOpBrowserAdapter
from .retrieval.ingestor import Ingestor


logger = logging.getLogger(__name__)


@dataclass
class CoordinatorOptions:
    rendered: bool = False  # force a browser render before extraction
    mode: str = "auto"  # auto, thread, article
    json_output: bool = False  # caller wants the fastest answer; ignore learned rendering
    no_fallback: bool = False
    max_depth: Optional[int] = None
    max_length: Optional[int] = None
    timeout: Optional[float] = None  # seconds


@dataclass
class CoordinatorResult:
    doc: PageDoc
    trace: Trace
    payload: IngestionPayload


@dataclass
class BatchFailure:
    input: str
    error: Exception
    trace: Optional[Trace] = None


def _merge_trace(target: Trace, extra: Trace) -> None:
    target.steps.extend(extra.steps)
    target.signals.update(extra.signals)
    target.duration_ms += extra.duration_ms


class Coordinator:
    """
    Runs inputs through ingestion, extraction and the thin-content fallback.

    The registry (and its domain state store) is the only state shared
    between runs; every extraction attempt gets a fresh pipeline.
    """

    def __init__(
        self,
        registry: PatternRegistry,
        browser: Optional[BrowserAdapter] = None,
        ingestor: Optional[Ingestor] = None,
        settings: Optional[Settings] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.registry = registry
        self.settings = settings or get_settings()
        self.browser = browser if browser is not None else NoOpBrowserAdapter()
        self.ingestor = ingestor or Ingestor(self.settings)
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    async def run(self, source: str, options: Optional[CoordinatorOptions] = None) -> CoordinatorResult:
        """``process`` raced against the per-input timeout."""
        options = options or CoordinatorOptions()
        timeout = options.timeout if options.timeout is not None else self.settings.timeout_seconds
        trace = Trace()
        try:
            if timeout and timeout > 0:
                return await asyncio.wait_for(self.process(source, options, trace), timeout=timeout)
            return await self.process(source, options, trace)
        except asyncio.TimeoutError:
            trace.add_step("Timeout", "Abandoned", f"Exceeded {timeout}s budget")
            raise ExtractionTimeoutError(f"Timed out after {timeout}s processing {source}", trace=trace)
        except PageDocError as exc:
            if exc.trace is None:
                exc.trace = trace
            raise

    async def process(
        self,
        source: str,
        options: Optional[CoordinatorOptions] = None,
        trace: Optional[Trace] = None,
    ) -> CoordinatorResult:
        options = options or CoordinatorOptions()
        trace = trace if trace is not None else Trace()
        self._log(f"Ingesting: {source}")

        pack = self.registry.get_pack_for_url(source)
        target = source
        if pack is not None and source.startswith("http"):
            target = transform_url(pack, source)
            if target != source:
                trace.add_step("URL Transform", target, f"Rewritten by the {pack.domain} pack")
                self._log(f"Transformed URL: {source} -> {target}")

        payload = await self.ingestor.ingest(target)
        return await self.process_payload(payload, options, pack, trace)

    async def process_payload(
        self,
        payload: IngestionPayload,
        options: Optional[CoordinatorOptions] = None,
        pack: Optional[PatternPack] = None,
        trace: Optional[Trace] = None,
    ) -> CoordinatorResult:
        options = options or CoordinatorOptions()
        trace = trace if trace is not None else Trace()
        provider = "fetch"
        render_attempted = False
        domain = domain_for_url(payload.identifier) if payload.source == "url" else None

        if payload.source in ("url", "file"):
            state = self.registry.get_domain_state(payload.identifier) if domain else None
            learned = bool(state and state.needs_rendering) and not options.json_output
            if options.rendered or learned:
                policy = "Forced" if options.rendered else "Prior Knowledge"
                self._log(f"Rendering via browser (policy: {policy})")
                render_attempted = True
                html = await self._render(payload, trace, policy)
                if html is not None:
                    payload = replace(payload, raw_content=html.encode("utf-8"), mime_type="text/html")
                    provider = "playwright"

        doc = self._extract(payload, pack, options, trace)

        is_thin = len(doc.content) < self.settings.thin_content_threshold
        can_retry = (
            payload.source in ("url", "file")
            and not render_attempted
            and options.mode != "article"
            and not options.no_fallback
            and doc.metadata.get("strategy") != "json-api"
        )
        if is_thin and can_retry:
            self._log(f"Thin content detected ({len(doc.content)} blocks). Escalating to browser rendering")
            html = await self._render(payload, trace, "Thin content")
            if html is not None:
                payload = replace(payload, raw_content=html.encode("utf-8"), mime_type="text/html")
                provider = "playwright"
                doc = self._extract(payload, pack, options, trace)

                if domain and len(doc.content) >= self.settings.thin_content_threshold:
                    self.registry.save_domain_state(domain, {
                        "needsRendering": True,
                        "provider": "playwright",
                        "score": len(doc.content),
                    })
                    trace.add_step("Domain State", "needsRendering", f"Remembering that {domain} needs rendering")

        if domain:
            update = {"provider": provider}
            if pack is not None:
                update["packVersion"] = pack.pack_version
            self.registry.save_domain_state(domain, update)

        return CoordinatorResult(doc=doc, trace=trace, payload=payload)

    def _extract(
        self,
        payload: IngestionPayload,
        pack: Optional[PatternPack],
        options: CoordinatorOptions,
        trace: Trace,
    ) -> PageDoc:
        pipeline = ExtractionPipeline(self.settings)
        try:
            doc, pass_trace = pipeline.process(payload, pack, PipelineOptions(
                force_readability=options.mode == "article",
                max_depth=options.max_depth,
                max_length=options.max_length,
            ))
        except PageDocError as exc:
            _merge_trace(trace, pipeline.trace)
            exc.trace = trace
            raise
        _merge_trace(trace, pass_trace)
        return doc

    async def _render(self, payload: IngestionPayload, trace: Trace, reason: str) -> Optional[str]:
        try:
            html = await self.browser.render(payload.identifier)
        except Exception as exc:
            logger.warning("Browser render failed for %s: %s", payload.identifier, exc)
            trace.add_step("Rendering", "Fallback unavailable", str(exc))
            return None
        trace.add_step("Rendering", "Browser", f"{reason}: rendered {len(html)} characters")
        return html

    async def process_many(
        self,
        inputs: Iterable[str],
        options: Optional[CoordinatorOptions] = None,
    ) -> List[Union[CoordinatorResult, BatchFailure]]:
        """Back-to-back runs; a failing input is reported and the batch continues."""
        results: List[Union[CoordinatorResult, BatchFailure]] = []
        for item in inputs:
            try:
                results.append(await self.run(item, options))
            except PageDocError as exc:
                self._log(f"Failed: {item}: {exc}")
                results.append(BatchFailure(input=item, error=exc, trace=exc.trace))
        return results

    async def close(self) -> None:
        await self.browser.close()
