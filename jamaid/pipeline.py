"""
Ingestion orchestrator and end-to-end pipeline.

ingest -> normalize -> layout -> render. Sources for a mode are tried
strictly in order; the only recovered failure is a fallback-eligible error
from the structured source in ``auto`` mode.
"""

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from jamaid.config import StructuredEndpointConfig
from jamaid.errors import (
    EndpointResponseError, EndpointTimeoutError, JamaidError,
    NetworkError, SourceUnavailableError,
)
from jamaid.graph_model import DiagramDocument, PageGraph
from jamaid.layout import layout_to_mermaid_config, resolve_layout
from jamaid.mermaid import to_mermaid
from jamaid.normalizer import normalize_document
from jamaid.sources.base import DiagramSource, IngestedDocument, SourceRequest
from jamaid.sources.select import create_sources_for_mode


@dataclass
class IngestResult:
    selected_source: str
    fallback_used: bool
    ingested: IngestedDocument


@dataclass
class RenderedPage:
    page_id: str
    page_name: str
    graph: PageGraph
    layout: str
    mermaid_config: Optional[Dict[str, Any]]
    mermaid: str


@dataclass
class PipelineResult:
    requested_source: str
    selected_source: str
    fallback_used: bool
    file_key: str
    file_name: Optional[str] = None
    document: Optional[DiagramDocument] = None
    pages: List[RenderedPage] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────────
# Fallback classification
# ──────────────────────────────────────────────────────────────────

def is_fallback_eligible(error: BaseException) -> bool:
    """True when a structured-source failure may fall back to the next source."""
    if isinstance(error, (SourceUnavailableError, NetworkError, EndpointTimeoutError)):
        return True
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, EndpointResponseError):
        return 500 <= error.status_code < 600
    return False


# ──────────────────────────────────────────────────────────────────
# Stages
# ──────────────────────────────────────────────────────────────────

async def ingest_diagram(request: SourceRequest, mode: str,
                         sources: Optional[Sequence[DiagramSource]] = None,
                         structured_config: Optional[StructuredEndpointConfig] = None) -> IngestResult:
    """Try the sources for *mode* in order and return the first success."""
    candidates = list(sources) if sources is not None else create_sources_for_mode(mode, structured_config)
    last_error: Optional[BaseException] = None

    for index, source in enumerate(candidates):
        try:
            ingested = await source.ingest(request)
        except Exception as exc:
            if mode == 'auto' and source.kind == 'structured' and is_fallback_eligible(exc):
                print(f"[ingest] {source.kind} source failed ({exc}); trying next source", file=sys.stderr)
                last_error = exc
                continue
            raise
        return IngestResult(
            selected_source=source.kind,
            fallback_used=mode == 'auto' and index > 0,
            ingested=ingested,
        )

    if last_error is not None:
        raise last_error
    raise JamaidError("No source is available for ingestion.")


def render_pages(document: DiagramDocument, direction: Optional[str] = None,
                 layout: str = 'auto') -> List[RenderedPage]:
    rendered = []
    for page in document.pages:
        preset = resolve_layout(layout, page)
        rendered.append(RenderedPage(
            page_id=page.page_id,
            page_name=page.page_name,
            graph=page,
            layout=preset,
            mermaid_config=layout_to_mermaid_config(preset),
            mermaid=to_mermaid(page, direction),
        ))
    return rendered


async def run_pipeline(request: SourceRequest, mode: str,
                       direction: Optional[str] = None,
                       layout: str = 'auto',
                       sources: Optional[Sequence[DiagramSource]] = None,
                       structured_config: Optional[StructuredEndpointConfig] = None) -> PipelineResult:
    ingested = await ingest_diagram(request, mode, sources, structured_config)
    document = normalize_document(ingested.ingested)

    return PipelineResult(
        requested_source=mode,
        selected_source=ingested.selected_source,
        fallback_used=ingested.fallback_used,
        file_key=document.file_key,
        file_name=document.file_name,
        document=document,
        pages=render_pages(document, direction, layout),
    )
