"""Ingestion mode -> ordered list of sources to try."""

from typing import Dict, List, Optional, Tuple

from jamaid.config import StructuredEndpointConfig
from jamaid.sources.base import DiagramSource
from jamaid.sources.figma_api import FigmaTreeSource
from jamaid.sources.local import FileSource, StdinSource
from jamaid.sources.structured_endpoint import StructuredEndpointSource

INGEST_MODES = ('tree', 'structured', 'auto', 'file', 'stdin')

SOURCE_MODE_ORDER: Dict[str, Tuple[str, ...]] = {
    'tree': ('tree',),
    'structured': ('structured',),
    'auto': ('structured', 'tree'),
    'file': ('file',),
    'stdin': ('stdin',),
}


def source_mode_order(mode: str) -> Tuple[str, ...]:
    if mode not in SOURCE_MODE_ORDER:
        raise ValueError(f"Unknown ingestion mode: {mode}")
    return SOURCE_MODE_ORDER[mode]


def create_source(kind: str, structured_config: Optional[StructuredEndpointConfig] = None) -> DiagramSource:
    if kind == 'tree':
        return FigmaTreeSource()
    if kind == 'structured':
        return StructuredEndpointSource(structured_config)
    if kind == 'file':
        return FileSource()
    if kind == 'stdin':
        return StdinSource()
    raise ValueError(f"Unknown source kind: {kind}")


def create_sources_for_mode(mode: str,
                            structured_config: Optional[StructuredEndpointConfig] = None) -> List[DiagramSource]:
    return [create_source(kind, structured_config) for kind in source_mode_order(mode)]
