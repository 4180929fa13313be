"""Interchangeable diagram sources behind one ``ingest`` contract."""

from jamaid.sources.base import (
    DiagramSource, IngestedDocument, SourceRequest, StructuredIngested, TreeIngested,
)
from jamaid.sources.figma_api import FigmaTreeSource, extract_file_key
from jamaid.sources.local import FileSource, StdinSource
from jamaid.sources.select import create_source, create_sources_for_mode, source_mode_order
from jamaid.sources.structured_endpoint import StructuredEndpointSource

__all__ = [
    "DiagramSource",
    "IngestedDocument",
    "SourceRequest",
    "StructuredIngested",
    "TreeIngested",
    "FigmaTreeSource",
    "StructuredEndpointSource",
    "FileSource",
    "StdinSource",
    "extract_file_key",
    "create_source",
    "create_sources_for_mode",
    "source_mode_order",
]
