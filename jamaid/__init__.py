"""FigJam flow diagrams to Mermaid.

Ingests a diagram from the Figma REST API, a structured page-list
endpoint, a local file or stdin, normalizes it to a canonical graph and
renders Mermaid flowchart text per page.
"""

from jamaid.graph_model import (
    DiagramDocument, GraphEdge, GraphNode, PageGraph, Section, StickyNote,
)
from jamaid.mermaid import to_mermaid
from jamaid.pipeline import ingest_diagram, is_fallback_eligible, run_pipeline

__version__ = "0.4.0"

__all__ = [
    "DiagramDocument",
    "GraphEdge",
    "GraphNode",
    "PageGraph",
    "Section",
    "StickyNote",
    "to_mermaid",
    "ingest_diagram",
    "is_fallback_eligible",
    "run_pipeline",
]
