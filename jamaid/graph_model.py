"""
Canonical Graph Model — source-agnostic representation of a flow diagram

Shared schema produced by every ingestion path (Figma REST tree documents,
page-list payloads from the structured endpoint, local files, stdin) and
consumed by the layout heuristic and the Mermaid renderer.

The model is the primary artifact — Mermaid text is a derived rendering.
"""

import json
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

GRAPH_SCHEMA_VERSION = "1.0.0"


# ──────────────────────────────────────────────────────────────────
# Dataclasses
# ──────────────────────────────────────────────────────────────────

@dataclass
class GraphNode:
    source_id: str
    label: str
    shape_type: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    section_id: Optional[str] = None


@dataclass
class GraphEdge:
    source_id: str
    target_id: str
    label: Optional[str] = None
    kind: str = "arrow"


@dataclass
class Section:
    source_id: str
    label: str
    node_ids: List[str] = field(default_factory=list)


@dataclass
class StickyNote:
    source_id: str
    text: str


@dataclass
class PageGraph:
    page_id: str
    page_name: str
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    sticky_notes: List[StickyNote] = field(default_factory=list)


@dataclass
class DiagramDocument:
    source_kind: str
    file_key: str
    file_name: Optional[str] = None
    pages: List[PageGraph] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────────
# Graph helpers
# ──────────────────────────────────────────────────────────────────

def prune_page(page: PageGraph) -> PageGraph:
    """Apply the semantic drops every ingestion path shares.

    Duplicate node ids keep the last record at the first position, blank
    labels become ``Node <id>``, edges need both endpoints in the node set,
    sections need at least one resolved member and sticky notes need text.
    Returns a new page.
    """
    nodes_by_id: Dict[str, GraphNode] = {}
    for node in page.nodes:
        if not node.label.strip():
            node = replace(node, label=f"Node {node.source_id}")
        nodes_by_id[node.source_id] = node

    edges = [
        e for e in page.edges
        if e.source_id in nodes_by_id and e.target_id in nodes_by_id
    ]

    sections: List[Section] = []
    for section in page.sections:
        member_ids = [nid for nid in dict.fromkeys(section.node_ids) if nid in nodes_by_id]
        if member_ids:
            sections.append(Section(
                source_id=section.source_id,
                label=section.label,
                node_ids=member_ids,
            ))

    sticky_notes = [s for s in page.sticky_notes if s.text.strip()]

    return PageGraph(
        page_id=page.page_id,
        page_name=page.page_name,
        nodes=list(nodes_by_id.values()),
        edges=edges,
        sections=sections,
        sticky_notes=sticky_notes,
    )


# ──────────────────────────────────────────────────────────────────
# JSON Serialization
# ──────────────────────────────────────────────────────────────────

def to_json(document: DiagramDocument) -> dict:
    """Serialize a DiagramDocument to a JSON-compatible dict."""
    data = asdict(document)
    data['schema_version'] = GRAPH_SCHEMA_VERSION
    return data


def _pick(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f for f in cls.__dataclass_fields__}
    return {k: v for k, v in data.items() if k in names}


def page_from_json(data: dict) -> PageGraph:
    """Deserialize one page dict into a PageGraph."""
    return PageGraph(
        page_id=data['page_id'],
        page_name=data['page_name'],
        nodes=[GraphNode(**_pick(GraphNode, n)) for n in data.get('nodes', [])],
        edges=[GraphEdge(**_pick(GraphEdge, e)) for e in data.get('edges', [])],
        sections=[Section(**_pick(Section, s)) for s in data.get('sections', [])],
        sticky_notes=[StickyNote(**_pick(StickyNote, s)) for s in data.get('sticky_notes', [])],
    )


def from_json(data: dict) -> DiagramDocument:
    """Deserialize a dict (from JSON) into a DiagramDocument."""
    return DiagramDocument(
        source_kind=data.get('source_kind', 'structured'),
        file_key=data.get('file_key', ''),
        file_name=data.get('file_name'),
        pages=[page_from_json(p) for p in data.get('pages', [])],
    )


def save_document(document: DiagramDocument, path: str) -> None:
    """Write a DiagramDocument to a .json file."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(to_json(document), f, indent=2, default=str)
        f.write('\n')


def load_document(path: str) -> DiagramDocument:
    """Read a canonical graph .json file and return a DiagramDocument."""
    with open(path, 'r', encoding='utf-8') as f:
        return from_json(json.load(f))
