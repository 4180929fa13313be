"""
Tree-document to canonical graph parser.

Walks a validated Figma file tree and extracts:
- shape nodes (SHAPE_WITH_TEXT) with label, shape type and position
- connectors (CONNECTOR) resolved to directed/undirected edges
- sections (SECTION) whose membership comes from containment
- sticky notes (STICKY) kept as annotations

One page per CANVAS child of the document root.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from jamaid.graph_model import (
    GraphEdge, GraphNode, PageGraph, Section, StickyNote, prune_page,
)
from jamaid.wire_shapes import TreeFile, TreeNode

# Plugin API names first, then the REST API names for the same arrowheads.
ARROW_CAPS = frozenset({
    'ARROW_LINES', 'ARROW_EQUILATERAL',
    'LINE_ARROW', 'TRIANGLE_ARROW', 'TRIANGLE_FILLED',
})


# ──────────────────────────────────────────────────────────────────
# Text helpers
# ──────────────────────────────────────────────────────────────────

def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace runs and trim."""
    if not value:
        return ""
    return re.sub(r'\s+', ' ', value).strip()


def first_text(node: TreeNode) -> str:
    """Return the first non-empty text in a depth-first walk of *node*."""
    chars = clean_text(node.characters)
    if chars:
        return chars
    for child in node.children or []:
        chars = first_text(child)
        if chars:
            return chars
    return ""


# ──────────────────────────────────────────────────────────────────
# Connector direction / kind
# ──────────────────────────────────────────────────────────────────

def is_arrow_cap(stroke_cap: Optional[str]) -> bool:
    return bool(stroke_cap) and stroke_cap in ARROW_CAPS


def resolve_connector(
    start_id: str,
    end_id: str,
    start_cap: Optional[str],
    end_cap: Optional[str],
) -> Tuple[str, str, str]:
    """Return ``(source_id, target_id, kind)`` in visual flow order.

    Start/end follow draw order. An arrowhead only on the start cap means
    the flow runs end -> start, so the endpoints are swapped.
    """
    arrow_start = is_arrow_cap(start_cap)
    arrow_end = is_arrow_cap(end_cap)

    if arrow_start and arrow_end:
        return start_id, end_id, 'bidirectional'
    if arrow_start:
        return end_id, start_id, 'arrow'
    if arrow_end:
        return start_id, end_id, 'arrow'
    return start_id, end_id, 'line'


# ──────────────────────────────────────────────────────────────────
# Per-type extraction
# ──────────────────────────────────────────────────────────────────

def parse_shape_node(node: TreeNode, section_id: Optional[str]) -> GraphNode:
    label = first_text(node) or clean_text(node.name) or f"Node {clean_text(node.id) or 'unknown'}"
    box = node.absolute_bounding_box
    return GraphNode(
        source_id=node.id,
        label=label,
        shape_type=node.shape_type,
        x=box.x if box else None,
        y=box.y if box else None,
        section_id=section_id,
    )


def parse_connector_node(node: TreeNode) -> Optional[GraphEdge]:
    start_id = node.connector_start.endpoint_node_id if node.connector_start else None
    end_id = node.connector_end.endpoint_node_id if node.connector_end else None
    if not start_id or not end_id:
        return None

    source_id, target_id, kind = resolve_connector(
        start_id, end_id,
        node.connector_start_stroke_cap, node.connector_end_stroke_cap,
    )
    return GraphEdge(
        source_id=source_id,
        target_id=target_id,
        label=first_text(node) or None,
        kind=kind,
    )


def parse_sticky_node(node: TreeNode) -> Optional[StickyNote]:
    text = first_text(node) or clean_text(node.name)
    if not text:
        return None
    return StickyNote(source_id=node.id, text=text)


# ──────────────────────────────────────────────────────────────────
# Traversal
# ──────────────────────────────────────────────────────────────────

@dataclass
class _Extraction:
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)
    sections: Dict[str, Section] = field(default_factory=dict)
    sticky_notes: List[StickyNote] = field(default_factory=list)


def _visit(node: TreeNode, section_id: Optional[str], out: _Extraction) -> None:
    if node.type == 'SECTION':
        section_id = node.id
        out.sections[node.id] = Section(
            source_id=node.id,
            label=clean_text(node.name) or f"Section {len(out.sections) + 1}",
        )

    if node.type == 'SHAPE_WITH_TEXT':
        parsed = parse_shape_node(node, section_id)
        out.nodes[parsed.source_id] = parsed
        if section_id and section_id in out.sections:
            out.sections[section_id].node_ids.append(parsed.source_id)
    elif node.type == 'CONNECTOR':
        edge = parse_connector_node(node)
        if edge:
            out.edges.append(edge)
    elif node.type == 'STICKY':
        sticky = parse_sticky_node(node)
        if sticky:
            out.sticky_notes.append(sticky)

    for child in node.children or []:
        _visit(child, section_id, out)


def parse_page(root: TreeNode, page_id: str, page_name: str) -> PageGraph:
    """Extract one page from *root*; dangling edges are dropped afterwards."""
    out = _Extraction()
    _visit(root, None, out)
    return prune_page(PageGraph(
        page_id=page_id,
        page_name=page_name,
        nodes=list(out.nodes.values()),
        edges=out.edges,
        sections=list(out.sections.values()),
        sticky_notes=out.sticky_notes,
    ))


def parse_tree_pages(file: TreeFile) -> List[PageGraph]:
    """Return one PageGraph per CANVAS, or a single page for the whole root."""
    document = file.document
    canvases = [c for c in document.children or [] if c.type == 'CANVAS']

    if not canvases:
        return [parse_page(document, document.id, clean_text(document.name) or "Page 1")]

    return [
        parse_page(canvas, canvas.id, clean_text(canvas.name) or f"Page {index + 1}")
        for index, canvas in enumerate(canvases)
    ]
