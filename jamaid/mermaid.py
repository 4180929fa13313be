"""
Canonical page graph -> Mermaid flowchart text.

Rendering is a single deterministic pass: the same PageGraph always
produces byte-identical output.
"""

import re
from typing import Dict, List, Optional, Set

from jamaid.graph_model import GraphEdge, GraphNode, PageGraph

DIRECTIONS = ('TD', 'LR', 'TB', 'BT', 'RL')
DEFAULT_DIRECTION = 'TD'

# Shape type -> (open, close) bracket pair; anything else is a rectangle
SHAPE_BRACKETS = {
    'ROUNDED_RECTANGLE':   ('(', ')'),
    'DIAMOND':             ('{', '}'),
    'SQUARE':              ('[', ']'),
    'RECTANGLE':           ('[', ']'),
    'ELLIPSE':             ('([', '])'),
    'PARALLELOGRAM_RIGHT': ('[/', '/]'),
    'PARALLELOGRAM_LEFT':  ('[\\', '\\]'),
    'ENG_DATABASE':        ('[(', ')]'),
    'HEXAGON':             ('{{', '}}'),
    'TRAPEZOID':           ('[/', '\\]'),
    'DOCUMENT_SINGLE':     ('>', ']'),
}

EDGE_OPERATORS = {
    'arrow': '-->',
    'line': '---',
    'bidirectional': '<-->',
}


# ──────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────

def sanitize_text(value: str) -> str:
    """Make user text safe inside Mermaid labels, titles and comments."""
    value = re.sub(r'\s+', ' ', value)
    value = re.sub(r'["`]', "'", value)
    value = value.replace('|', '/')
    value = re.sub(r'[\[\]{}]', '', value)
    return value.strip()


def detect_direction(nodes: List[GraphNode]) -> str:
    """LR when positioned nodes spread at least as wide as tall, else TD."""
    positioned = [n for n in nodes if n.x is not None and n.y is not None]
    if len(positioned) < 2:
        return DEFAULT_DIRECTION
    xs = [n.x for n in positioned]
    ys = [n.y for n in positioned]
    x_spread = max(xs) - min(xs)
    y_spread = max(ys) - min(ys)
    return 'LR' if x_spread >= y_spread else 'TD'


def _format_node(mermaid_id: str, node: GraphNode) -> str:
    label = sanitize_text(node.label) or sanitize_text(node.source_id) or mermaid_id
    open_, close = SHAPE_BRACKETS.get(node.shape_type or '', ('[', ']'))
    return f"{mermaid_id}{open_}{label}{close}"


def _format_edge(source: str, target: str, edge: GraphEdge) -> str:
    op = EDGE_OPERATORS.get(edge.kind, '-->')
    label = sanitize_text(edge.label) if edge.label else ''
    if label:
        return f"  {source} {op}|{label}| {target}"
    return f"  {source} {op} {target}"


def mermaid_block(code: str) -> str:
    """Wrap Mermaid source in a Markdown code fence."""
    return "```mermaid\n" + code.rstrip() + "\n```\n"


# ──────────────────────────────────────────────────────────────────
# Flowchart generation
# ──────────────────────────────────────────────────────────────────

def to_mermaid(page: PageGraph, direction: Optional[str] = None) -> str:
    """Render *page* as a Mermaid flowchart (no trailing newline)."""
    lines: List[str] = [f"flowchart {direction or detect_direction(page.nodes)}"]

    id_map: Dict[str, str] = {}
    nodes_by_id: Dict[str, GraphNode] = {}
    for node in page.nodes:
        if node.source_id not in id_map:
            id_map[node.source_id] = f"n{len(id_map) + 1}"
            nodes_by_id[node.source_id] = node

    for sticky in page.sticky_notes:
        text = sanitize_text(sticky.text)
        if text:
            lines.append(f"  %% Note: {text}")

    rendered: Set[str] = set()
    for index, section in enumerate(page.sections):
        members = [
            nodes_by_id[nid] for nid in dict.fromkeys(section.node_ids)
            if nid in nodes_by_id and nid not in rendered
        ]
        if not members:
            continue
        title = sanitize_text(section.label) or f"Section {index + 1}"
        lines.append(f'  subgraph s{index + 1}["{title}"]')
        for node in members:
            lines.append(f"    {_format_node(id_map[node.source_id], node)}")
            rendered.add(node.source_id)
        lines.append("  end")

    for source_id, node in nodes_by_id.items():
        if source_id not in rendered:
            lines.append(f"  {_format_node(id_map[source_id], node)}")

    for edge in page.edges:
        source = id_map.get(edge.source_id)
        target = id_map.get(edge.target_id)
        if source and target:
            lines.append(_format_edge(source, target, edge))

    return "\n".join(lines)
