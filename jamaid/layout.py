"""
Layout preset heuristic.

Picks a Mermaid layout preset from graph topology and maps it to the
configuration object handed to the external renderer. Rules are checked
in a fixed order and the first match wins.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from jamaid.graph_model import PageGraph

LAYOUT_PRESETS = ('auto', 'default', 'compact', 'elk', 'organic', 'tree')


@dataclass(frozen=True)
class TopologyMetrics:
    node_count: int
    edge_count: int
    edge_density: float
    max_out_degree: int
    is_tree_shaped: bool
    section_count: int


def topology_metrics(page: PageGraph) -> TopologyMetrics:
    node_count = len(page.nodes)
    edge_count = len(page.edges)

    out_degree: Dict[str, int] = {n.source_id: 0 for n in page.nodes}
    in_degree: Dict[str, int] = {n.source_id: 0 for n in page.nodes}
    for edge in page.edges:
        out_degree[edge.source_id] = out_degree.get(edge.source_id, 0) + 1
        if edge.target_id in in_degree:
            in_degree[edge.target_id] += 1

    return TopologyMetrics(
        node_count=node_count,
        edge_count=edge_count,
        edge_density=edge_count / max(node_count, 1),
        max_out_degree=max(out_degree.values(), default=0),
        is_tree_shaped=all(count <= 1 for count in in_degree.values()),
        section_count=len(page.sections),
    )


def detect_layout(page: PageGraph) -> str:
    m = topology_metrics(page)

    if m.node_count < 10 and m.edge_density < 1.5:
        return 'default'
    if m.is_tree_shaped:
        return 'tree'
    if m.edge_density >= 2.0 or m.max_out_degree >= 5:
        return 'organic'
    if m.section_count >= 3:
        return 'elk'
    if m.node_count >= 30:
        return 'compact'
    return 'default'


def resolve_layout(preset: str, page: PageGraph) -> str:
    """Run detection for 'auto'; any pinned preset passes through."""
    if preset == 'auto':
        return detect_layout(page)
    return preset


def layout_to_mermaid_config(preset: str) -> Optional[Dict[str, Any]]:
    """Renderer configuration for *preset*, or None for no override."""
    if preset == 'compact':
        return {'flowchart': {'nodeSpacing': 30, 'rankSpacing': 30, 'curve': 'basis'}}
    if preset == 'elk':
        return {'flowchart': {'defaultRenderer': 'elk'}}
    if preset == 'organic':
        return {
            'flowchart': {'defaultRenderer': 'elk'},
            'elk': {'mergeEdges': True, 'nodePlacementStrategy': 'SIMPLE'},
        }
    if preset == 'tree':
        return {
            'flowchart': {'defaultRenderer': 'elk'},
            'elk': {'algorithm': 'mrtree', 'mergeEdges': True},
        }
    return None
