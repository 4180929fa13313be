import json
from pathlib import Path

import pytest

from jamaid.graph_model import GraphEdge, GraphNode, PageGraph

FIXTURES = Path(__file__).parent / 'fixtures'


def load_fixture(name: str):
    with open(FIXTURES / name, 'r', encoding='utf-8') as f:
        return json.load(f)


def shape(node_id, text=None, shape_type='RECTANGLE', x=None, y=None, **extra):
    node = {'id': node_id, 'type': 'SHAPE_WITH_TEXT', 'shapeType': shape_type}
    if text is not None:
        node['children'] = [{'id': f'{node_id}:t', 'type': 'TEXT', 'characters': text}]
    if x is not None and y is not None:
        node['absoluteBoundingBox'] = {'x': x, 'y': y, 'width': 100, 'height': 50}
    node.update(extra)
    return node


def connector(edge_id, start, end, start_cap=None, end_cap=None, label=None):
    node = {
        'id': edge_id,
        'type': 'CONNECTOR',
        'connectorStart': {'endpointNodeId': start},
        'connectorEnd': {'endpointNodeId': end},
    }
    if start_cap:
        node['connectorStartStrokeCap'] = start_cap
    if end_cap:
        node['connectorEndStrokeCap'] = end_cap
    if label:
        node['children'] = [{'id': f'{edge_id}:t', 'type': 'TEXT', 'characters': label}]
    return node


def tree_file(*children, name='Board'):
    """A one-canvas Figma file tree holding *children*."""
    return {
        'name': name,
        'document': {
            'id': '0:0',
            'type': 'DOCUMENT',
            'children': [
                {'id': '1:1', 'type': 'CANVAS', 'name': 'Page 1', 'children': list(children)},
            ],
        },
    }


def make_page(node_count, edges, sections=None):
    """PageGraph with nodes n0..n{count-1} and (source, target) edge pairs."""
    return PageGraph(
        page_id='p1',
        page_name='Page',
        nodes=[GraphNode(source_id=f'n{i}', label=f'Node {i}') for i in range(node_count)],
        edges=[GraphEdge(source_id=s, target_id=t) for s, t in edges],
        sections=sections or [],
    )


@pytest.fixture
def flow_tree():
    return load_fixture('figma_flow.json')


@pytest.fixture
def flow_pages():
    return load_fixture('page_flow_parity.json')


@pytest.fixture
def flow_xml():
    return (FIXTURES / 'flow_canvas.xml').read_text(encoding='utf-8')


FLOW_MERMAID = "\n".join([
    'flowchart LR',
    '  %% Note: Check inputs',
    '  subgraph s1["Intake"]',
    '    n1(Start)',
    '    n2{Valid?}',
    '  end',
    '  n3[Process]',
    '  n4[(Store)]',
    '  n1 --> n2',
    '  n2 -->|yes| n3',
    '  n3 --- n4',
    '  n1 --> n4',
])
