"""
XML to page-list transcoder.

The structured endpoint can answer with an XML dialect of the page-list
document::

    <canvas id="1:1" name="Flow">
      <shape-with-text id="A" name="RECTANGLE" x="0" y="0">Start</shape-with-text>
      <connector id="c1" connectorStart="A" connectorEnd="B"
                 connectorStartCap="NONE" connectorEndCap="ARROW_LINES">yes</connector>
      <sticky id="s1">Remember this</sticky>
      <section id="sec" name="Group"><section-node>A</section-node></section>
    </canvas>

Each ``canvas`` becomes one page. The output is a plain dict in the JSON
page-list shape so it goes through the same validator as JSON bodies.
"""

import math
import re
from typing import Any, Dict, List, Optional
from xml.etree import ElementTree as ET

from jamaid.errors import PayloadValidationError
from jamaid.tree_parser import resolve_connector

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>', re.IGNORECASE)
_WRAPPER_TAG = 'jamaid-xml'


# ──────────────────────────────────────────────────────────────────
# Element helpers
# ──────────────────────────────────────────────────────────────────

def _text(elem: ET.Element) -> str:
    return ' '.join(''.join(elem.itertext()).split())


def _own_text(elem: ET.Element) -> str:
    """Text of *elem* without nested element text (sections nest ids)."""
    return ' '.join((elem.text or '').split())


def _parse_num(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        n = float(value)
    except ValueError:
        return None
    return n if math.isfinite(n) else None


def parse_xml_root(xml_text: str) -> ET.Element:
    """Parse *xml_text*, allowing several top-level ``canvas`` elements."""
    body = _XML_DECLARATION.sub('', xml_text.strip(), count=1)
    try:
        return ET.fromstring(f'<{_WRAPPER_TAG}>{body}</{_WRAPPER_TAG}>')
    except ET.ParseError as exc:
        raise PayloadValidationError(f"Malformed XML: {exc}") from exc


def find_canvases(root: ET.Element) -> List[ET.Element]:
    canvases = root.findall('canvas')
    if canvases:
        return canvases
    # A single document element wrapping the canvases
    children = list(root)
    if len(children) == 1:
        return children[0].findall('canvas')
    return []


# ──────────────────────────────────────────────────────────────────
# Record conversion
# ──────────────────────────────────────────────────────────────────

def _to_node(elem: ET.Element) -> Optional[Dict[str, Any]]:
    source_id = elem.get('id')
    if not source_id:
        return None
    name = elem.get('name') or None
    record: Dict[str, Any] = {
        'sourceId': source_id,
        'label': _text(elem) or name or source_id,
    }
    if name:
        record['shapeType'] = name
    x = _parse_num(elem.get('x'))
    y = _parse_num(elem.get('y'))
    if x is not None:
        record['x'] = x
    if y is not None:
        record['y'] = y
    return record


def _to_edge(elem: ET.Element) -> Optional[Dict[str, Any]]:
    start_id = elem.get('connectorStart')
    end_id = elem.get('connectorEnd')
    if not start_id or not end_id:
        return None
    source_id, target_id, kind = resolve_connector(
        start_id, end_id,
        elem.get('connectorStartCap'), elem.get('connectorEndCap'),
    )
    record: Dict[str, Any] = {'sourceId': source_id, 'targetId': target_id, 'kind': kind}
    label = _text(elem)
    if label:
        record['label'] = label
    return record


def _to_sticky(elem: ET.Element) -> Optional[Dict[str, Any]]:
    source_id = elem.get('id')
    text = _text(elem)
    if not source_id or not text:
        return None
    return {'sourceId': source_id, 'text': text}


def _to_sections(canvas: ET.Element) -> List[Dict[str, Any]]:
    sections: List[Dict[str, Any]] = []
    for elem in canvas.findall('section'):
        source_id = elem.get('id')
        if not source_id:
            continue
        node_ids = [_own_text(n) for n in elem.findall('section-node')]
        sections.append({
            'sourceId': source_id,
            'label': (elem.get('name') or '').strip() or f"Section {len(sections) + 1}",
            'nodeIds': [nid for nid in node_ids if nid],
        })
    return sections


def _collect(canvas: ET.Element, tag: str, convert) -> List[Dict[str, Any]]:
    records = (convert(elem) for elem in canvas.findall(tag))
    return [r for r in records if r is not None]


# ──────────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────────

def xml_to_page_list(xml_text: str) -> Dict[str, Any]:
    """Transcode the XML dialect into a page-list dict (one page per canvas)."""
    canvases = find_canvases(parse_xml_root(xml_text))
    if not canvases:
        raise PayloadValidationError("XML payload has no <canvas> element.")

    pages = []
    for index, canvas in enumerate(canvases):
        pages.append({
            'pageId': canvas.get('id') or f"canvas-{index + 1}",
            'pageName': canvas.get('name') or f"Canvas {index + 1}",
            'diagram': {
                'nodes': _collect(canvas, 'shape-with-text', _to_node),
                'edges': _collect(canvas, 'connector', _to_edge),
                'sections': _to_sections(canvas),
                'stickyNotes': _collect(canvas, 'sticky', _to_sticky),
            },
        })

    file_name = pages[0]['pageName'] if len(pages) == 1 else f"FigJam ({len(pages)} canvases)"
    return {'fileName': file_name, 'pages': pages}
