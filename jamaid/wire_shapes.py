"""
Wire shapes accepted by the ingestion layer, as strict pydantic models.

- Tree document: the Figma REST ``GET /v1/files/<key>`` response. Only the
  fields the tree parser reads are modelled; everything else is ignored.
- Page-list document: ``{fileName?, pages: [{pageId, pageName, diagram}]}``
  as returned by the structured endpoint (JSON, or XML transcoded to the
  same shape). Its records mirror the canonical model field for field.

Keys are camelCase on the wire and snake_case in Python. Strict mode means
no coercion: ``"1"`` is not a number and ``true`` is not a coordinate.
Strictness is declared per field so nested records still validate from
plain dicts.
"""

from typing import Annotated, List, Literal, Optional

from pydantic import AllowInfNan, BaseModel, ConfigDict, Strict, StrictStr
from pydantic.alias_generators import to_camel

from jamaid.graph_model import GraphEdge, GraphNode, PageGraph, Section, StickyNote

EdgeKind = Literal['arrow', 'line', 'bidirectional']

# Ints pass, bools, numeric strings and inf/nan do not
Number = Annotated[float, Strict(), AllowInfNan(False)]


class WireModel(BaseModel):
    model_config = ConfigDict(
        extra='ignore',
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ──────────────────────────────────────────────────────────────────
# Tree document
# ──────────────────────────────────────────────────────────────────

class Endpoint(WireModel):
    endpoint_node_id: Optional[StrictStr] = None


class BoundingBox(WireModel):
    x: Number
    y: Number
    width: Number
    height: Number


class TreeNode(WireModel):
    id: StrictStr
    type: StrictStr
    name: Optional[StrictStr] = None
    characters: Optional[StrictStr] = None
    shape_type: Optional[StrictStr] = None
    connector_start: Optional[Endpoint] = None
    connector_end: Optional[Endpoint] = None
    connector_start_stroke_cap: Optional[StrictStr] = None
    connector_end_stroke_cap: Optional[StrictStr] = None
    absolute_bounding_box: Optional[BoundingBox] = None
    children: Optional[List['TreeNode']] = None


TreeNode.model_rebuild()


class TreeFile(WireModel):
    document: TreeNode
    name: Optional[StrictStr] = None


# ──────────────────────────────────────────────────────────────────
# Page-list document
# ──────────────────────────────────────────────────────────────────

class NodeRecord(WireModel):
    source_id: StrictStr
    label: StrictStr
    shape_type: Optional[StrictStr] = None
    x: Optional[Number] = None
    y: Optional[Number] = None
    section_id: Optional[StrictStr] = None


class EdgeRecord(WireModel):
    source_id: StrictStr
    target_id: StrictStr
    label: Optional[StrictStr] = None
    kind: EdgeKind


class SectionRecord(WireModel):
    source_id: StrictStr
    label: StrictStr
    node_ids: List[StrictStr]


class StickyRecord(WireModel):
    source_id: StrictStr
    text: StrictStr


class DiagramRecord(WireModel):
    nodes: List[NodeRecord]
    edges: List[EdgeRecord]
    sections: List[SectionRecord]
    sticky_notes: List[StickyRecord]


class PageRecord(WireModel):
    page_id: StrictStr
    page_name: StrictStr
    diagram: DiagramRecord

    def to_page_graph(self) -> PageGraph:
        """Copy this record into the canonical model (no pruning)."""
        d = self.diagram
        return PageGraph(
            page_id=self.page_id,
            page_name=self.page_name,
            nodes=[GraphNode(**n.model_dump()) for n in d.nodes],
            edges=[GraphEdge(**e.model_dump()) for e in d.edges],
            sections=[Section(**s.model_dump()) for s in d.sections],
            sticky_notes=[StickyNote(**s.model_dump()) for s in d.sticky_notes],
        )


class PageListDocument(WireModel):
    pages: List[PageRecord]
    file_name: Optional[StrictStr] = None
