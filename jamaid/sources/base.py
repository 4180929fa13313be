"""
Source adapter contract shared by every ingestion path.

A source turns a caller request into an IngestedDocument, which is one of
two tagged variants depending on the wire shape it carried:

- TreeIngested: a validated Figma file tree
- StructuredIngested: a validated page-list document
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from jamaid.wire_shapes import PageListDocument, TreeFile

FORMAT_HINTS = ('tree', 'structured', 'auto')


@dataclass(frozen=True)
class SourceRequest:
    input: str
    token: str = ""
    format: Optional[str] = None


@dataclass(frozen=True)
class TreeIngested:
    file_key: str
    file: TreeFile
    source_kind: str = 'tree'


@dataclass(frozen=True)
class StructuredIngested:
    file_key: str
    document: PageListDocument
    source_kind: str = 'structured'


IngestedDocument = Union[TreeIngested, StructuredIngested]


class DiagramSource(ABC):
    """One way of obtaining a diagram document."""

    kind: str = ''

    @abstractmethod
    async def ingest(self, request: SourceRequest) -> IngestedDocument:
        """Fetch and validate a document, or raise a JamaidError."""
        raise NotImplementedError
