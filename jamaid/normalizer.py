"""Ingested document (tree or page-list) -> canonical DiagramDocument."""

from jamaid.graph_model import DiagramDocument, prune_page
from jamaid.sources.base import IngestedDocument, StructuredIngested, TreeIngested
from jamaid.tree_parser import parse_tree_pages


def normalize_tree(ingested: TreeIngested) -> DiagramDocument:
    return DiagramDocument(
        source_kind='tree',
        file_key=ingested.file_key,
        file_name=ingested.file.name,
        pages=parse_tree_pages(ingested.file),
    )


def normalize_structured(ingested: StructuredIngested) -> DiagramDocument:
    return DiagramDocument(
        source_kind='structured',
        file_key=ingested.file_key,
        file_name=ingested.document.file_name,
        pages=[prune_page(page.to_page_graph()) for page in ingested.document.pages],
    )


def normalize_document(ingested: IngestedDocument) -> DiagramDocument:
    if isinstance(ingested, TreeIngested):
        return normalize_tree(ingested)
    if isinstance(ingested, StructuredIngested):
        return normalize_structured(ingested)
    raise TypeError(f"Unsupported ingested document: {type(ingested).__name__}")
