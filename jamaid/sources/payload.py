"""
Structural payload validation and format sniffing.

Two independent validators run the strict pydantic wire models in
jamaid.wire_shapes and fail on the first violation with a path-qualified
message:

- validate_tree_payload: Figma file tree (``{name?, document}``)
- validate_page_list_payload: page-list document (``{fileName?, pages}``)

Neither coerces: a wrong JSON type, a missing required field or an
out-of-enum value is an error.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Type, TypeVar, Union

from pydantic import ValidationError

from jamaid.errors import PayloadValidationError
from jamaid.sources.base import IngestedDocument, StructuredIngested, TreeIngested
from jamaid.wire_shapes import PageListDocument, TreeFile, WireModel
from jamaid.xml_pages import xml_to_page_list

M = TypeVar('M', bound=WireModel)


# ──────────────────────────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────────────────────────

def format_error_path(root: str, loc: Sequence[Union[str, int]]) -> str:
    """``('pages', 0, 'kind')`` under ``document`` -> ``document.pages[0].kind``."""
    path = root
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path


def _validate(model: Type[M], value: Any, root: str, label: str) -> M:
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        first = exc.errors()[0]
        path = format_error_path(root, first['loc'])
        raise PayloadValidationError(
            f"Invalid {label} payload at {path}: {first['msg']}.", path) from exc


def validate_tree_payload(value: Any, path: str = 'file') -> TreeFile:
    """Validate a Figma file tree and return its typed copy."""
    return _validate(TreeFile, value, path, 'tree')


def validate_page_list_payload(value: Any, path: str = 'document') -> PageListDocument:
    """Validate a page-list document and return its typed copy."""
    return _validate(PageListDocument, value, path, 'structured')


# ──────────────────────────────────────────────────────────────────
# Format detection
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RawPayload:
    """Decoded body plus whether it arrived as XML (already page-list shaped)."""
    data: Any
    from_xml: bool = False


def looks_like_tree_payload(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    document = value.get('document')
    if not isinstance(document, dict):
        return False
    return isinstance(document.get('id'), str) and isinstance(document.get('type'), str)


def resolve_payload_format(payload: RawPayload, requested: str = 'auto') -> str:
    """Decide which shape *payload* is validated as: 'tree' or 'structured'."""
    if payload.from_xml:
        if requested == 'tree':
            raise PayloadValidationError(
                "Invalid tree payload: XML is not supported for --format tree.")
        return 'structured'

    is_tree = looks_like_tree_payload(payload.data)
    if requested == 'tree':
        if not is_tree:
            raise PayloadValidationError(
                "Invalid tree payload: expected a `document` object with string `id` and `type`. "
                "Use --format structured for page-list JSON.")
        return 'tree'
    if requested == 'structured':
        if is_tree:
            raise PayloadValidationError(
                "Invalid structured payload: this JSON is a Figma file tree. "
                "Use --format tree or --format auto.")
        return 'structured'

    if is_tree:
        return 'tree'
    raise PayloadValidationError(
        "Unable to auto-detect payload format. Expected a Figma file tree "
        "(JSON with a `document` object) or a page-list document as XML "
        "(<canvas> root). For page-list JSON use --format structured."
    )


def parse_payload_text(raw: str, source_label: str, format: str = 'auto') -> RawPayload:
    """Decode *raw* text: leading ``<`` means XML, anything else JSON."""
    trimmed = raw.strip()
    if not trimmed:
        raise PayloadValidationError(f"No input received from {source_label}.")

    if trimmed.startswith('<'):
        if format == 'tree':
            raise PayloadValidationError(
                f"Invalid tree payload from {source_label}: XML is not supported for --format tree.")
        try:
            return RawPayload(data=xml_to_page_list(trimmed), from_xml=True)
        except PayloadValidationError as exc:
            raise PayloadValidationError(f"Invalid XML from {source_label}: {exc}") from exc

    try:
        return RawPayload(data=json.loads(trimmed))
    except json.JSONDecodeError as exc:
        raise PayloadValidationError(f"Invalid JSON from {source_label}: {exc}") from exc


def ingest_payload(payload: RawPayload, file_key: str, format: Optional[str] = None) -> IngestedDocument:
    """Validate a decoded payload into the matching ingested variant."""
    shape = resolve_payload_format(payload, format or 'auto')
    if shape == 'tree':
        return TreeIngested(file_key=file_key, file=validate_tree_payload(payload.data, 'file'))
    return StructuredIngested(
        file_key=file_key,
        document=validate_page_list_payload(payload.data, 'document'),
    )
