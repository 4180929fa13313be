#!/usr/bin/env python3
"""
jamaid — convert FigJam flow diagrams into Mermaid.

Usage:
    jamaid https://www.figma.com/board/<key>/Flow
    jamaid <key> --source auto --layout auto --svg
    jamaid diagram.json --source file --format structured
    cat canvas.xml | jamaid --source stdin
    jamaid flow.mmd --png
"""

import argparse
import asyncio
import json
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from jamaid.config import StructuredEndpointConfig, load_env_file, resolve_token
from jamaid.errors import JamaidError, SourceError
from jamaid.graph_model import DiagramDocument, save_document, to_json
from jamaid.layout import LAYOUT_PRESETS, layout_to_mermaid_config
from jamaid.mermaid import DIRECTIONS, mermaid_block
from jamaid.pipeline import RenderedPage, run_pipeline
from jamaid.rasterize import render_with_mmdc
from jamaid.sources.base import FORMAT_HINTS, SourceRequest
from jamaid.sources.select import INGEST_MODES

MERMAID_EXTENSIONS = ('.mmd', '.mermaid')


# ──────────────────────────────────────────────────────────────────
# Argument helpers
# ──────────────────────────────────────────────────────────────────

def _choice(values: Sequence[str], label: str, upper: bool = False):
    def parse(raw: str) -> str:
        value = raw.strip().upper() if upper else raw.strip().lower()
        if value not in values:
            raise argparse.ArgumentTypeError(f"{label} must be one of: {', '.join(values)}.")
        return value
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='jamaid',
        description='Convert FigJam flow diagrams into Mermaid flowcharts',
    )
    parser.add_argument('input', nargs='?',
                        help='FigJam URL/file key, Mermaid file (.mmd/.mermaid), or JSON/XML file path')
    parser.add_argument('--output', '-o', help='Write output to this file')
    parser.add_argument('--token', help='Figma API token (overrides FIGMA_API_TOKEN)')
    parser.add_argument('--source', type=_choice(INGEST_MODES, 'Source'), default=None,
                        help='Source mode: tree, structured, auto, file, stdin (default: tree)')
    parser.add_argument('--format', type=_choice(FORMAT_HINTS, 'Format'), default='auto',
                        help='Payload format for --source file|stdin: tree, structured, auto')
    parser.add_argument('--page', help='Export only one page by name or 1-based index')
    parser.add_argument('--direction', '-d', type=_choice(DIRECTIONS, 'Direction', upper=True),
                        help='Flow direction override (TD, LR, TB, BT, RL)')
    parser.add_argument('--layout', type=_choice(LAYOUT_PRESETS, 'Layout'), default='auto',
                        help='Layout preset: auto, default, compact, elk, organic, tree')
    parser.add_argument('--markdown', action='store_true', help='Fenced Mermaid in a .md file')
    parser.add_argument('--png', action='store_true', help='PNG image (requires mmdc)')
    parser.add_argument('--svg', action='store_true', help='SVG image (requires mmdc)')
    parser.add_argument('--json', action='store_true', help='Canonical graph as JSON')
    return parser


def sanitize_filename(name: str) -> str:
    cleaned = re.sub(r'[^\w\s-]', '', name)
    return re.sub(r'\s+', '-', cleaned).lower() or 'output'


def extension_for(args: argparse.Namespace) -> str:
    if args.markdown:
        return '.md'
    if args.png:
        return '.png'
    if args.svg:
        return '.svg'
    if args.json:
        return '.json'
    return '.mmd'


def select_pages(pages: List[RenderedPage], requested: Optional[str]) -> List[RenderedPage]:
    """Pick one page by 1-based index or case-insensitive name."""
    selector = (requested or '').strip()
    if not selector:
        return pages

    if selector.isdigit():
        index = int(selector)
        if index < 1 or index > len(pages):
            raise SourceError(f"Page index {index} is out of range. Found {len(pages)} page(s).")
        return [pages[index - 1]]

    for page in pages:
        if page.page_name.lower() == selector.lower():
            return [page]
    available = ', '.join(f"{i + 1}:{p.page_name}" for i, p in enumerate(pages))
    raise SourceError(f'Page "{selector}" not found. Available pages: {available}')


# ──────────────────────────────────────────────────────────────────
# Output
# ──────────────────────────────────────────────────────────────────

def write_diagram_output(mermaid: str, out_path: str, args: argparse.Namespace,
                         config: Optional[dict]) -> None:
    if args.png or args.svg:
        render_with_mmdc(mermaid, out_path, 'png' if args.png else 'svg', config)
    else:
        content = mermaid_block(mermaid) if args.markdown else mermaid.rstrip("\n") + "\n"
        out = Path(out_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(content, encoding='utf-8')
    print(f"Written to {out_path}", file=sys.stderr)


def wants_file_output(args: argparse.Namespace) -> bool:
    return bool(args.output or args.markdown or args.png or args.svg)


def detect_direct_mermaid(args: argparse.Namespace, source_explicit: bool) -> Optional[str]:
    """Return 'file' or 'stdin' when the input is ready-made Mermaid text."""
    if source_explicit and args.source in ('file', 'stdin'):
        return None
    value = (args.input or '').strip()
    if value:
        if value.lower().endswith(MERMAID_EXTENSIONS):
            return 'file'
        if not source_explicit and Path(value).is_file():
            return 'file'
        return None
    if not source_explicit and not sys.stdin.isatty():
        return 'stdin'
    return None


def run_direct_mermaid(kind: str, args: argparse.Namespace) -> int:
    if args.json:
        raise SourceError("--json needs a diagram source, not Mermaid input.")
    if kind == 'file':
        path = Path(args.input.strip())
        try:
            mermaid = path.read_text(encoding='utf-8')
        except OSError as exc:
            raise SourceError(f'Failed to read Mermaid file "{path}": {exc}') from exc
        base_name, title = sanitize_filename(path.stem), path.name
    else:
        mermaid = sys.stdin.read()
        base_name, title = 'stdin', 'stdin'

    if not mermaid.strip():
        raise SourceError("Mermaid input is empty.")

    if not wants_file_output(args):
        sys.stdout.write(mermaid if mermaid.endswith("\n") else mermaid + "\n")
        return 0

    out_path = args.output or f"{base_name}{extension_for(args)}"
    print(f"[jamaid] Passing through Mermaid from {title}", file=sys.stderr)
    write_diagram_output(mermaid, out_path, args, layout_to_mermaid_config(args.layout))
    return 0


# ──────────────────────────────────────────────────────────────────
# Main flow
# ──────────────────────────────────────────────────────────────────

def run(args: argparse.Namespace) -> int:
    flags = [args.markdown, args.png, args.svg, args.json]
    if sum(bool(f) for f in flags) > 1:
        raise SourceError("Use only one output format flag at a time: --markdown, --png, --svg, or --json.")

    source_explicit = args.source is not None
    source = args.source or 'tree'

    direct = detect_direct_mermaid(args, source_explicit)
    if direct:
        return run_direct_mermaid(direct, args)

    input_value = '' if source == 'stdin' else (args.input or '').strip()
    if source != 'stdin' and not input_value:
        if source == 'file':
            raise SourceError("Missing input file path. Provide <input> when using --source file.")
        raise SourceError("Missing FigJam URL or file key.")

    load_env_file()
    remote = source in ('tree', 'structured', 'auto')
    token = resolve_token(args.token) if remote else ''
    structured_config = StructuredEndpointConfig.from_env() if source in ('structured', 'auto') else None

    request = SourceRequest(
        input=input_value,
        token=token,
        format=args.format if source in ('file', 'stdin') else None,
    )
    result = asyncio.run(run_pipeline(
        request, source,
        direction=args.direction,
        layout=args.layout,
        structured_config=structured_config,
    ))

    if result.fallback_used:
        print("[jamaid] Source auto fallback: structured endpoint failed, using Figma REST.", file=sys.stderr)

    pages = select_pages(result.pages, args.page)
    if not pages:
        raise SourceError("No pages found to export.")

    for page in pages:
        g = page.graph
        print(f"[jamaid] {page.page_name}: {len(g.nodes)} nodes, {len(g.edges)} edges, "
              f"{len(g.sections)} sections (layout: {page.layout})", file=sys.stderr)

    base_name = sanitize_filename(result.file_name or result.file_key)

    if args.json:
        document = DiagramDocument(
            source_kind=result.document.source_kind,
            file_key=result.file_key,
            file_name=result.file_name,
            pages=[p.graph for p in pages],
        )
        if args.output:
            save_document(document, args.output)
            print(f"Written to {args.output}", file=sys.stderr)
        else:
            print(json.dumps(to_json(document), indent=2))
        return 0

    if len(pages) == 1:
        page = pages[0]
        if not wants_file_output(args):
            sys.stdout.write(page.mermaid + "\n")
            return 0
        out_path = args.output or f"{base_name}-{sanitize_filename(page.page_name)}{extension_for(args)}"
        write_diagram_output(page.mermaid, out_path, args, page.mermaid_config)
        return 0

    if args.output:
        raise SourceError(
            "--output can only be used with a single page. Use --page to select one page, "
            "or omit --output to export all pages automatically.")

    for page in pages:
        out_path = f"{base_name}-{sanitize_filename(page.page_name)}{extension_for(args)}"
        write_diagram_output(page.mermaid, out_path, args, page.mermaid_config)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except JamaidError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
