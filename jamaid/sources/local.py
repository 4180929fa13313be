"""
Local sources: a file on disk or the process's standard input.

Both read raw text, sniff it (``<`` means the XML page-list dialect,
anything else JSON) and validate it as a tree or page-list document,
honouring an explicit format hint.
"""

import asyncio
import sys
from pathlib import Path
from typing import Callable, Optional

from jamaid.errors import SourceError
from jamaid.sources.base import DiagramSource, IngestedDocument, SourceRequest
from jamaid.sources.payload import ingest_payload, parse_payload_text


def infer_file_key(path_value: str) -> str:
    name = Path(path_value.strip()).name if path_value.strip() else ''
    return name or 'file-input'


def read_process_stdin() -> str:
    """Read stdin to end-of-stream; refuses an interactive terminal."""
    if sys.stdin is None or sys.stdin.isatty():
        raise SourceError("No stdin input detected. Pipe JSON or XML into stdin when using --source stdin.")
    return sys.stdin.read()


class FileSource(DiagramSource):
    kind = 'file'

    async def ingest(self, request: SourceRequest) -> IngestedDocument:
        input_path = request.input.strip()
        if not input_path:
            raise SourceError("Missing input file path. Provide <input> when using --source file.")

        try:
            raw = await asyncio.to_thread(Path(input_path).read_text, encoding='utf-8')
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceError(f'Failed to read input file "{input_path}": {exc}') from exc

        payload = parse_payload_text(raw, f'file "{input_path}"', request.format or 'auto')
        return ingest_payload(payload, infer_file_key(input_path), request.format)


class StdinSource(DiagramSource):
    kind = 'stdin'

    def __init__(self, read_stdin: Optional[Callable[[], str]] = None):
        self._read_stdin = read_stdin or read_process_stdin

    async def ingest(self, request: SourceRequest) -> IngestedDocument:
        raw = await asyncio.to_thread(self._read_stdin)
        payload = parse_payload_text(raw, 'stdin', request.format or 'auto')
        return ingest_payload(payload, 'stdin', request.format)
