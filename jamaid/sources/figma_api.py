"""
Remote tree source: Figma REST files API.

Resolves a FigJam/Figma URL or bare file key, performs one authenticated
``GET /v1/files/<key>`` and returns the validated file tree.
"""

import re
from typing import Optional

import httpx

from jamaid.errors import EndpointResponseError, NetworkError, PayloadValidationError, SourceError
from jamaid.sources.base import DiagramSource, SourceRequest, TreeIngested
from jamaid.sources.payload import validate_tree_payload

FIGMA_API_BASE = "https://api.figma.com/v1"
FIGMA_KEY_PATTERN = re.compile(r'^[A-Za-z0-9]{6,}$')
FIGMA_URL_KEY_PATTERN = re.compile(r'/(?:board|file|design|proto)/([A-Za-z0-9]+)(?:/|\?|#|$)')

# Headers worth surfacing when the API rate-limits a request
RATE_LIMIT_HEADERS = ('Retry-After', 'X-Figma-Rate-Limit-Type', 'X-Figma-Plan-Tier')

DEFAULT_TIMEOUT_SECONDS = 30.0


def extract_file_key(value: str) -> str:
    """Return the file key from a Figma URL or a bare key."""
    trimmed = value.strip()
    if not trimmed:
        raise SourceError("Missing FigJam URL or file key.")

    if 'figma.com' in trimmed:
        match = FIGMA_URL_KEY_PATTERN.search(trimmed)
        if not match:
            raise SourceError("Could not extract file key from FigJam URL.")
        return match.group(1)

    if not FIGMA_KEY_PATTERN.match(trimmed):
        raise SourceError("Invalid Figma file key format.")
    return trimmed


def describe_failure(response: httpx.Response) -> str:
    """Build the error message for a non-success API response."""
    message = f"Figma API request failed ({response.status_code}): {response.text}"
    if response.status_code == 429:
        present = [
            f"{name}: {response.headers[name]}"
            for name in RATE_LIMIT_HEADERS
            if name in response.headers
        ]
        if present:
            message += f" ({', '.join(present)})"
    return message


class FigmaTreeSource(DiagramSource):
    kind = 'tree'

    def __init__(self, client: Optional[httpx.AsyncClient] = None,
                 api_base: str = FIGMA_API_BASE,
                 timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self._client = client
        self._api_base = api_base.rstrip('/')
        self._timeout = timeout_seconds

    async def _get(self, url: str, headers: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, headers=headers)

    async def ingest(self, request: SourceRequest) -> TreeIngested:
        file_key = extract_file_key(request.input)
        url = f"{self._api_base}/files/{file_key}"
        try:
            response = await self._get(url, {'X-Figma-Token': request.token})
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Figma API request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Figma API request failed: {exc}") from exc

        if not response.is_success:
            raise EndpointResponseError(describe_failure(response), response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise PayloadValidationError("Figma API returned invalid JSON.") from exc

        return TreeIngested(file_key=file_key, file=validate_tree_payload(body, 'file'))
