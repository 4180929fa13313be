"""
Remote structured source: page-list endpoint.

POSTs ``{fileKey, figmaToken?}`` to the configured endpoint and accepts
either page-list JSON or its XML dialect in the response body. The request
is bounded by the configured timeout and aborted when it is exceeded.
"""

import json
from typing import Optional

import httpx

from jamaid.config import STRUCTURED_ENDPOINT_URL_ENV, STRUCTURED_TIMEOUT_MS_ENV, StructuredEndpointConfig
from jamaid.errors import (
    EndpointResponseError, EndpointTimeoutError, NetworkError,
    PayloadValidationError, SourceUnavailableError,
)
from jamaid.sources.base import DiagramSource, SourceRequest, StructuredIngested
from jamaid.sources.figma_api import extract_file_key
from jamaid.sources.payload import validate_page_list_payload
from jamaid.xml_pages import xml_to_page_list

ENDPOINT_NOT_CONFIGURED = (
    f"Structured endpoint is not configured. Set {STRUCTURED_ENDPOINT_URL_ENV} "
    "or pass endpoint_url in the structured endpoint config."
)


def decode_body(text: str):
    """Sniff the response body: leading ``<`` is XML, anything else JSON."""
    trimmed = text.strip()
    if trimmed.startswith('<'):
        try:
            return xml_to_page_list(trimmed)
        except PayloadValidationError as exc:
            raise PayloadValidationError(f"Structured endpoint returned invalid XML: {exc}") from exc
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError as exc:
        raise PayloadValidationError("Structured endpoint returned invalid JSON.") from exc


class StructuredEndpointSource(DiagramSource):
    kind = 'structured'

    def __init__(self, config: Optional[StructuredEndpointConfig] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self._config = config or StructuredEndpointConfig()
        self._client = client

    async def _post(self, url: str, body: dict, headers: dict, timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=body, headers=headers, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(url, json=body, headers=headers)

    async def ingest(self, request: SourceRequest) -> StructuredIngested:
        config = self._config
        if not config.endpoint_url:
            raise SourceUnavailableError(ENDPOINT_NOT_CONFIGURED)

        file_key = extract_file_key(request.input)
        body = {'fileKey': file_key}
        if request.token.strip():
            body['figmaToken'] = request.token.strip()

        headers = {'Content-Type': 'application/json'}
        if config.auth_token:
            headers['Authorization'] = f"Bearer {config.auth_token}"

        try:
            response = await self._post(config.endpoint_url, body, headers, config.timeout_ms / 1000)
        except httpx.TimeoutException as exc:
            raise EndpointTimeoutError(
                f"Structured endpoint request timed out after {config.timeout_ms}ms. "
                f"Increase {STRUCTURED_TIMEOUT_MS_ENV} if needed.",
                config.timeout_ms,
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Structured endpoint request failed: {exc}") from exc

        if not response.is_success:
            detail = response.text.strip() or "Empty response body"
            raise EndpointResponseError(
                f"Structured endpoint request failed ({response.status_code}): {detail}",
                response.status_code,
            )

        document = validate_page_list_payload(decode_body(response.text), 'document')
        return StructuredIngested(file_key=file_key, document=document)
