"""Tests for the remote and local diagram sources."""

import asyncio
import json

import httpx
import pytest

from jamaid.config import StructuredEndpointConfig
from jamaid.errors import (
    EndpointResponseError, EndpointTimeoutError, NetworkError,
    PayloadValidationError, SourceError, SourceUnavailableError,
)
from jamaid.sources.base import SourceRequest, StructuredIngested, TreeIngested
from jamaid.sources.figma_api import FigmaTreeSource, extract_file_key
from jamaid.sources.local import FileSource, StdinSource, infer_file_key
from jamaid.sources.select import create_sources_for_mode, source_mode_order
from jamaid.sources.structured_endpoint import StructuredEndpointSource
from tests.conftest import FIXTURES


def _ingest_with(source_factory, handler, request):
    """Run ``source.ingest`` against an httpx MockTransport."""
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await source_factory(client).ingest(request)
    return asyncio.run(run())


ENDPOINT = StructuredEndpointConfig(
    endpoint_url='https://diagrams.example.test/pages',
    auth_token='secret',
    timeout_ms=2500,
)


# ──────────────────────────────────────────────────────────────────
# File key extraction
# ──────────────────────────────────────────────────────────────────

class TestExtractFileKey:
    @pytest.mark.parametrize('value', [
        'https://www.figma.com/board/AbC123xyz/Checkout-Flow?node-id=0-1',
        'https://www.figma.com/file/AbC123xyz/Checkout',
        'https://figma.com/design/AbC123xyz',
        '  AbC123xyz  ',
    ])
    def test_accepts_urls_and_keys(self, value):
        assert extract_file_key(value) == 'AbC123xyz'

    def test_rejects_bad_key(self):
        with pytest.raises(SourceError, match='Invalid Figma file key'):
            extract_file_key('no spaces allowed')

    def test_rejects_unrecognised_url(self):
        with pytest.raises(SourceError, match='Could not extract file key'):
            extract_file_key('https://www.figma.com/community/plugin/123')

    def test_rejects_empty(self):
        with pytest.raises(SourceError, match='Missing FigJam URL'):
            extract_file_key('   ')


# ──────────────────────────────────────────────────────────────────
# Figma REST tree source
# ──────────────────────────────────────────────────────────────────

class TestFigmaTreeSource:
    def test_fetches_and_validates_tree(self, flow_tree):
        seen = {}

        def handler(request):
            seen['url'] = str(request.url)
            seen['token'] = request.headers.get('X-Figma-Token')
            return httpx.Response(200, json=flow_tree)

        result = _ingest_with(
            lambda client: FigmaTreeSource(client=client), handler,
            SourceRequest(input='https://www.figma.com/board/AbC123xyz/Flow', token='figd_tok'),
        )
        assert isinstance(result, TreeIngested)
        assert result.file_key == 'AbC123xyz'
        assert result.file.name == 'Checkout Flow'
        assert seen == {'url': 'https://api.figma.com/v1/files/AbC123xyz', 'token': 'figd_tok'}

    def test_rate_limit_headers_in_message(self):
        def handler(request):
            return httpx.Response(429, text='Too Many Requests', headers={
                'Retry-After': '60',
                'X-Figma-Rate-Limit-Type': 'low',
            })

        with pytest.raises(EndpointResponseError) as exc:
            _ingest_with(lambda client: FigmaTreeSource(client=client), handler,
                         SourceRequest(input='AbC123xyz', token='t'))
        assert exc.value.status_code == 429
        message = str(exc.value)
        assert 'Figma API request failed (429)' in message
        assert 'Retry-After: 60' in message
        assert 'X-Figma-Rate-Limit-Type: low' in message
        assert 'X-Figma-Plan-Tier' not in message

    def test_forbidden(self):
        with pytest.raises(EndpointResponseError) as exc:
            _ingest_with(lambda client: FigmaTreeSource(client=client),
                         lambda request: httpx.Response(403, text='Invalid token'),
                         SourceRequest(input='AbC123xyz', token='t'))
        assert exc.value.status_code == 403
        assert 'Invalid token' in str(exc.value)

    def test_rate_limit_without_headers_appends_nothing(self):
        with pytest.raises(EndpointResponseError) as exc:
            _ingest_with(lambda client: FigmaTreeSource(client=client),
                         lambda request: httpx.Response(429, text='Too Many Requests'),
                         SourceRequest(input='AbC123xyz', token='t'))
        assert str(exc.value) == 'Figma API request failed (429): Too Many Requests'

    def test_connection_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        with pytest.raises(NetworkError):
            _ingest_with(lambda client: FigmaTreeSource(client=client), handler,
                         SourceRequest(input='AbC123xyz', token='t'))

    def test_invalid_json_body(self):
        with pytest.raises(PayloadValidationError, match='invalid JSON'):
            _ingest_with(lambda client: FigmaTreeSource(client=client),
                         lambda request: httpx.Response(200, text='<html>'),
                         SourceRequest(input='AbC123xyz', token='t'))

    def test_schema_violation(self):
        with pytest.raises(PayloadValidationError) as exc:
            _ingest_with(lambda client: FigmaTreeSource(client=client),
                         lambda request: httpx.Response(200, json={'document': []}),
                         SourceRequest(input='AbC123xyz', token='t'))
        assert exc.value.path == 'file.document'


# ──────────────────────────────────────────────────────────────────
# Structured endpoint source
# ──────────────────────────────────────────────────────────────────

class TestStructuredEndpointSource:
    def test_not_configured(self):
        source = StructuredEndpointSource(StructuredEndpointConfig())
        with pytest.raises(SourceUnavailableError, match='JAMAID_STRUCTURED_ENDPOINT_URL'):
            asyncio.run(source.ingest(SourceRequest(input='AbC123xyz')))

    def test_posts_file_key_and_token(self, flow_pages):
        seen = {}

        def handler(request):
            seen['method'] = request.method
            seen['url'] = str(request.url)
            seen['auth'] = request.headers.get('Authorization')
            seen['body'] = json.loads(request.content)
            return httpx.Response(200, json=flow_pages)

        result = _ingest_with(
            lambda client: StructuredEndpointSource(ENDPOINT, client=client), handler,
            SourceRequest(input='https://www.figma.com/board/AbC123xyz/Flow', token=' figd_tok '),
        )
        assert isinstance(result, StructuredIngested)
        assert result.document.file_name == 'Checkout Flow'
        assert seen == {
            'method': 'POST',
            'url': 'https://diagrams.example.test/pages',
            'auth': 'Bearer secret',
            'body': {'fileKey': 'AbC123xyz', 'figmaToken': 'figd_tok'},
        }

    def test_omits_blank_token_and_auth(self, flow_pages):
        seen = {}

        def handler(request):
            seen['auth'] = request.headers.get('Authorization')
            seen['body'] = json.loads(request.content)
            return httpx.Response(200, json=flow_pages)

        config = StructuredEndpointConfig(endpoint_url='https://diagrams.example.test/pages')
        _ingest_with(lambda client: StructuredEndpointSource(config, client=client), handler,
                     SourceRequest(input='AbC123xyz'))
        assert seen == {'auth': None, 'body': {'fileKey': 'AbC123xyz'}}

    def test_accepts_xml_body(self, flow_xml):
        result = _ingest_with(
            lambda client: StructuredEndpointSource(ENDPOINT, client=client),
            lambda request: httpx.Response(200, text=flow_xml,
                                           headers={'Content-Type': 'application/xml'}),
            SourceRequest(input='AbC123xyz'),
        )
        assert result.document.pages[0].page_name == 'Flow'

    def test_connection_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        with pytest.raises(NetworkError, match='Structured endpoint request failed'):
            _ingest_with(lambda client: StructuredEndpointSource(ENDPOINT, client=client), handler,
                         SourceRequest(input='AbC123xyz'))

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout('timed out', request=request)

        with pytest.raises(EndpointTimeoutError) as exc:
            _ingest_with(lambda client: StructuredEndpointSource(ENDPOINT, client=client), handler,
                         SourceRequest(input='AbC123xyz'))
        assert exc.value.timeout_ms == 2500
        assert 'timed out after 2500ms' in str(exc.value)
        assert 'JAMAID_STRUCTURED_TIMEOUT_MS' in str(exc.value)

    def test_server_error(self):
        with pytest.raises(EndpointResponseError) as exc:
            _ingest_with(lambda client: StructuredEndpointSource(ENDPOINT, client=client),
                         lambda request: httpx.Response(503, text=''),
                         SourceRequest(input='AbC123xyz'))
        assert exc.value.status_code == 503
        assert str(exc.value) == 'Structured endpoint request failed (503): Empty response body'

    def test_invalid_json(self):
        with pytest.raises(PayloadValidationError, match='invalid JSON'):
            _ingest_with(lambda client: StructuredEndpointSource(ENDPOINT, client=client),
                         lambda request: httpx.Response(200, text='not json'),
                         SourceRequest(input='AbC123xyz'))

    def test_invalid_page_list(self, flow_pages):
        flow_pages['pages'][0]['diagram']['edges'][0]['kind'] = 'dashed'
        with pytest.raises(PayloadValidationError) as exc:
            _ingest_with(lambda client: StructuredEndpointSource(ENDPOINT, client=client),
                         lambda request: httpx.Response(200, json=flow_pages),
                         SourceRequest(input='AbC123xyz'))
        assert exc.value.path == 'document.pages[0].diagram.edges[0].kind'


# ──────────────────────────────────────────────────────────────────
# Local sources
# ──────────────────────────────────────────────────────────────────

class TestFileSource:
    def test_reads_tree_json(self):
        path = FIXTURES / 'figma_flow.json'
        result = asyncio.run(FileSource().ingest(SourceRequest(input=str(path))))
        assert isinstance(result, TreeIngested)
        assert result.file_key == 'figma_flow.json'

    def test_reads_page_list_json_with_hint(self):
        path = FIXTURES / 'page_flow_parity.json'
        result = asyncio.run(FileSource().ingest(SourceRequest(input=str(path), format='structured')))
        assert isinstance(result, StructuredIngested)

    def test_reads_xml(self):
        path = FIXTURES / 'flow_canvas.xml'
        result = asyncio.run(FileSource().ingest(SourceRequest(input=str(path))))
        assert isinstance(result, StructuredIngested)
        assert result.document.file_name == 'Flow'

    def test_missing_file(self, tmp_path):
        missing = tmp_path / 'nope.json'
        with pytest.raises(SourceError, match='Failed to read input file'):
            asyncio.run(FileSource().ingest(SourceRequest(input=str(missing))))

    def test_empty_path(self):
        with pytest.raises(SourceError, match='Missing input file path'):
            asyncio.run(FileSource().ingest(SourceRequest(input='  ')))

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.json'
        path.write_text('\n', encoding='utf-8')
        with pytest.raises(PayloadValidationError, match='No input received'):
            asyncio.run(FileSource().ingest(SourceRequest(input=str(path))))


class TestStdinSource:
    def test_reads_injected_stdin(self, flow_xml):
        source = StdinSource(read_stdin=lambda: flow_xml)
        result = asyncio.run(source.ingest(SourceRequest(input='')))
        assert isinstance(result, StructuredIngested)
        assert result.file_key == 'stdin'

    def test_empty_stdin(self):
        source = StdinSource(read_stdin=lambda: '')
        with pytest.raises(PayloadValidationError, match='No input received from stdin'):
            asyncio.run(source.ingest(SourceRequest(input='')))


def test_infer_file_key():
    assert infer_file_key('/tmp/boards/flow.json') == 'flow.json'
    assert infer_file_key('  ') == 'file-input'


# ──────────────────────────────────────────────────────────────────
# Mode selection
# ──────────────────────────────────────────────────────────────────

def test_mode_order():
    assert source_mode_order('auto') == ('structured', 'tree')
    assert source_mode_order('stdin') == ('stdin',)
    with pytest.raises(ValueError):
        source_mode_order('magic')


def test_sources_for_auto_mode():
    sources = create_sources_for_mode('auto', ENDPOINT)
    assert [s.kind for s in sources] == ['structured', 'tree']
