"""
Unit tests for the request invoker.
"""

import gzip

import httpx
import pytest

from fuzz_hunter.core.exceptions import InvocationError, SubstitutionError
from fuzz_hunter.core.http_client import AsyncHTTPClient, create_http_client
from fuzz_hunter.fuzzing.models import RequestDescriptor
from fuzz_hunter.fuzzing.request_invoker import RequestInvoker, set_header


def make_descriptor(config, payload="admin", extension=""):
    return RequestDescriptor(
        method=config.method,
        url=config.target_url,
        headers=config.header_map,
        body=config.body,
        extension=extension,
        payload=payload,
    )


class TestSetHeader:

    def test_replaces_case_insensitively(self):
        headers = {"user-agent": "a"}
        set_header(headers, "User-Agent", "b")
        assert headers == {"User-Agent": "b"}


class TestBuildTemplate:
    """Request construction without sending."""

    def test_payload_appended_without_keyword(self, make_config):
        config = make_config(target_url="http://target.local/app")
        invoker = RequestInvoker(config, AsyncHTTPClient())

        template, payload = invoker.build_template(make_descriptor(config, extension=".php"))

        assert template.target == "http://target.local/app/admin.php"
        assert payload == "admin"

    def test_single_leading_slash_trimmed(self, make_config):
        config = make_config()
        invoker = RequestInvoker(config, AsyncHTTPClient())

        template, payload = invoker.build_template(make_descriptor(config, payload="//admin"))

        assert template.target == "http://target.local//admin"
        assert payload == "/admin"

    def test_keyword_substituted(self, make_config):
        config = make_config(target_url="http://target.local/FUZZ", extensions=".php")
        invoker = RequestInvoker(config, AsyncHTTPClient())

        template, _ = invoker.build_template(make_descriptor(config, extension=".php"))

        assert template.target == "http://target.local/admin.php"

    def test_custom_headers_overwrite_user_agent_and_cookie(self, make_config):
        config = make_config(
            user_agent="default-agent",
            cookie="session=1",
            headers={"user-agent": "custom", "X-Api": "FUZZ"},
        )
        invoker = RequestInvoker(config, AsyncHTTPClient())

        template, _ = invoker.build_template(make_descriptor(config, payload="key"))

        assert template.header_map == {"Cookie": "session=1", "user-agent": "custom", "X-Api": "key"}
        assert template.target == "http://target.local"


class TestInvoke:
    """Sending requests and measuring responses."""

    @pytest.mark.asyncio
    async def test_success_metrics(self, make_config, recording_transport):
        def handler(request):
            return httpx.Response(
                200,
                headers={"X-A": "1"},
                stream=httpx.ByteStream(b"hello world\nsecond line\n"),
            )

        transport = recording_transport(handler)
        config = make_config()

        async with create_http_client(config, transport=transport) as client:
            result = await RequestInvoker(config, client).invoke(make_descriptor(config))

        assert transport.paths == ["/admin"]
        assert result.status_code == 200
        assert result.content_length == 24
        assert result.word_count == 4
        assert result.line_count == 2
        assert result.header_size == 4
        assert result.payload == "admin"

    @pytest.mark.asyncio
    async def test_body_and_method_sent(self, make_config, recording_transport):
        transport = recording_transport(lambda request: httpx.Response(200))
        config = make_config(method="POST", body="user=admin&passwd=FUZZ")

        async with create_http_client(config, transport=transport) as client:
            await RequestInvoker(config, client).invoke(make_descriptor(config, payload="s3cret"))

        (request,) = transport.requests
        assert request.method == "POST"
        assert request.content == b"user=admin&passwd=s3cret"

    @pytest.mark.asyncio
    async def test_redirect_not_followed(self, make_config, recording_transport):
        transport = recording_transport(
            lambda request: httpx.Response(301, headers={"Location": "http://target.local/elsewhere"})
        )
        config = make_config()

        async with create_http_client(config, transport=transport) as client:
            result = await RequestInvoker(config, client).invoke(make_descriptor(config))

        assert result.status_code == 301
        assert result.content_length == 0
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_error(self, make_config, recording_transport):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        config = make_config()

        async with create_http_client(config, transport=recording_transport(handler)) as client:
            with pytest.raises(InvocationError) as exc_info:
                await RequestInvoker(config, client).invoke(make_descriptor(config))

        assert exc_info.value.payload == "admin"

    @pytest.mark.asyncio
    async def test_malformed_substitution_not_sent(self, make_config, recording_transport):
        transport = recording_transport(lambda request: httpx.Response(200))
        config = make_config(method="FUZZ")

        async with create_http_client(config, transport=transport) as client:
            with pytest.raises(SubstitutionError):
                await RequestInvoker(config, client).invoke(make_descriptor(config, payload="GET /x"))

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_gzip_body_measured_after_decoding(self, make_config, recording_transport):
        body = b"word " * 240
        compressed = gzip.compress(body)

        def handler(request):
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=compressed)

        config = make_config()

        async with create_http_client(config, transport=recording_transport(handler)) as client:
            result = await RequestInvoker(config, client).invoke(make_descriptor(config))

        assert len(compressed) < len(body)
        assert result.content_length == len(body)
        assert result.word_count == 240


class TestRawWordlistBytes:
    """Wordlist bytes that are not valid UTF-8 reach the wire unchanged."""

    RAW_PAYLOAD = b"caf\xe9".decode("utf-8", "surrogateescape")

    @pytest.mark.asyncio
    async def test_appended_to_path(self, make_config, recording_transport):
        transport = recording_transport(lambda request: httpx.Response(200))
        config = make_config()

        async with create_http_client(config, transport=transport) as client:
            result = await RequestInvoker(config, client).invoke(
                make_descriptor(config, payload=self.RAW_PAYLOAD)
            )

        assert transport.requests[0].url.raw_path == b"/caf%E9"
        assert result.display_payload == "caf\\xe9"

    @pytest.mark.asyncio
    async def test_substituted_into_body_and_header(self, make_config, recording_transport):
        transport = recording_transport(lambda request: httpx.Response(200))
        config = make_config(method="POST", body="word=FUZZ", headers={"X-Word": "FUZZ"})

        async with create_http_client(config, transport=transport) as client:
            await RequestInvoker(config, client).invoke(make_descriptor(config, payload=self.RAW_PAYLOAD))

        (request,) = transport.requests
        assert request.content == b"word=caf\xe9"
        assert (b"X-Word", b"caf\xe9") in request.headers.raw
