"""
Request invoker: turns one descriptor into one HTTP request and its metrics.
"""

from typing import Dict, Optional, Tuple

import httpx

from ..core.config import FuzzConfig
from ..core.exceptions import InvocationError
from ..core.http_client import AsyncHTTPClient
from ..core.logger import get_component_logger
from .keyword_engine import KeywordSubstitutionEngine, RequestTemplate, to_wire
from .models import FuzzResult, RequestDescriptor
from .response_analyzer import ResponseAnalyzer

logger = get_component_logger("invoker")


def set_header(headers: Dict[str, str], name: str, value: str) -> None:
    """Set ``name`` replacing any existing field that differs only in case."""
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


class RequestInvoker:
    """Execute single fuzz requests against the shared HTTP client."""

    def __init__(
            self,
            config: FuzzConfig,
            http_client: AsyncHTTPClient,
            substitution: Optional[KeywordSubstitutionEngine] = None,
            analyzer: Optional[ResponseAnalyzer] = None
    ):
        self.config = config
        self.http_client = http_client
        self.substitution = substitution or KeywordSubstitutionEngine(config.fuzz_keyword)
        self.analyzer = analyzer or ResponseAnalyzer()

    def build_template(self, descriptor: RequestDescriptor) -> Tuple[RequestTemplate, str]:
        """
        Build the final request template for ``descriptor``.

        Without a keyword in the template the payload is appended to the path,
        followed by the extension. Custom headers are applied after user agent
        and cookie, so they may overwrite both.

        Returns:
            The template and the payload as reported in the result
        """
        config = self.config
        payload = descriptor.payload

        if config.fuzz_keyword_present:
            url = descriptor.url
            extension = descriptor.extension
        else:
            if payload.startswith("/"):
                payload = payload[1:]
            url = f"{descriptor.url}/{payload}{descriptor.extension}"
            extension = ""

        headers: Dict[str, str] = {}
        if config.user_agent:
            set_header(headers, "User-Agent", config.user_agent)
        if config.cookie:
            set_header(headers, "Cookie", config.cookie)
        for name, value in descriptor.headers.items():
            set_header(headers, name, value)

        template = RequestTemplate(
            method=descriptor.method,
            url=url,
            headers=tuple(headers.items()),
            body=descriptor.body,
            extension=extension,
        )

        if config.fuzz_keyword_present:
            template = self.substitution.substitute(template, payload)

        return template, payload

    async def invoke(self, descriptor: RequestDescriptor) -> FuzzResult:
        """
        Send the request for ``descriptor`` and measure the drained response.

        Raises:
            InvocationError: transport failure or malformed substituted request.
        """
        template, payload = self.build_template(descriptor)

        try:
            request = self.http_client.build_request(
                template.method,
                template.target,
                headers=[(to_wire(name), to_wire(value)) for name, value in template.headers],
                content=to_wire(template.body) if template.body else None,
            )
            response = await self.http_client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise InvocationError(
                f"{template.method} {template.target} failed: {e!r}", payload
            ) from e

        try:
            body = await response.aread()
        except httpx.HTTPError as e:
            raise InvocationError(
                f"{template.method} {template.target} failed reading body: {e!r}", payload
            ) from e
        finally:
            await response.aclose()

        logger.debug(f"{template.method} {template.target} -> {response.status_code}")
        return self.analyzer.analyze(response, body, payload)
