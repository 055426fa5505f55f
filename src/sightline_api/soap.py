"""Access the Sightline SOAP API (``https://<leader>/soap/sp``).

:class:`SoapApi` is the traffic source and CLI runner for the SOAP API. It
talks to the leader through a :class:`SoapTransport`; the shipped
:class:`HttpSoapTransport` posts SOAP 1.2 envelopes over :mod:`httpx`
with HTTP digest authentication.

Operations used:

- ``getTrafficGraph(query, graph)`` -- PNG image (base64 on the wire).
- ``runXmlQuery(query, format)`` -- XML traffic data.
- ``cliRun(command, timeout)`` -- CLI output text.
"""

from __future__ import annotations

import base64
import binascii
import logging
import xml.etree.ElementTree as ET
from typing import Any, Optional, Protocol
from xml.etree.ElementTree import Element, ParseError

import defusedxml.ElementTree as DefusedET
import httpx
from defusedxml import DefusedXmlException

from sightline_api.cache import CacheBackend, make_document_key
from sightline_api.exceptions import ApiError, TransportError
from sightline_api.models import CachePolicy, SightlineConfig
from sightline_api.results import handle_xml_result, is_png
from sightline_api.transport import HttpTransport

logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://www.w3.org/2003/05/soap-envelope"
SOAP_CONTENT_TYPE = "application/soap+xml; charset=utf-8"


class SoapTransport(Protocol):
    """Calls one SOAP operation and returns the text of its return value."""

    def call(self, operation: str, **params: Any) -> str: ...


class HttpSoapTransport:
    """SOAP 1.2 transport built on :class:`~sightline_api.transport.HttpTransport`.

    Args:
        url: SOAP endpoint, e.g. ``https://leader/soap/sp``.
        namespace: Namespace of the operation elements.
        http: Transport configured with digest authentication.
    """

    def __init__(self, url: str, namespace: str, http: HttpTransport) -> None:
        self._url = url
        self._namespace = namespace
        self._http = http

    @classmethod
    def from_config(cls, config: SightlineConfig, transport: Optional[httpx.BaseTransport] = None) -> HttpSoapTransport:
        http = HttpTransport(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            auth=httpx.DigestAuth(config.username, config.password),
            transport=transport,
        )
        return cls(config.soap_url, config.soap_namespace, http)

    def close(self) -> None:
        self._http.close()

    def build_envelope(self, operation: str, **params: Any) -> bytes:
        """Serialise a SOAP 1.2 request envelope for *operation*."""
        envelope = ET.Element(f"{{{SOAP_ENV_NS}}}Envelope")
        body = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
        call = ET.SubElement(body, f"{{{self._namespace}}}{operation}")
        for name, value in params.items():
            ET.SubElement(call, name).text = str(value)
        return ET.tostring(envelope, encoding="UTF-8", xml_declaration=True)

    def call(self, operation: str, **params: Any) -> str:
        """Invoke *operation* and return the text of the first return element.

        Raises:
            TransportError: On connection failure, HTTP errors, SOAP faults
                or an unreadable response.
        """
        response = self._http.request(
            "POST",
            self._url,
            headers={"Content-Type": f'{SOAP_CONTENT_TYPE}; action="{operation}"'},
            content=self.build_envelope(operation, **params),
        )

        try:
            root = DefusedET.fromstring(response.content)
        except (ParseError, DefusedXmlException) as exc:
            raise TransportError(
                f"Invalid SOAP response (status {response.status_code}): {exc}"
            ) from exc

        fault = root.find(f".//{{{SOAP_ENV_NS}}}Fault")
        if fault is not None:
            reason = " ".join(t.strip() for t in fault.itertext() if t.strip())
            raise TransportError(f"SOAP fault in {operation}: {reason}")

        if response.status_code >= 300:
            raise TransportError(
                f"SOAP request {operation} failed with status code: {response.status_code}"
            )

        body = root.find(f"{{{SOAP_ENV_NS}}}Body")
        result: Optional[Element] = None
        if body is not None and len(body):
            result = body[0][0] if len(body[0]) else body[0]
        if result is None:
            raise TransportError(f"Empty SOAP response for {operation}")
        return result.text or ""


class SoapApi:
    """Traffic source and CLI runner backed by the SOAP API.

    Args:
        transport: The SOAP transport.
        cache: Cache backend; required for caching to take effect.
        policy: Cache switch and TTL. Defaults to caching disabled.
    """

    cache_key_prefix = "sightline_soap"

    def __init__(
        self,
        transport: SoapTransport,
        cache: Optional[CacheBackend] = None,
        policy: Optional[CachePolicy] = None,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._policy = policy if policy is not None else CachePolicy()

    @classmethod
    def from_config(
        cls,
        config: SightlineConfig,
        cache: Optional[CacheBackend] = None,
        transport: Optional[SoapTransport] = None,
    ) -> SoapApi:
        return cls(
            transport or HttpSoapTransport.from_config(config),
            cache,
            config.cache_policy(),
        )

    @property
    def should_cache(self) -> bool:
        return self._policy.enabled and self._cache is not None

    def set_should_cache(self, cache_on: bool) -> None:
        """Turn the cache on or off."""
        self._policy.enabled = cache_on

    def set_cache_ttl(self, ttl_seconds: int) -> None:
        self._policy.ttl_seconds = ttl_seconds

    def get_traffic_graph(self, query_xml: str, graph_xml: str) -> bytes:
        """Get a traffic graph as PNG image bytes.

        Raises:
            TransportError: If the SOAP call fails.
            ApiError: If the API returns an error document instead of an image.
        """
        key = make_document_key(self.cache_key_prefix, query_xml, graph_xml)

        if self.should_cache:
            hit, image = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for SOAP traffic graph")
                return image

        result = self._transport.call("getTrafficGraph", query=query_xml, graph=graph_xml)
        image = _decode_image(result)

        if image is None:
            # Errors on graphs come back as XML error documents.
            handle_xml_result(result)
            raise ApiError("Traffic graph request did not return an image.")

        if self.should_cache:
            self._cache.set(key, image, self._policy.ttl_seconds)

        return image

    def get_traffic_xml(self, query_xml: str) -> Element:
        """Run an XML traffic query and return the parsed result."""
        key = make_document_key(self.cache_key_prefix, query_xml)

        if self.should_cache:
            hit, text = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for SOAP traffic XML")
                return handle_xml_result(text)

        result = self._transport.call("runXmlQuery", query=query_xml, format="xml")
        root = handle_xml_result(result)

        if self.should_cache:
            self._cache.set(key, result, self._policy.ttl_seconds)

        return root

    def cli_run(self, command: str, timeout: int = 20) -> str:
        """Run a CLI command on the leader and return its output. Never cached."""
        return self._transport.call("cliRun", command=command, timeout=timeout)


def _decode_image(result: str) -> Optional[bytes]:
    try:
        image = base64.b64decode("".join(result.split()), validate=True)
    except (binascii.Error, ValueError):
        return None
    return image if is_png(image) else None
