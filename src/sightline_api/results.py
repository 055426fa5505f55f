"""Result handling shared by the SOAP, web-services and REST clients.

Every response body is checked for an embedded error indicator before it
is returned to the caller:

- XML bodies (SOAP and web services) carry one ``<error-line>`` element per
  line of the error message (:func:`handle_xml_result`).
- JSON bodies (REST) carry a JSON:API ``errors`` array
  (:func:`raise_for_result`, :func:`format_errors`).

Both are converted into :class:`~sightline_api.exceptions.ApiError` with
the individual lines joined by newlines.
"""

from __future__ import annotations

from typing import Any, Optional, Union
from xml.etree.ElementTree import Element, ParseError

import defusedxml.ElementTree as DefusedET
import httpx
from defusedxml import DefusedXmlException
from pydantic import ValidationError

from sightline_api.exceptions import ApiError, NoDataError
from sightline_api.models import ErrorObject

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def handle_xml_result(output: Union[str, bytes]) -> Element:
    """Parse an XML response and raise if it is an error document.

    Args:
        output: The raw XML returned by the SOAP or web-services API.

    Returns:
        The parsed root element.

    Raises:
        ApiError: If the XML cannot be parsed, or contains ``error-line``
            elements (their text, newline-joined, becomes the message).
    """
    try:
        root = DefusedET.fromstring(output)
    except (ParseError, DefusedXmlException) as exc:
        raise ApiError(f"Unable to parse XML result: {exc}") from exc

    lines = [(line.text or "").strip() for line in root.iter("error-line")]
    if lines:
        raise ApiError("\n".join(lines))

    return root


def is_png(content: bytes) -> bool:
    """Return ``True`` if *content* starts with the PNG file signature."""
    return content.startswith(PNG_SIGNATURE)


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON response body.

    Returns ``None`` for an empty body.

    Raises:
        ApiError: If the body is not valid JSON.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise ApiError(
            f"Error getting result from server: {exc}",
            status_code=response.status_code,
        ) from exc


def format_errors(errors: list[Any]) -> str:
    """Flatten a JSON:API ``errors`` array into newline-separated text.

    For each error the ``id``, ``message``, ``title`` and ``detail`` members
    are emitted in that order; ``detail`` is suffixed with
    ``" : <source.pointer>"`` when a pointer is present.
    """
    lines: list[str] = []
    for raw in errors:
        if not isinstance(raw, dict):
            lines.append(str(raw))
            continue
        try:
            error = ErrorObject.model_validate(raw)
        except ValidationError:
            lines.append(str(raw))
            continue
        if error.id is not None:
            lines.append(error.id)
        if error.message is not None:
            lines.append(error.message)
        if error.title is not None:
            lines.append(error.title)
        if error.detail is not None:
            if error.source is not None and error.source.pointer is not None:
                lines.append(f"{error.detail} : {error.source.pointer}")
            else:
                lines.append(error.detail)
    return "\n".join(lines)


def raise_for_result(status_code: int, body: Any) -> dict[str, Any]:
    """Validate a decoded REST response and return it.

    Raises:
        ApiError: If ``status_code`` is 300 or above, or a 2xx body carries
            a non-empty ``errors`` array.
        NoDataError: If a successful response decoded to an empty body.
    """
    errors = _errors_of(body)

    if status_code >= 300:
        message = f"API server returned status code: {status_code}"
        if errors:
            message = f"{message}\n{format_errors(errors)}"
        raise ApiError(message, status_code=status_code, errors=errors)

    if not body:
        raise NoDataError("API server returned no data.")

    if errors:
        raise ApiError(format_errors(errors), status_code=status_code, errors=errors)

    return body


def _errors_of(body: Any) -> Optional[list[Any]]:
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            return errors
    return None
