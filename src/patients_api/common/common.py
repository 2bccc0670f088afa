"""
Shared lightweight types and helpers used across the patients API.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, TypeAlias

# This project uses JSON request/response bodies as strings in the controller layer.
# The alias is used to make intent clearer in function signatures.
json_str: TypeAlias = str

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

_DIGITS = re.compile(r"[0-9]+")


@dataclass
class FlaskResponse:
    """
    Lightweight response container returned by controller and router entry points.

    This mirrors the minimal set of fields used by the surrounding web framework.

    :param status_code: HTTP status code for the response (e.g., 200, 400, 404).
    :param data: Response body, if any. Text for JSON bodies, bytes for static files.
    :param headers: Response headers, if any.
    """

    status_code: int
    data: str | bytes | None = None
    headers: dict[str, str] | None = None


def json_response(
    status_code: int, body: Any, headers: dict[str, str] | None = None
) -> FlaskResponse:
    """
    Build a JSON :class:`FlaskResponse`.

    :param status_code: HTTP status code.
    :param body: JSON-serialisable body.
    :param headers: Extra headers, merged over the JSON content type.
    :returns: The response container.
    """
    all_headers = {"Content-Type": JSON_CONTENT_TYPE}
    if headers:
        all_headers.update(headers)
    return FlaskResponse(
        status_code=status_code, data=json.dumps(body), headers=all_headers
    )


def error_response(status_code: int, message: str) -> FlaskResponse:
    """Build an ``{"error": message}`` JSON response."""
    return json_response(status_code, {"error": message})


def no_content(status_code: int = 204) -> FlaskResponse:
    return FlaskResponse(status_code=status_code)


def coerce_positive_int(value: object) -> int | None:
    """
    Coerce a patient identifier to a positive integer.

    Accepted inputs:
    - ``int`` (but not ``bool``);
    - ``float`` with no fractional part;
    - ``str`` of ASCII digits, optionally surrounded by whitespace.

    :param value: Candidate identifier.
    :returns: The identifier as an ``int``, or ``None`` if it is not a positive
        integer.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not _DIGITS.fullmatch(stripped):
            return None
        try:
            number = int(stripped)
        except ValueError:
            # Longer than the interpreter's int string conversion limit.
            return None
    else:
        return None

    if number <= 0:
        return None

    return number


def is_positive_int(value: object) -> bool:
    """Return ``True`` if ``value`` is an ``int`` (not ``bool``) greater than zero."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
