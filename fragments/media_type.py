"""Content-Type header parsing and formatting."""

import re
from dataclasses import dataclass, field
from typing import Dict

from fragments.exceptions import MalformedContentTypeError


_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_TYPE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")
_PARAM_RE = re.compile(
    rf'\s*;\s*({_TOKEN})\s*=\s*({_TOKEN}|"(?:[^"\\]|\\.)*")\s*'
)
_QUOTED_PAIR_RE = re.compile(r"\\(.)")


@dataclass(frozen=True)
class MediaType:
    """
    A parsed media type: lowercase ``type/subtype`` plus parameters.
    """
    type: str
    parameters: Dict[str, str] = field(default_factory=dict)

    @property
    def subtype(self) -> str:
        return self.type.split("/", 1)[1]

    @property
    def charset(self):
        return self.parameters.get("charset")

    def __str__(self) -> str:
        return format_media_type(self.type, self.parameters)


def parse_media_type(value: str) -> MediaType:
    """
    Parse a Content-Type header value.

    Args:
        value: Header value (e.g., "text/plain; charset=utf-8")

    Returns:
        MediaType with lowercased type and parameter names

    Raises:
        MalformedContentTypeError: If the value is not a valid media type
    """
    if not isinstance(value, str):
        raise MalformedContentTypeError("invalid media type")

    index = value.find(";")
    base = value[:index] if index != -1 else value
    match = _TYPE_RE.match(base.strip())
    if match is None:
        raise MalformedContentTypeError("invalid media type")

    parameters: Dict[str, str] = {}
    position = index if index != -1 else len(value)
    while position < len(value):
        param = _PARAM_RE.match(value, position)
        if param is None:
            raise MalformedContentTypeError("invalid parameter format")
        name, raw = param.group(1).lower(), param.group(2)
        if raw.startswith('"'):
            raw = _QUOTED_PAIR_RE.sub(r"\1", raw[1:-1])
        parameters[name] = raw
        position = param.end()

    return MediaType(type=base.strip().lower(), parameters=parameters)


def base_type(value: str) -> str:
    """Return the type/subtype portion of a Content-Type value."""
    return parse_media_type(value).type


def format_media_type(media_type: str, parameters: Dict[str, str] = None) -> str:
    """
    Format a media type and parameters as a header value.

    Args:
        media_type: type/subtype string
        parameters: Optional parameters; values that are not tokens are quoted

    Returns:
        Header value (e.g., "text/plain; charset=utf-8")
    """
    parts = [media_type]
    for name in sorted(parameters or {}):
        value = parameters[name]
        if not re.fullmatch(_TOKEN, value):
            value = '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
        parts.append(f"{name}={value}")
    return "; ".join(parts)
