"""Converts fragment bytes between supported representations."""

import csv
import io
import json
from typing import Callable, Dict, List

import yaml
from markdown_it import MarkdownIt
from PIL import Image, UnidentifiedImageError

from common.logging_config import get_logger
from fragments.exceptions import ConversionError, UnsupportedConversionError
from fragments.type_registry import IMAGE_TYPES, FragmentType, TypeRegistry

logger = get_logger(__name__)

Converter = Callable[[bytes, FragmentType, FragmentType], bytes]

# Pillow encoder names per image type.
PILLOW_FORMATS = {
    FragmentType.IMAGE_PNG: "PNG",
    FragmentType.IMAGE_JPEG: "JPEG",
    FragmentType.IMAGE_WEBP: "WEBP",
    FragmentType.IMAGE_AVIF: "AVIF",
    FragmentType.IMAGE_GIF: "GIF",
}

# Image modes each encoder accepts without conversion.
ENCODER_MODES = {
    FragmentType.IMAGE_PNG: ("1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"),
    FragmentType.IMAGE_GIF: ("L", "P", "RGB", "RGBA"),
    FragmentType.IMAGE_JPEG: ("RGB", "L", "CMYK"),
    FragmentType.IMAGE_AVIF: ("RGB", "RGBA"),
    FragmentType.IMAGE_WEBP: ("RGB", "RGBA"),
}


def decode_text(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing invalid sequences with U+FFFD."""
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8", errors="replace")


def _text_to_plain(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    return decode_text(data).encode("utf-8")


def _json_to_plain(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    try:
        parsed = json.loads(decode_text(data))
    except ValueError as e:
        raise ConversionError(f"Failed to convert to plain text: {e}") from e
    return json.dumps(parsed, indent=2, ensure_ascii=False).encode("utf-8")


def _yaml_to_plain(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    try:
        parsed = yaml.safe_load(decode_text(data))
        text = yaml.safe_dump(parsed, indent=2, sort_keys=False, allow_unicode=True)
    except yaml.YAMLError as e:
        raise ConversionError(f"Failed to convert to plain text: {e}") from e
    return text.encode("utf-8")


def _markdown_to_html(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    renderer = MarkdownIt("commonmark")
    return renderer.render(decode_text(data)).encode("utf-8")


def csv_to_records(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text using the first row as field names.

    Rows shorter than the header yield objects holding only the columns
    present; fields beyond the header are dropped; blank lines are skipped.
    """
    rows = [row for row in csv.reader(io.StringIO(text)) if row]
    if not rows:
        return []
    header, body = rows[0], rows[1:]
    return [dict(zip(header, row)) for row in body]


def _csv_to_json(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    try:
        records = csv_to_records(decode_text(data))
    except csv.Error as e:
        raise ConversionError(f"Failed to convert CSV to JSON: {e}") from e
    return json.dumps(records, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _json_to_yaml(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    try:
        parsed = json.loads(decode_text(data))
    except ValueError as e:
        raise ConversionError(f"Failed to convert JSON to YAML: {e}") from e
    return yaml.safe_dump(parsed, sort_keys=False, allow_unicode=True).encode("utf-8")


def _convert_image(data: bytes, source: FragmentType, target: FragmentType) -> bytes:
    try:
        with Image.open(io.BytesIO(bytes(data))) as image:
            image.load()
            allowed_modes = ENCODER_MODES.get(target)
            if allowed_modes and image.mode not in allowed_modes:
                image = image.convert("RGBA" if "RGBA" in allowed_modes and "A" in image.mode else "RGB")
            output = io.BytesIO()
            image.save(output, format=PILLOW_FORMATS[target])
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, KeyError) as e:
        raise ConversionError(f"Failed to convert image: {e}") from e
    return output.getvalue()


class FormatConverter:
    """
    Two-level dispatch: target type first, then source type within that target.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self.converters: Dict[FragmentType, Dict[FragmentType, Converter]] = {
            FragmentType.TEXT_PLAIN: {
                FragmentType.TEXT_HTML: _text_to_plain,
                FragmentType.TEXT_CSV: _text_to_plain,
                FragmentType.TEXT_MARKDOWN: _text_to_plain,
                FragmentType.APPLICATION_JSON: _json_to_plain,
                FragmentType.APPLICATION_YAML: _yaml_to_plain,
            },
            FragmentType.TEXT_HTML: {
                FragmentType.TEXT_MARKDOWN: _markdown_to_html,
            },
            FragmentType.APPLICATION_JSON: {
                FragmentType.TEXT_CSV: _csv_to_json,
            },
            FragmentType.APPLICATION_YAML: {
                FragmentType.APPLICATION_JSON: _json_to_yaml,
            },
        }
        for image_target in IMAGE_TYPES:
            self.converters[image_target] = {source: _convert_image for source in IMAGE_TYPES}

    def convert(self, data: bytes, source_type: str, target_type: str) -> bytes:
        """
        Convert a payload from one supported type to another.

        Args:
            data: Stored fragment bytes
            source_type: Fragment's Content-Type (parameters allowed)
            target_type: Requested MIME type

        Returns:
            Converted bytes; the input unchanged when source and target match

        Raises:
            UnsupportedConversionError: If the pair is not in the converter table
            ConversionError: If the codec fails on the payload
        """
        source = self.registry.lookup(source_type)
        target = self.registry.lookup(target_type)

        family = self.converters.get(target) if target else None
        if family is None:
            raise UnsupportedConversionError(
                f"Type conversion from {source_type} to {target_type} is currently not supported by the API."
            )

        if source is target:
            return bytes(data)

        converter = family.get(source) if source else None
        if converter is None:
            raise UnsupportedConversionError(
                f"Type conversion from {source_type} to {target_type} is not supported."
            )

        logger.debug(f"Converting {len(data)} bytes from {source.value} to {target.value}")
        return converter(data, source, target)
