"""Checks that fragment bytes are well-formed for their declared type."""

import io
import json

import yaml
from PIL import Image, UnidentifiedImageError

from common.logging_config import get_logger
from fragments.exceptions import ContentValidationError, UnsupportedTypeError
from fragments.type_registry import FragmentType, TypeRegistry

logger = get_logger(__name__)

# Pillow format names that differ from the MIME subtype they decode.
IMAGE_FORMAT_EQUIVALENTS = {
    "heif": "avif",
    "jpg": "jpeg",
}


class ContentValidator:
    """
    Validates raw payloads against declared fragment types.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def validate(self, data, declared_type: str) -> None:
        """
        Confirm the payload is well-formed for the declared type.

        Args:
            data: Raw payload (bytes, or str for text types)
            declared_type: Content-Type value, parameters allowed

        Raises:
            ContentValidationError: If the payload is malformed for the type
            UnsupportedTypeError: If the type is not supported at all
        """
        fragment_type = self.registry.lookup(declared_type)
        if fragment_type is None:
            logger.error(f"Unsupported content type: {declared_type}")
            raise UnsupportedTypeError("Unsupported content type")

        if fragment_type.is_text:
            validate_text(data)
        elif fragment_type is FragmentType.APPLICATION_JSON:
            validate_json(data)
        elif fragment_type is FragmentType.APPLICATION_YAML:
            validate_yaml(data)
        elif fragment_type.is_image:
            validate_image(data, fragment_type)
        else:
            raise UnsupportedTypeError("Unsupported content type")


def validate_text(data) -> None:
    if not isinstance(data, (bytes, bytearray, memoryview, str)):
        message = "Invalid text data, must be a string or buffer"
        logger.error(message)
        raise ContentValidationError(message)


def validate_json(data) -> None:
    try:
        json.loads(_as_text(data))
    except (ValueError, TypeError) as e:
        message = f"Invalid JSON data: {e}"
        logger.error(message)
        raise ContentValidationError(message) from e


def validate_yaml(data) -> None:
    try:
        yaml.safe_load(_as_text(data))
    except (yaml.YAMLError, ValueError, TypeError) as e:
        message = f"Invalid YAML data: {e}"
        logger.error(message)
        raise ContentValidationError(message) from e


def validate_image(data, fragment_type: FragmentType) -> None:
    """
    Decode the image and check the detected format against the declared subtype.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ContentValidationError("Invalid image data, must be a buffer")

    try:
        with Image.open(io.BytesIO(bytes(data))) as image:
            detected = (image.format or "").lower()
            image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        message = f"Invalid image data: {e}"
        logger.error(message)
        raise ContentValidationError(message) from e

    detected = IMAGE_FORMAT_EQUIVALENTS.get(detected, detected)
    expected = fragment_type.value.split("/", 1)[1]
    if detected != expected:
        message = f"Image format mismatch: declared {fragment_type.value}, detected {detected or 'unknown'}"
        logger.error(message)
        raise ContentValidationError(message)


def _as_text(data) -> str:
    if isinstance(data, str):
        return data
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data).decode("utf-8")
    raise TypeError(f"expected str or bytes, got {type(data).__name__}")
