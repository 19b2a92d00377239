"""Supported fragment types, their file extensions and legal conversions."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from fragments.exceptions import MalformedContentTypeError
from fragments.media_type import base_type


class FragmentType(str, Enum):
    """
    Every MIME type the service accepts for ingestion.
    """
    TEXT_PLAIN = "text/plain"
    TEXT_MARKDOWN = "text/markdown"
    TEXT_HTML = "text/html"
    TEXT_CSV = "text/csv"
    APPLICATION_JSON = "application/json"
    APPLICATION_YAML = "application/yaml"
    IMAGE_PNG = "image/png"
    IMAGE_JPEG = "image/jpeg"
    IMAGE_WEBP = "image/webp"
    IMAGE_AVIF = "image/avif"
    IMAGE_GIF = "image/gif"

    @property
    def is_text(self) -> bool:
        return self.value.startswith("text/")

    @property
    def is_image(self) -> bool:
        return self.value.startswith("image/")


TEXT_TYPES = (
    FragmentType.TEXT_PLAIN,
    FragmentType.TEXT_MARKDOWN,
    FragmentType.TEXT_HTML,
    FragmentType.TEXT_CSV,
)

IMAGE_TYPES = (
    FragmentType.IMAGE_PNG,
    FragmentType.IMAGE_JPEG,
    FragmentType.IMAGE_WEBP,
    FragmentType.IMAGE_AVIF,
    FragmentType.IMAGE_GIF,
)


def _image_targets(source: FragmentType) -> Tuple[FragmentType, ...]:
    return (source,) + tuple(t for t in IMAGE_TYPES if t is not source)


DEFAULT_CONVERSIONS = {
    FragmentType.TEXT_PLAIN: (FragmentType.TEXT_PLAIN,),
    FragmentType.TEXT_MARKDOWN: (
        FragmentType.TEXT_MARKDOWN,
        FragmentType.TEXT_HTML,
        FragmentType.TEXT_PLAIN,
    ),
    FragmentType.TEXT_HTML: (FragmentType.TEXT_HTML, FragmentType.TEXT_PLAIN),
    FragmentType.TEXT_CSV: (
        FragmentType.TEXT_CSV,
        FragmentType.TEXT_PLAIN,
        FragmentType.APPLICATION_JSON,
    ),
    FragmentType.APPLICATION_JSON: (
        FragmentType.APPLICATION_JSON,
        FragmentType.APPLICATION_YAML,
        FragmentType.TEXT_PLAIN,
    ),
    FragmentType.APPLICATION_YAML: (FragmentType.APPLICATION_YAML, FragmentType.TEXT_PLAIN),
    **{image: _image_targets(image) for image in IMAGE_TYPES},
}

DEFAULT_EXTENSIONS = {
    ".txt": FragmentType.TEXT_PLAIN,
    ".md": FragmentType.TEXT_MARKDOWN,
    ".html": FragmentType.TEXT_HTML,
    ".csv": FragmentType.TEXT_CSV,
    ".json": FragmentType.APPLICATION_JSON,
    ".yaml": FragmentType.APPLICATION_YAML,
    ".yml": FragmentType.APPLICATION_YAML,
    ".png": FragmentType.IMAGE_PNG,
    ".jpg": FragmentType.IMAGE_JPEG,
    ".jpeg": FragmentType.IMAGE_JPEG,
    ".webp": FragmentType.IMAGE_WEBP,
    ".avif": FragmentType.IMAGE_AVIF,
    ".gif": FragmentType.IMAGE_GIF,
}

DEFAULT_ALIASES = {
    "application/yml": FragmentType.APPLICATION_YAML,
}

BASE_TYPES = frozenset(t.value for t in FragmentType)


def is_known_type(value: str) -> bool:
    """True if the base MIME type of value is a FragmentType or a built-in alias."""
    try:
        mime = base_type(value)
    except MalformedContentTypeError:
        return False
    return mime in BASE_TYPES or mime in DEFAULT_ALIASES


@dataclass(frozen=True)
class TypeRegistry:
    """
    Immutable table of supported types, extensions and conversion targets.

    Build one with ``default_registry()`` at startup and pass it to the
    components that need it. Adding a type means one entry in each table
    plus a converter case in ``fragments.conversion``.
    """
    conversions: Mapping[FragmentType, Tuple[FragmentType, ...]]
    extensions: Mapping[str, FragmentType]
    aliases: Mapping[str, FragmentType]

    def __post_init__(self):
        missing = [t.value for t in FragmentType if t not in self.conversions]
        if missing:
            raise ValueError(f"No conversion targets registered for: {', '.join(missing)}")
        for source, targets in self.conversions.items():
            if not targets or targets[0] is not source:
                raise ValueError(f"Conversion targets for {source.value} must start with itself")

    def lookup(self, value: str) -> Optional[FragmentType]:
        """
        Resolve a Content-Type value to a FragmentType.

        Args:
            value: MIME type, optionally with parameters

        Returns:
            The matching FragmentType, or None if unsupported or unparseable
        """
        try:
            mime = base_type(value)
        except MalformedContentTypeError:
            return None
        try:
            return FragmentType(mime)
        except ValueError:
            return self.aliases.get(mime)

    def is_supported(self, value: str) -> bool:
        return self.lookup(value) is not None

    def conversion_targets(self, value: str) -> Tuple[str, ...]:
        """
        Ordered MIME types a fragment of the given type can be served as.

        Returns:
            Tuple of MIME type strings, empty for unregistered types
        """
        fragment_type = self.lookup(value)
        if fragment_type is None:
            return ()
        return tuple(target.value for target in self.conversions[fragment_type])

    def type_for_extension(self, extension: str) -> Optional[str]:
        """
        Map a file extension (with or without the leading dot) to a MIME type.
        """
        if not extension:
            return None
        if not extension.startswith("."):
            extension = "." + extension
        fragment_type = self.extensions.get(extension.lower())
        return fragment_type.value if fragment_type else None

    def is_text(self, value: str) -> bool:
        fragment_type = self.lookup(value)
        return fragment_type is not None and fragment_type.is_text

    def is_image(self, value: str) -> bool:
        fragment_type = self.lookup(value)
        return fragment_type is not None and fragment_type.is_image


def default_registry() -> TypeRegistry:
    """Build the registry with the service's built-in type tables."""
    return TypeRegistry(
        conversions=MappingProxyType(dict(DEFAULT_CONVERSIONS)),
        extensions=MappingProxyType(dict(DEFAULT_EXTENSIONS)),
        aliases=MappingProxyType(dict(DEFAULT_ALIASES)),
    )
