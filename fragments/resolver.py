"""Decides how a fragment is served for a requested extension."""

from dataclasses import dataclass
from typing import Optional

from common.logging_config import get_logger
from fragments.exceptions import UnknownExtensionError, UnsupportedConversionError
from fragments.fragment import Fragment
from fragments.type_registry import TypeRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving a retrieval request.

    ``convert`` is False for passthrough, in which case ``target_type`` is the
    stored type verbatim (charset included).
    """
    target_type: str
    convert: bool


class RetrievalResolver:
    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def resolve(self, fragment: Fragment, extension: Optional[str] = None) -> Resolution:
        """
        Decide between passthrough and conversion.

        Args:
            fragment: Fragment being retrieved
            extension: Requested extension (e.g., ".html"), or None

        Returns:
            Resolution describing the response type and whether to convert

        Raises:
            UnknownExtensionError: If the extension maps to no known MIME type
            UnsupportedConversionError: If the fragment cannot be served as that type
        """
        if not extension:
            return Resolution(target_type=fragment.type, convert=False)

        target = self.registry.type_for_extension(extension)
        if target is None:
            logger.warning(f"Unknown extension requested [fragment_id={fragment.id}] ext={extension}")
            raise UnknownExtensionError(
                f"Unsupported extension '{extension}' requested for fragment {fragment.id}"
            )

        source = self.registry.lookup(fragment.type)
        if source is not None and source.value == target:
            return Resolution(target_type=fragment.type, convert=False)

        allowed = self.registry.conversion_targets(fragment.type)
        if target not in allowed:
            logger.warning(
                f"Conversion not permitted [fragment_id={fragment.id}] {fragment.mime_type} -> {target}"
            )
            raise UnsupportedConversionError(
                f"Conversion from {fragment.mime_type} to {target} is not permitted. "
                f"Allowed conversions: {', '.join(allowed)}"
            )

        return Resolution(target_type=target, convert=True)
