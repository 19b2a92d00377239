"""Fragment service for request-level business logic."""

from typing import List, Optional, Tuple, Union

from common.logging_config import get_logger
from fragments.conversion import FormatConverter
from fragments.exceptions import (
    ContentValidationError,
    EmptyBodyError,
    FragmentNotFoundError,
    PayloadTooLargeError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from fragments.fragment import Fragment, FragmentStore
from fragments.media_type import MediaType, parse_media_type
from fragments.resolver import RetrievalResolver
from fragments.validation import ContentValidator

logger = get_logger(__name__)


class FragmentService:
    def __init__(
        self,
        store: FragmentStore,
        validator: ContentValidator,
        converter: FormatConverter,
        resolver: RetrievalResolver,
        max_fragment_size: int,
    ):
        self.store = store
        self.registry = store.registry
        self.validator = validator
        self.converter = converter
        self.resolver = resolver
        self.max_fragment_size = max_fragment_size

    def _parse_declared_type(self, content_type: Optional[str], message: str) -> MediaType:
        if not content_type:
            logger.error("Request is missing a Content-Type header")
            raise UnsupportedTypeError(message)
        media_type = parse_media_type(content_type)
        if not self.registry.is_supported(media_type.type):
            logger.error(f"Unsupported Content-Type: {media_type.type}")
            raise UnsupportedTypeError(message)
        return media_type

    def _check_size(self, body: bytes) -> None:
        if len(body) > self.max_fragment_size:
            raise PayloadTooLargeError(
                f"Fragment exceeds the maximum size of {self.max_fragment_size} bytes"
            )

    def create_fragment(self, owner_id: str, content_type: Optional[str], body: bytes) -> Fragment:
        """
        Validate and store a new fragment.

        Args:
            owner_id: Authenticated owner
            content_type: Raw Content-Type header value
            body: Raw request body

        Returns:
            The stored fragment

        Raises:
            UnsupportedTypeError: Missing or unsupported Content-Type
            MalformedContentTypeError: Unparseable Content-Type
            EmptyBodyError: Empty body
            PayloadTooLargeError: Body above the upload ceiling
            ContentValidationError: Body malformed for the declared type
        """
        self._parse_declared_type(content_type, "invalid content-type of request")

        if not body:
            logger.error("Empty fragment body received")
            raise EmptyBodyError("Fragment cannot be null")
        self._check_size(body)

        try:
            self.validator.validate(body, content_type)
        except ContentValidationError as e:
            raise ContentValidationError(f"Unsupported Content-Type. {e}") from e

        fragment = self.store.create(owner_id, content_type.strip())
        self.store.set_data(fragment, body)
        logger.info(f"Fragment created [fragment_id={fragment.id}] type={fragment.type} size={fragment.size}")
        return fragment

    def update_fragment(
        self,
        owner_id: str,
        fragment_id: str,
        content_type: Optional[str],
        body: bytes,
    ) -> Fragment:
        """
        Replace an existing fragment's data, keeping its base type.

        Raises:
            UnsupportedTypeError: Missing or unsupported Content-Type
            MalformedContentTypeError: Unparseable Content-Type
            EmptyBodyError: Empty body
            PayloadTooLargeError: Body above the upload ceiling
            FragmentNotFoundError: No such fragment for this owner
            ContentValidationError: Body malformed for the declared type
            TypeMismatchError: Declared base type differs from the stored one
        """
        media_type = self._parse_declared_type(
            content_type, "Unsupported Content-Type request - expected Buffer"
        )

        if not body:
            logger.error("Empty request body received")
            raise EmptyBodyError("Empty request body received")
        self._check_size(body)

        try:
            fragment = self.store.by_id(owner_id, fragment_id)
        except FragmentNotFoundError as e:
            logger.error(f"Fragment does not exist [fragment_id={fragment_id}]")
            raise FragmentNotFoundError("Request fragment does not exist") from e

        try:
            self.validator.validate(body, content_type)
        except ContentValidationError as e:
            raise ContentValidationError(f"Fragment validation failed {e}") from e

        if self.registry.lookup(media_type.type) is not self.registry.lookup(fragment.type):
            logger.error(
                f"Content type mismatch [fragment_id={fragment_id}] "
                f"stored={fragment.mime_type} declared={media_type.type}"
            )
            raise TypeMismatchError("Content type mismatch detected")

        fragment.type = content_type.strip()
        self.store.set_data(fragment, body)
        logger.info(f"Fragment updated [fragment_id={fragment.id}] size={fragment.size}")
        return self.store.by_id(owner_id, fragment.id)

    def get_fragment(self, owner_id: str, fragment_id: str, message: str = "Fragment not found") -> Fragment:
        try:
            return self.store.by_id(owner_id, fragment_id)
        except FragmentNotFoundError as e:
            logger.warning(f"Fragment not found [fragment_id={fragment_id}]")
            raise FragmentNotFoundError(message) from e

    def get_fragment_content(
        self,
        owner_id: str,
        fragment_id: str,
        extension: Optional[str] = None,
    ) -> Tuple[bytes, str]:
        """
        Fetch a fragment's bytes, converted when an extension asks for it.

        Returns:
            Tuple of (payload, Content-Type to report)

        Raises:
            FragmentNotFoundError: No such fragment for this owner
            UnknownExtensionError: Extension maps to no known type
            UnsupportedConversionError: Fragment cannot be served as that type
            ConversionError: Codec failure while converting
        """
        fragment = self.get_fragment(owner_id, fragment_id)
        resolution = self.resolver.resolve(fragment, extension)
        data = self.store.get_data(fragment)

        if not resolution.convert:
            return data, resolution.target_type

        converted = self.converter.convert(data, fragment.type, resolution.target_type)
        logger.info(
            f"Fragment converted [fragment_id={fragment.id}] "
            f"{fragment.mime_type} -> {resolution.target_type}"
        )
        return converted, resolution.target_type

    def list_fragments(self, owner_id: str, expand: bool = False) -> Union[List[str], List[Fragment]]:
        return self.store.by_user(owner_id, expand)

    def delete_fragment(self, owner_id: str, fragment_id: str) -> None:
        fragment = self.get_fragment(
            owner_id, fragment_id, message="The requested fragment doesn't exist."
        )
        self.store.delete(fragment.owner_id, fragment.id)
        logger.info(f"Fragment deleted [fragment_id={fragment.id}]")
