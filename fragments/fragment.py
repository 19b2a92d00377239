"""Fragment metadata record and its lifecycle operations."""

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple, Union

from common.logging_config import get_logger
from fragments.exceptions import (
    FragmentNotFoundError,
    InvalidFragmentDataError,
    InvalidFragmentError,
    UnsupportedTypeError,
)
from fragments.media_type import parse_media_type
from fragments.repositories.base import FragmentBackend
from fragments.type_registry import TypeRegistry, is_known_type
from fragments.utils import generate_uuid, get_current_timestamp

logger = get_logger(__name__)


@dataclass
class Fragment:
    owner_id: str
    type: str
    id: str = field(default_factory=generate_uuid)
    size: int = 0
    created: str = field(default_factory=get_current_timestamp)
    updated: Optional[str] = None

    def __post_init__(self):
        if not self.owner_id or not self.type:
            raise InvalidFragmentError("Owner Id and type are required")
        if not is_known_type(self.type):
            raise UnsupportedTypeError(f"Invalid Type: {self.type}")
        if isinstance(self.size, bool) or not isinstance(self.size, Real) or self.size < 0:
            raise InvalidFragmentError("Size should be a number which is >= 0")
        if not self.id:
            self.id = generate_uuid()
        if not self.created:
            self.created = get_current_timestamp()
        if not self.updated:
            self.updated = self.created

    @property
    def mime_type(self) -> str:
        """
        The type without parameters: "text/html; charset=utf-8" -> "text/html".
        """
        return parse_media_type(self.type).type

    @property
    def charset(self) -> Optional[str]:
        return parse_media_type(self.type).charset

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "created": self.created,
            "updated": self.updated,
            "type": self.type,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Fragment":
        return cls(
            id=record.get("id"),
            owner_id=record.get("ownerId"),
            created=record.get("created"),
            updated=record.get("updated"),
            type=record.get("type"),
            size=record.get("size", 0),
        )


class FragmentStore:
    """
    Fragment lifecycle operations over a FragmentBackend.

    Metadata is always saved before data is written. If the data write then
    fails, the error propagates and the metadata keeps describing the new
    size until the next successful write.
    """

    def __init__(self, backend: FragmentBackend, registry: TypeRegistry):
        self.backend = backend
        self.registry = registry

    def create(self, owner_id: str, type: str, size: Union[int, float] = 0) -> Fragment:
        """
        Build a new fragment (not yet persisted).

        Raises:
            InvalidFragmentError: If owner_id/type are missing or size is invalid
            UnsupportedTypeError: If the type is not in the registry
        """
        if owner_id and type and not self.registry.is_supported(type):
            raise UnsupportedTypeError(f"Invalid Type: {type}")
        return Fragment(owner_id=owner_id, type=type, size=size)

    def save(self, fragment: Fragment) -> None:
        fragment.updated = get_current_timestamp()
        self.backend.write_metadata(fragment.owner_id, fragment.id, fragment.to_dict())

    def set_data(self, fragment: Fragment, data: bytes) -> None:
        """
        Replace the fragment's payload and refresh its metadata.

        Args:
            fragment: Fragment to write
            data: Raw payload, must be bytes or bytearray

        Raises:
            InvalidFragmentDataError: If data is not a byte buffer
        """
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidFragmentDataError("Invalid Data. Did not receive valid data")

        fragment.size = len(data)
        self.save(fragment)
        try:
            self.backend.write_data(fragment.owner_id, fragment.id, bytes(data))
        except Exception as e:
            logger.error(
                f"Metadata saved but data write failed [fragment_id={fragment.id}] "
                f"size={fragment.size}: {e}",
                exc_info=True
            )
            raise

    def get_data(self, fragment: Fragment) -> bytes:
        data = self.backend.read_data(fragment.owner_id, fragment.id)
        if data is None:
            logger.error(f"Fragment has metadata but no data [fragment_id={fragment.id}]")
            raise FragmentNotFoundError(f"Fragment {fragment.id} has no data")
        return data

    def by_id(self, owner_id: str, fragment_id: str) -> Fragment:
        """
        Fetch a fragment's metadata by exact (owner_id, id).

        Raises:
            FragmentNotFoundError: If no metadata exists for the pair
        """
        record = self.backend.read_metadata(owner_id, fragment_id)
        if record is None:
            raise FragmentNotFoundError(f"Fragment {fragment_id} does not exist")
        return Fragment.from_dict(record)

    def by_user(self, owner_id: str, expand: bool = False) -> Union[List[str], List[Fragment]]:
        records = self.backend.list_metadata(owner_id)
        if expand:
            return [Fragment.from_dict(record) for record in records]
        return [record["id"] for record in records]

    def delete(self, owner_id: str, fragment_id: str) -> None:
        self.backend.delete(owner_id, fragment_id)

    def formats(self, fragment: Fragment) -> Tuple[str, ...]:
        return self.registry.conversion_targets(fragment.type)
