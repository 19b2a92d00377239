"""Key/value contract shared by fragment storage backends."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class FragmentBackend(ABC):
    """
    Persists fragment metadata and data as two records keyed by (owner_id, id).

    Metadata records are plain dicts with the keys produced by
    ``Fragment.to_dict()``.
    """

    @abstractmethod
    def read_metadata(self, owner_id: str, fragment_id: str) -> Optional[Dict[str, Any]]:
        """Return the metadata record, or None if it does not exist."""

    @abstractmethod
    def write_metadata(self, owner_id: str, fragment_id: str, metadata: Dict[str, Any]) -> None:
        """Create or replace the metadata record."""

    @abstractmethod
    def list_metadata(self, owner_id: str) -> List[Dict[str, Any]]:
        """Return every metadata record owned by owner_id."""

    @abstractmethod
    def read_data(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        """Return the stored payload, or None if it does not exist."""

    @abstractmethod
    def write_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        """Create or replace the payload."""

    @abstractmethod
    def delete(self, owner_id: str, fragment_id: str) -> None:
        """Remove both the metadata record and the payload."""

    def close(self) -> None:
        """Release backend resources."""
