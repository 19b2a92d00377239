"""In-process fragment backend."""

import copy
import threading
from typing import Any, Dict, List, Optional, Tuple

from common.logging_config import get_logger
from fragments.repositories.base import FragmentBackend

logger = get_logger(__name__)


class MemoryBackend(FragmentBackend):
    """
    Keeps metadata and data in two dictionaries keyed by (owner_id, id).
    """

    def __init__(self):
        self._metadata: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._data: Dict[Tuple[str, str], bytes] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(owner_id: str, fragment_id: str) -> Tuple[str, str]:
        if not owner_id or not fragment_id:
            raise ValueError("owner_id and fragment_id are required")
        return owner_id, fragment_id

    def read_metadata(self, owner_id: str, fragment_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._metadata.get(self._key(owner_id, fragment_id))
            return copy.deepcopy(record) if record is not None else None

    def write_metadata(self, owner_id: str, fragment_id: str, metadata: Dict[str, Any]) -> None:
        with self._lock:
            self._metadata[self._key(owner_id, fragment_id)] = copy.deepcopy(metadata)
        logger.debug(f"Metadata written [owner_id={owner_id}] [fragment_id={fragment_id}]")

    def list_metadata(self, owner_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(record)
                for (owner, _), record in self._metadata.items()
                if owner == owner_id
            ]

    def read_data(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(self._key(owner_id, fragment_id))

    def write_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        with self._lock:
            self._data[self._key(owner_id, fragment_id)] = bytes(data)
        logger.debug(f"Data written [owner_id={owner_id}] [fragment_id={fragment_id}] size={len(data)}")

    def delete(self, owner_id: str, fragment_id: str) -> None:
        key = self._key(owner_id, fragment_id)
        with self._lock:
            self._metadata.pop(key, None)
            self._data.pop(key, None)
        logger.debug(f"Fragment deleted [owner_id={owner_id}] [fragment_id={fragment_id}]")
