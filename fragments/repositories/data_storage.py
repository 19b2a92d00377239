"""Manages fragment payload files on disk."""

import os
import tempfile
from pathlib import Path
from typing import Optional


class FragmentDataStorage:
    """
    Stores each payload at ``<root>/<owner_id>/<fragment_id>.bin``.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def ensure_directory(self, owner_id: str) -> Path:
        """Ensure the owner's directory exists."""
        directory = self.root / owner_id
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def get_path(self, owner_id: str, fragment_id: str) -> Path:
        """
        Get file path for a payload.

        Args:
            owner_id: Owner partition
            fragment_id: UUID of the fragment

        Returns:
            Path object for the payload file
        """
        if not owner_id or not fragment_id or "/" in fragment_id or "\\" in fragment_id:
            raise ValueError(f"Invalid fragment key: {owner_id}/{fragment_id}")
        return self.root / owner_id / f"{fragment_id}.bin"

    def write(self, owner_id: str, fragment_id: str, data: bytes) -> str:
        """
        Write payload to disk, replacing any previous payload atomically.

        Returns:
            String path to written file

        Raises:
            OSError: If write operation fails
        """
        directory = self.ensure_directory(owner_id)
        filepath = self.get_path(owner_id, fragment_id)
        fd, tmp_name = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, filepath)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return str(filepath)

    def read(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        """
        Read entire payload from disk.

        Returns:
            Raw payload, or None if it does not exist
        """
        filepath = self.get_path(owner_id, fragment_id)
        if not filepath.exists():
            return None
        return filepath.read_bytes()

    def delete(self, owner_id: str, fragment_id: str) -> bool:
        """
        Delete payload file from disk.

        Returns:
            True if file was deleted, False if it didn't exist
        """
        filepath = self.get_path(owner_id, fragment_id)
        if filepath.exists():
            filepath.unlink()
            return True
        return False

    def exists(self, owner_id: str, fragment_id: str) -> bool:
        return self.get_path(owner_id, fragment_id).exists()
