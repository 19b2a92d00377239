"""SQLite metadata plus on-disk payload backend."""

from typing import Any, Dict, List, Optional

from common.logging_config import get_logger
from fragments.database import get_db_connection, init_database, row_to_dict
from fragments.repositories.base import FragmentBackend
from fragments.repositories.data_storage import FragmentDataStorage

logger = get_logger(__name__)

METADATA_COLUMNS = "id, owner_id, type, size, created, updated"


def _row_to_metadata(row) -> Optional[Dict[str, Any]]:
    record = row_to_dict(row)
    if record is None:
        return None
    return {
        "id": record["id"],
        "ownerId": record["owner_id"],
        "type": record["type"],
        "size": record["size"],
        "created": record["created"],
        "updated": record["updated"],
    }


class SQLiteBackend(FragmentBackend):
    """
    Metadata rows in a SQLite ``fragments`` table, payloads in FragmentDataStorage.
    """

    def __init__(self, database_path: str, data_dir: str):
        self.database_path = database_path
        self.data_storage = FragmentDataStorage(data_dir)
        init_database(database_path)
        logger.info(f"SQLite backend ready [database={database_path}] [data_dir={data_dir}]")

    def read_metadata(self, owner_id: str, fragment_id: str) -> Optional[Dict[str, Any]]:
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {METADATA_COLUMNS} FROM fragments WHERE owner_id = ? AND id = ?",
                (owner_id, fragment_id)
            )
            return _row_to_metadata(cursor.fetchone())

    def write_metadata(self, owner_id: str, fragment_id: str, metadata: Dict[str, Any]) -> None:
        logger.debug(f"Writing metadata [owner_id={owner_id}] [fragment_id={fragment_id}]")
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO fragments (owner_id, id, type, size, created, updated)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(owner_id, id) DO UPDATE SET
                    type = excluded.type,
                    size = excluded.size,
                    updated = excluded.updated
                """,
                (
                    owner_id,
                    fragment_id,
                    metadata["type"],
                    metadata["size"],
                    metadata["created"],
                    metadata["updated"],
                )
            )
            conn.commit()

    def list_metadata(self, owner_id: str) -> List[Dict[str, Any]]:
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {METADATA_COLUMNS} FROM fragments WHERE owner_id = ? ORDER BY created",
                (owner_id,)
            )
            return [_row_to_metadata(row) for row in cursor.fetchall()]

    def read_data(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        return self.data_storage.read(owner_id, fragment_id)

    def write_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        path = self.data_storage.write(owner_id, fragment_id, data)
        logger.debug(f"Data written [fragment_id={fragment_id}] path={path} size={len(data)}")

    def delete(self, owner_id: str, fragment_id: str) -> None:
        with get_db_connection(self.database_path) as conn:
            try:
                cursor = conn.cursor()
                cursor.execute(
                    "DELETE FROM fragments WHERE owner_id = ? AND id = ?",
                    (owner_id, fragment_id)
                )
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Failed to delete fragment [fragment_id={fragment_id}]: {e}", exc_info=True)
                raise
        self.data_storage.delete(owner_id, fragment_id)
        logger.info(f"Fragment deleted [owner_id={owner_id}] [fragment_id={fragment_id}]")
