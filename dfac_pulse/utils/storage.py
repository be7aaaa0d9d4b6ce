"""
Storage utility.

Append-only record store for survey responses, plus backend selection.
"""

import json
import os
import logging
import uuid
from typing import Dict, List, Optional

from dfac_pulse.models.feedback import FeedbackRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the record store rejects an append or fetch."""


def sort_most_recent_first(records: List[FeedbackRecord]) -> List[FeedbackRecord]:
    """Order by timestamp ascending, then reverse so the newest comes first."""
    return list(reversed(sorted(records, key=lambda r: r.timestamp)))


class JsonRecordStore:
    """
    Keeps survey responses in a single JSON file (data_root/surveys.json).

    The file holds an object keyed by record id, the same shape the hosted
    store uses, so exported data can be moved between backends.
    """

    def __init__(self, data_root: str, filename: str = "surveys.json"):
        """
        Initialize record store.

        Args:
            data_root: Root data directory (e.g., /path/to/data)
            filename: Name of the JSON file under data_root
        """
        self.data_root = data_root
        self.path = os.path.join(data_root, filename)

        os.makedirs(self.data_root, exist_ok=True)

        logger.info(f"Initialized JsonRecordStore at {self.path}")

    def append(self, record: FeedbackRecord) -> str:
        """
        Persist a new record.

        Args:
            record: Record to store (any id it carries is ignored)

        Returns:
            Identifier assigned to the stored record

        Raises:
            ValueError: If the record fails validation
            StoreError: If the file cannot be read or written
        """
        record.validate()

        records = self._read()
        record_id = uuid.uuid4().hex
        records[record_id] = record.to_dict()

        # Atomic write: write to temp file, then rename
        temp_path = f"{self.path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(records, f, indent=2)
            os.replace(temp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write survey response: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise StoreError(f"Failed to write {self.path}: {e}") from e

        logger.info(f"Stored survey response {record_id}")
        return record_id

    def fetch_all(self) -> List[FeedbackRecord]:
        """
        Load every stored record, most recent first.

        Returns:
            List of FeedbackRecord (empty if nothing has been stored)

        Raises:
            StoreError: If the file exists but cannot be read or parsed
        """
        records = [
            FeedbackRecord.from_dict(data, record_id=record_id)
            for record_id, data in self._read().items()
            if isinstance(data, dict)
        ]
        logger.debug(f"Loaded {len(records)} survey responses from {self.path}")
        return sort_most_recent_first(records)

    def _read(self) -> Dict[str, Dict]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read survey responses: {e}")
            raise StoreError(f"Failed to read {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreError(f"Unexpected content in {self.path}: expected an object")
        return data


def create_record_store(
    backend: str,
    data_root: str,
    database_url: str = "",
    auth_token: Optional[str] = None,
    timeout: Optional[float] = None
):
    """
    Build the configured record store.

    Args:
        backend: "json" or "firebase"
        data_root: Data directory for the JSON backend
        database_url: Realtime Database URL for the Firebase backend
        auth_token: Optional Firebase auth token
        timeout: Optional HTTP timeout in seconds for the Firebase backend

    Returns:
        JsonRecordStore or FirebaseRecordStore
    """
    if backend == "json":
        return JsonRecordStore(data_root)

    if backend == "firebase":
        from dfac_pulse.utils.firebase import FirebaseRecordStore

        if not database_url:
            raise ValueError("FIREBASE_DATABASE_URL must be set for the firebase backend")
        return FirebaseRecordStore(database_url, auth_token=auth_token, timeout=timeout)

    raise ValueError(f"Unknown store backend: {backend}. Must be 'json' or 'firebase'")
