"""
Firebase Realtime Database record store.

Talks to the REST API: POST to push a response, GET to read them all.
"""

import logging
from typing import List, Optional

import requests

from dfac_pulse.models.feedback import FeedbackRecord
from dfac_pulse.utils.storage import StoreError, sort_most_recent_first

logger = logging.getLogger(__name__)


class FirebaseRecordStore:
    """
    Record store backed by a hosted Firebase Realtime Database.

    Responses live under /<path>/<push-id>. Ordering is done client-side
    so the database needs no index rules.
    """

    def __init__(
        self,
        database_url: str,
        path: str = "surveys",
        auth_token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Firebase store.

        Args:
            database_url: e.g. https://<project>-default-rtdb.firebaseio.com
            path: Database node holding survey responses
            auth_token: Optional database secret or ID token (sent as ?auth=)
            timeout: Request timeout in seconds (None leaves it to requests)
            session: Optional requests.Session to reuse
        """
        self.base_url = database_url.rstrip("/")
        self.path = path.strip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self.session = session or requests.Session()

        logger.info(f"Initialized FirebaseRecordStore at {self.base_url}/{self.path}")

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.path}.json"

    def append(self, record: FeedbackRecord) -> str:
        """
        Push a new record.

        Returns:
            Push id generated by Firebase

        Raises:
            ValueError: If the record fails validation
            StoreError: On transport failure or an unexpected response
        """
        record.validate()

        try:
            response = self.session.post(
                self.url,
                json=record.to_dict(),
                params=self._params(),
                timeout=self.timeout
            )
            response.raise_for_status()
            record_id = response.json()["name"]
        except requests.RequestException as e:
            logger.error(f"Error submitting survey: {e}")
            raise StoreError(f"Failed to submit survey: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected Firebase response on submit: {e}")
            raise StoreError(f"Unexpected response from Firebase: {e}") from e

        logger.info(f"Stored survey response {record_id}")
        return record_id

    def fetch_all(self) -> List[FeedbackRecord]:
        """
        Fetch every record, most recent first.

        Returns:
            List of FeedbackRecord (empty if the node does not exist)

        Raises:
            StoreError: On transport failure or an unexpected response
        """
        try:
            response = self.session.get(self.url, params=self._params(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Error fetching surveys: {e}")
            raise StoreError(f"Failed to fetch surveys: {e}") from e
        except ValueError as e:
            logger.error(f"Firebase returned invalid JSON: {e}")
            raise StoreError(f"Unexpected response from Firebase: {e}") from e

        if not data:
            return []
        if not isinstance(data, dict):
            raise StoreError("Unexpected response from Firebase: expected an object")

        records = [
            FeedbackRecord.from_dict(value, record_id=key)
            for key, value in data.items()
            if isinstance(value, dict)
        ]
        logger.info(f"Fetched {len(records)} survey responses")
        return sort_most_recent_first(records)

    def _params(self) -> dict:
        return {"auth": self.auth_token} if self.auth_token else {}
