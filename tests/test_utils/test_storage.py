"""
Unit tests for the record stores.

The Firebase store is tested against a mocked requests.Session.
"""

import dataclasses
import os
import tempfile
from unittest.mock import MagicMock

import pytest
import requests

from dfac_pulse.models.feedback import FeedbackRecord
from dfac_pulse.utils.firebase import FirebaseRecordStore
from dfac_pulse.utils.storage import JsonRecordStore, StoreError, create_record_store


def make_record(timestamp="2024-06-03T12:00:00.000Z", **kwargs):
    defaults = dict(
        customer_satisfaction=5,
        food_quality=4,
        cleanliness=3,
        meal="lunch",
        stations=("grill", "deli"),
        recommend="yes",
        likes="Friendly staff",
        improvements="",
    )
    defaults.update(kwargs)
    return FeedbackRecord(timestamp=timestamp, **defaults)


def test_json_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonRecordStore(tmpdir)
        record = make_record()

        record_id = store.append(record)
        fetched = store.fetch_all()

        assert len(fetched) == 1
        assert fetched[0].id == record_id
        assert dataclasses.replace(fetched[0], id=None) == record


def test_json_fetch_most_recent_first():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonRecordStore(tmpdir)
        store.append(make_record("2024-06-02T12:00:00.000Z"))
        store.append(make_record("2024-06-04T12:00:00.000Z"))
        store.append(make_record("2024-06-03T12:00:00.000Z"))

        timestamps = [r.timestamp for r in store.fetch_all()]

        assert timestamps == [
            "2024-06-04T12:00:00.000Z",
            "2024-06-03T12:00:00.000Z",
            "2024-06-02T12:00:00.000Z",
        ]


def test_json_empty_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert JsonRecordStore(tmpdir).fetch_all() == []


def test_json_corrupt_file_raises_store_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        with open(os.path.join(tmpdir, "surveys.json"), "w") as f:
            f.write("{broken")

        with pytest.raises(StoreError):
            JsonRecordStore(tmpdir).fetch_all()


def test_json_rejects_invalid_record():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonRecordStore(tmpdir)

        with pytest.raises(ValueError, match="customer_satisfaction"):
            store.append(make_record(customer_satisfaction=0))

        assert store.fetch_all() == []


def test_create_record_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert isinstance(create_record_store("json", tmpdir), JsonRecordStore)

        store = create_record_store("firebase", tmpdir, database_url="https://example.firebaseio.com/")
        assert isinstance(store, FirebaseRecordStore)
        assert store.url == "https://example.firebaseio.com/surveys.json"

        with pytest.raises(ValueError):
            create_record_store("firebase", tmpdir)
        with pytest.raises(ValueError, match="Unknown store backend"):
            create_record_store("sqlite", tmpdir)


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def test_firebase_append(session):
    response = MagicMock()
    response.json.return_value = {"name": "-NxYz123"}
    session.post.return_value = response

    store = FirebaseRecordStore("https://example.firebaseio.com", auth_token="secret", session=session)
    record = make_record()

    assert store.append(record) == "-NxYz123"
    session.post.assert_called_once_with(
        "https://example.firebaseio.com/surveys.json",
        json=record.to_dict(),
        params={"auth": "secret"},
        timeout=None
    )


def test_firebase_append_transport_error(session):
    session.post.side_effect = requests.ConnectionError("offline")
    store = FirebaseRecordStore("https://example.firebaseio.com", session=session)

    with pytest.raises(StoreError):
        store.append(make_record())


def test_firebase_append_http_error(session):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
    session.post.return_value = response
    store = FirebaseRecordStore("https://example.firebaseio.com", session=session)

    with pytest.raises(StoreError):
        store.append(make_record())


def test_firebase_fetch_all(session):
    response = MagicMock()
    response.json.return_value = {
        "-A": {
            "timestamp": "2024-06-02T12:00:00.000Z",
            "customerSatisfaction": 4,
            "foodQuality": 4,
            "cleanliness": 5,
        },
        "-B": {
            "timestamp": "2024-06-04T12:00:00.000Z",
            "customerSatisfaction": 2,
            "foodQuality": 3,
            "cleanliness": 3,
            "stations": ["pizza"],
            "mealCard": "yes",
        },
    }
    session.get.return_value = response
    store = FirebaseRecordStore("https://example.firebaseio.com", session=session)

    records = store.fetch_all()

    assert [r.id for r in records] == ["-B", "-A"]
    assert records[0].stations == ("pizza",)
    assert records[0].meal_card == "yes"
    assert records[1].customer_satisfaction == 4


def test_firebase_fetch_all_empty(session):
    response = MagicMock()
    response.json.return_value = None
    session.get.return_value = response
    store = FirebaseRecordStore("https://example.firebaseio.com", session=session)

    assert store.fetch_all() == []


def test_firebase_fetch_all_error(session):
    session.get.side_effect = requests.Timeout("timed out")
    store = FirebaseRecordStore("https://example.firebaseio.com", session=session)

    with pytest.raises(StoreError):
        store.fetch_all()


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
