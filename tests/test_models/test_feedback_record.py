"""
Basic unit tests for the FeedbackRecord model.
"""

from datetime import datetime, timezone

import pytest

from dfac_pulse.models.feedback import FeedbackRecord, parse_timestamp


def test_record_validation():
    record = FeedbackRecord(
        timestamp="2024-06-03T12:00:00.000Z",
        customer_satisfaction=5,
        food_quality=1,
        cleanliness=3,
        meal="breakfast",
        stations=("asian",),
        recommend="no",
    )
    record.validate()


@pytest.mark.parametrize("changes, message", [
    ({"customer_satisfaction": 0}, "customer_satisfaction"),
    ({"food_quality": 6}, "food_quality"),
    ({"cleanliness": None}, "cleanliness"),
    ({"meal": "brunch"}, "meal"),
    ({"stations": ("sushi",)}, "station"),
    ({"recommend": "maybe"}, "recommend"),
    ({"timestamp": "yesterday"}, "timestamp"),
])
def test_record_validation_errors(changes, message):
    fields = dict(
        timestamp="2024-06-03T12:00:00.000Z",
        customer_satisfaction=3,
        food_quality=3,
        cleanliness=3,
    )
    fields.update(changes)

    with pytest.raises(ValueError, match=message):
        FeedbackRecord(**fields).validate()


def test_from_dict_is_lenient():
    record = FeedbackRecord.from_dict(
        {
            "timestamp": "2024-06-03T12:00:00.000Z",
            "customerSatisfaction": 4,
            "foodQuality": "3",
            "likes": None,
            "stations": {"0": "grill", "2": "deli"},
            "unexpected": "ignored",
        },
        record_id="-N1",
    )

    assert record.id == "-N1"
    assert record.customer_satisfaction == 4
    assert record.food_quality == 3
    assert record.cleanliness is None
    assert record.likes == ""
    assert record.stations == ("grill", "deli")


def test_to_dict_uses_wire_keys():
    record = FeedbackRecord(
        id="-N1",
        timestamp="2024-06-03T12:00:00.000Z",
        customer_satisfaction=4,
        food_quality=3,
        cleanliness=5,
        meal_card="yes",
    )

    data = record.to_dict()

    assert data == {
        "timestamp": "2024-06-03T12:00:00.000Z",
        "customerSatisfaction": 4,
        "foodQuality": 3,
        "cleanliness": 5,
        "stations": [],
        "likes": "",
        "improvements": "",
        "mealCard": "yes",
    }
    assert "id" not in data


def test_parse_timestamp():
    assert parse_timestamp("2024-06-03T12:30:00") == datetime(2024, 6, 3, 12, 30)
    assert parse_timestamp("") is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None

    utc = parse_timestamp("2024-06-03T12:30:00.000Z")
    expected = datetime(2024, 6, 3, 12, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert utc == expected
    assert utc.tzinfo is None


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
