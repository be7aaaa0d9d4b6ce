"""
Unit tests for the CLI's plain-text rendering.
"""

import pytest

from main import _stars


@pytest.mark.parametrize("value, expected", [
    (0, ""),
    (0.5, "★"),
    (2.5, "★★★"),
    (3.5, "★★★★"),
    (4.49, "★★★★"),
    (4.5, "★★★★★"),
    (5, "★★★★★"),
])
def test_stars_round_half_up(value, expected):
    assert _stars(value) == expected


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
