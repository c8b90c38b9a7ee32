"""
Tests for hand timeouts and poll back-off
"""

import pytest

from utils.timing import NUM_STREETS, Backoff, compute_timeout


class TestComputeTimeout:
    """Tests for compute_timeout"""

    def test_six_players_thirty_seconds(self):
        assert compute_timeout(6, 30) == 600000

    def test_uses_four_streets_by_default(self):
        assert NUM_STREETS == 4
        assert compute_timeout(2, 10) == 1000 * 1 * 10 * 4

    def test_custom_streets(self):
        assert compute_timeout(3, 15, num_streets=1) == 30000

    def test_heads_up_alone(self):
        assert compute_timeout(1, 30) == 0


class TestBackoff:
    """Tests for exponential back-off"""

    def test_doubles_up_to_cap(self):
        backoff = Backoff(base=1.0, maximum=8.0)
        delays = [backoff.next_delay() for _ in range(6)]
        assert delays == [1.0, 2.0, 4.0, 8.0, 8.0, 8.0]

    def test_reset(self):
        backoff = Backoff(base=0.5, maximum=4.0)
        backoff.next_delay()
        backoff.next_delay()
        assert backoff.attempt == 2

        backoff.reset()
        assert backoff.attempt == 0
        assert backoff.next_delay() == 0.5

    def test_invalid_base(self):
        with pytest.raises(ValueError):
            Backoff(base=0)

    def test_maximum_below_base(self):
        with pytest.raises(ValueError):
            Backoff(base=2.0, maximum=1.0)
