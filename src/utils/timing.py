"""
Timing helpers for Observer waits and poll back-off
"""

NUM_STREETS = 4  # pre-flop, flop, turn, river


def compute_timeout(num_players: int, max_turn_length: float, num_streets: int = NUM_STREETS) -> int:
    """
    Worst-case hand timeout in milliseconds.

    Assumes every other player uses their full turn on every street.

    Args:
        num_players: Players dealt into the hand (hero included)
        max_turn_length: Maximum turn length in seconds
        num_streets: Betting rounds (default 4)

    Returns:
        1000 * (num_players - 1) * max_turn_length * num_streets
    """
    return int(1000 * (num_players - 1) * max_turn_length * num_streets)


class Backoff:
    """
    Exponential sleep back-off for cooperative polling.

    Usage:
        backoff = Backoff(base=1.0, maximum=8.0)
        await asyncio.sleep(backoff.next_delay())  # 1, 2, 4, 8, 8, ...
        backoff.reset()
    """

    def __init__(self, base: float = 1.0, maximum: float = 8.0, factor: float = 2.0):
        if base <= 0:
            raise ValueError(f"base must be positive, got {base}")
        if maximum < base:
            raise ValueError("maximum must be >= base")
        self.base = base
        self.maximum = maximum
        self.factor = factor
        self._attempt = 0

    @property
    def attempt(self) -> int:
        return self._attempt

    def next_delay(self) -> float:
        delay = min(self.base * (self.factor**self._attempt), self.maximum)
        self._attempt += 1
        return delay

    def reset(self) -> None:
        self._attempt = 0
