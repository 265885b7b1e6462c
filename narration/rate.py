"""Bounded speech rate."""

MIN_RATE = 0.1
MAX_RATE = 10.0
RATE_STEP = 0.1


def clamp_rate(value: float) -> float:
    # Rounded so repeated steps don't accumulate binary float drift.
    return round(min(max(value, MIN_RATE), MAX_RATE), 6)


class RateController:
    """Speech rate shared by every utterance dispatched after a change."""

    def __init__(self, rate: float = 1.0):
        self._rate = clamp_rate(rate)

    @property
    def rate(self) -> float:
        return self._rate

    def increase(self) -> float:
        self._rate = clamp_rate(self._rate + RATE_STEP)
        return self._rate

    def decrease(self) -> float:
        self._rate = clamp_rate(self._rate - RATE_STEP)
        return self._rate
