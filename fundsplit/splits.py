"""
Split Generation Module.

Enumerates every candidate allocation ("split") on a quantized weight grid.

With a granularity step g there are K = floor(1 / g) grid steps, and the
first n - 1 weights of a split each take a value k * g for k in 0..K. Only
prefixes whose step counts sum to at most K are kept, and the last weight is
derived as 1 minus the prefix sum, so every split sums to one by construction.

The number of splits is the number of (n - 1)-tuples of non-negative integers
summing to at most K:

    count(g, n) = C(K + n - 1, n - 1)

which is known before a single split is generated.
"""

import math
from typing import Iterator, List, Tuple

from config import SPLIT_DECIMALS
from fundsplit.exceptions import ConfigError

# Relative slack when converting 1 / g to a step count, so 1 / 0.1 counts as 10 steps
_STEP_RTOL = 1e-9


def validate_grid(granularity: float, fund_count: int) -> None:
    """
    Check that a granularity / fund count pair describes a usable grid.

    Raises:
        ConfigError: If granularity is outside (0, 1] or fund_count is not an
            integer of at least 2.
    """
    if isinstance(granularity, bool) or not isinstance(granularity, (int, float)):
        raise ConfigError(f"granularity must be a number, got {granularity!r}")
    if not math.isfinite(granularity) or not 0.0 < granularity <= 1.0:
        raise ConfigError(f"granularity must be in (0, 1], got {granularity}")
    if isinstance(fund_count, bool) or not isinstance(fund_count, int):
        raise ConfigError(f"fund_count must be an integer, got {fund_count!r}")
    if fund_count < 2:
        raise ConfigError(f"fund_count must be at least 2, got {fund_count}")


def _step_count(granularity: float) -> int:
    ratio = 1.0 / granularity
    if not math.isfinite(ratio):
        raise ConfigError(f"granularity {granularity} is too small to count grid steps")
    nearest = round(ratio)
    if math.isclose(ratio, nearest, rel_tol=_STEP_RTOL):
        return int(nearest)
    return int(math.floor(ratio))


class SplitGenerator:
    """
    Lazy, restartable enumeration of quantized allocation vectors.

    Iterating the generator walks the cartesian product of grid steps in
    lexicographic order, pruning any prefix whose step sum already exceeds
    the number of available steps. Every call to iter() starts over and
    yields the same sequence.

    Attributes:
        granularity: Step between consecutive grid weights.
        fund_count: Length of every generated split.
        steps: Number of grid steps K = floor(1 / granularity).

    Example:
        >>> generator = SplitGenerator(0.5, 2)
        >>> list(generator)
        [(0.0, 1.0), (0.5, 0.5), (1.0, 0.0)]
        >>> generator.count()
        3
    """

    def __init__(self, granularity: float, fund_count: int) -> None:
        validate_grid(granularity, fund_count)
        self.granularity: float = float(granularity)
        self.fund_count: int = fund_count
        self.steps: int = _step_count(self.granularity)

    def weight(self, k: int) -> float:
        """Grid weight of k steps, rounded to SPLIT_DECIMALS."""
        return round(k * self.granularity, SPLIT_DECIMALS)

    @property
    def grid(self) -> List[float]:
        """Weights available to the first fund_count - 1 positions."""
        return [self.weight(k) for k in range(self.steps + 1)]

    def count(self) -> int:
        """Exact number of splits the generator yields."""
        return math.comb(self.steps + self.fund_count - 1, self.fund_count - 1)

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Tuple[float, ...]]:
        return self._enumerate()

    def _enumerate(self) -> Iterator[Tuple[float, ...]]:
        free = self.fund_count - 1
        prefix = [0] * free

        def walk(position: int, remaining: int) -> Iterator[Tuple[float, ...]]:
            if position == free:
                yield self._complete(prefix)
                return
            for k in range(remaining + 1):
                prefix[position] = k
                yield from walk(position + 1, remaining - k)

        yield from walk(0, self.steps)

    def _complete(self, prefix: List[int]) -> Tuple[float, ...]:
        # The last weight is derived from the prefix, never taken from the grid
        head = [self.weight(k) for k in prefix]
        last = 1.0 - math.fsum(head)
        return tuple(head) + (last if last > 0.0 else 0.0,)
