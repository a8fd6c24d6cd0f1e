"""
Best Allocation Selection Module.

Picks the candidate with the highest Sharpe ratio from a search and turns it
into the Allocation artifact consumed by downstream tooling.
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Sequence, Union

import numpy as np

from fundsplit.exceptions import ArityMismatch, NoValidCandidate
from fundsplit.search import Statistics

logger = logging.getLogger(__name__)


@dataclass
class Allocation:
    """
    The selected portfolio.

    Field names form the allocation.json contract and must not change.

    Attributes:
        allocations: Mapping of fund id to weight, in fund order.
        sharpe_ratio: Sharpe ratio of the selected candidate.
        expected_returns_at_end: Value of 1 unit compounded to the end.
        average: Average period return of the blended series.
        volatility: Volatility of the blended series.
    """
    allocations: Dict[str, float]
    sharpe_ratio: float
    expected_returns_at_end: float
    average: float
    volatility: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Allocation":
        return cls(
            allocations={str(k): float(v) for k, v in data["allocations"].items()},
            sharpe_ratio=float(data["sharpe_ratio"]),
            expected_returns_at_end=float(data["expected_returns_at_end"]),
            average=float(data["average"]),
            volatility=float(data["volatility"]),
        )

    def to_json(self, path: Union[str, Path]) -> Path:
        """
        Write the allocation document.

        Args:
            path: Destination file; parent directories are created.

        Returns:
            The path written.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info(f"Allocation written to {path}")
        return path

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "Allocation":
        return cls.from_dict(json.loads(Path(path).read_text()))


class BestAllocationSelector:
    """
    Selects the maximum Sharpe ratio candidate.

    NaN Sharpe ratios never win. Infinite ratios take part in the maximum:
    +inf (positive excess with zero deviation) beats every finite value and
    -inf loses to them.
    """

    @staticmethod
    def best_index(sharpe_ratios: np.ndarray) -> int:
        """
        Position of the highest non-NaN Sharpe ratio.

        Ties resolve to the first occurrence, i.e. generator order.

        Raises:
            NoValidCandidate: If there are no entries or every entry is NaN.
        """
        ratios = np.asarray(sharpe_ratios, dtype=float)
        if ratios.size == 0 or np.isnan(ratios).all():
            raise NoValidCandidate(
                f"All {ratios.size} candidates have an undefined Sharpe ratio"
            )
        valid = np.flatnonzero(~np.isnan(ratios))
        return int(valid[np.argmax(ratios[valid])])

    def select(self, statistics: Statistics, asset_ids: Sequence[str]) -> Allocation:
        """
        Build the Allocation of the best candidate.

        Args:
            statistics: Output of a search.
            asset_ids: Fund ids, in split order.

        Returns:
            Allocation of the candidate with the highest Sharpe ratio.

        Raises:
            ArityMismatch: If asset_ids does not match the split width.
            NoValidCandidate: If every candidate's Sharpe ratio is NaN.
        """
        if len(statistics) and len(asset_ids) != statistics.splits.shape[1]:
            raise ArityMismatch(
                f"{len(asset_ids)} asset ids for splits of width {statistics.splits.shape[1]}"
            )

        idx = self.best_index(statistics.sharpe_ratios)
        split = statistics.splits[idx]

        allocation = Allocation(
            allocations={
                asset_id: float(weight) for asset_id, weight in zip(asset_ids, split)
            },
            sharpe_ratio=float(statistics.sharpe_ratios[idx]),
            expected_returns_at_end=float(statistics.returns_at_end[idx]),
            average=float(statistics.average_returns[idx]),
            volatility=float(statistics.volatilities[idx]),
        )
        logger.info(
            f"Best candidate #{idx}: Sharpe {allocation.sharpe_ratio:.4f}, "
            f"weights {allocation.allocations}"
        )
        return allocation
