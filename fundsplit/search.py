"""
Allocation Search Module.

Drives the split generator and the portfolio evaluator over the whole weight
grid, collecting one score per candidate into index-aligned arrays.

Search Approach:
    1. Count the candidates exactly and refuse to start above the ceiling.
    2. Pre-size every output array to that count.
    3. Materialize the splits in generator order (index i = i-th split).
    4. Partition the index range into chunks and score each chunk with one
       matrix product. Chunks run on a thread pool and write to disjoint
       slices of the output arrays, so no locking is needed.
"""

import logging
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_EXCEPTION
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from config import (
    DEFAULT_BLEND_MODE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_FUND_COUNT,
    DEFAULT_GRANULARITY,
    DEFAULT_MAX_WORKERS,
    INITIAL_INVESTMENT,
    MAX_CANDIDATES,
)
from fundsplit.exceptions import (
    ArityMismatch,
    CandidateLimitExceeded,
    ConfigError,
    DegenerateVolatility,
    LengthMismatch,
    SearchCancelled,
)
from fundsplit.portfolio import PortfolioEvaluator, check_aligned, validate_blend
from fundsplit.splits import SplitGenerator, validate_grid
from fundsplit.timeseries import TimeSeries

logger = logging.getLogger(__name__)


@dataclass
class SearchConfig:
    """
    Parameters of an allocation search.

    Attributes:
        granularity: Weight grid step, in (0, 1].
        fund_count: Number of funds per portfolio (at least 2).
        max_candidates: Ceiling on the number of enumerated splits.
        max_workers: Threads scoring chunks (1 = calling thread only).
        chunk_size: Candidates scored per work unit.
        blend: "multiplier" or "returns".
        initial_investment: Amount compounded for the value at end.
        include: Fund ids the universe is restricted to (empty = all).
        exclude: Fund ids removed from the universe.
        volatility_threshold: Funds more volatile than this are dropped.
    """
    granularity: float = DEFAULT_GRANULARITY
    fund_count: int = DEFAULT_FUND_COUNT
    max_candidates: int = MAX_CANDIDATES
    max_workers: int = DEFAULT_MAX_WORKERS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    blend: str = DEFAULT_BLEND_MODE
    initial_investment: float = INITIAL_INVESTMENT
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    volatility_threshold: Optional[float] = None

    def __post_init__(self) -> None:
        validate_grid(self.granularity, self.fund_count)
        validate_blend(self.blend)
        if self.max_candidates < 1:
            raise ConfigError(f"max_candidates must be positive, got {self.max_candidates}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be positive, got {self.max_workers}")
        if self.chunk_size < 1:
            raise ConfigError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.volatility_threshold is not None and self.volatility_threshold < 0:
            raise ConfigError(
                f"volatility_threshold must be non-negative, got {self.volatility_threshold}"
            )


@dataclass
class Statistics:
    """
    Scores of every candidate of a search, index-aligned.

    Row i of splits and entry i of every other array describe the same
    candidate.

    Attributes:
        splits: Array of shape (candidates, funds).
        volatilities: Sample deviation of each blended series.
        average_returns: Mean of each blended series.
        returns_at_end: Value of 1 unit invested, compounded to the end.
        sharpe_ratios: Sharpe ratio over the risk-free series (may be NaN).
    """
    splits: np.ndarray
    volatilities: np.ndarray
    average_returns: np.ndarray
    returns_at_end: np.ndarray
    sharpe_ratios: np.ndarray

    def __post_init__(self) -> None:
        length = len(self.splits)
        for name in ("volatilities", "average_returns", "returns_at_end", "sharpe_ratios"):
            if len(getattr(self, name)) != length:
                raise LengthMismatch(
                    f"Statistics.{name} has {len(getattr(self, name))} entries, "
                    f"splits has {length}"
                )

    def __len__(self) -> int:
        return len(self.splits)

    def to_frame(self, asset_ids: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Export the batch as a DataFrame.

        Args:
            asset_ids: Column names for the split weights. Defaults to
                "w0", "w1", ...

        Returns:
            DataFrame with one weight column per fund plus Volatility,
            Return, Value and Sharpe.
        """
        width = self.splits.shape[1] if self.splits.ndim == 2 else 0
        if asset_ids is None:
            asset_ids = [f"w{i}" for i in range(width)]
        if len(asset_ids) != width:
            raise ArityMismatch(f"{len(asset_ids)} asset ids for splits of width {width}")

        frame = pd.DataFrame(self.splits, columns=list(asset_ids))
        frame["Volatility"] = self.volatilities
        frame["Return"] = self.average_returns
        frame["Value"] = self.returns_at_end
        frame["Sharpe"] = self.sharpe_ratios
        return frame


class SearchOrchestrator:
    """
    Exhaustive search over the quantized weight grid.

    Construction raises CandidateLimitExceeded when the grid holds more than
    max_candidates splits.

    Attributes:
        generator: Split generator for the configured grid.
        max_candidates: Ceiling on the number of candidates.
        max_workers: Threads scoring chunks.
        chunk_size: Candidates per chunk.
        blend: Blending mode passed to the evaluator.
        initial_investment: Amount compounded for the value at end.

    Example:
        >>> orchestrator = SearchOrchestrator(granularity=0.05, fund_count=3)
        >>> statistics = orchestrator.run(funds, cdi)
        >>> len(statistics)
        231
    """

    def __init__(
        self,
        granularity: float = DEFAULT_GRANULARITY,
        fund_count: int = DEFAULT_FUND_COUNT,
        max_candidates: int = MAX_CANDIDATES,
        max_workers: int = DEFAULT_MAX_WORKERS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        blend: str = DEFAULT_BLEND_MODE,
        initial_investment: float = INITIAL_INVESTMENT
    ) -> None:
        if max_candidates < 1 or max_workers < 1 or chunk_size < 1:
            raise ConfigError("max_candidates, max_workers and chunk_size must be positive")
        validate_blend(blend)

        self.generator: SplitGenerator = SplitGenerator(granularity, fund_count)
        self.max_candidates: int = max_candidates
        self._check_ceiling()
        self.max_workers: int = max_workers
        self.chunk_size: int = chunk_size
        self.blend: str = blend
        self.initial_investment: float = initial_investment

    @classmethod
    def from_config(cls, config: SearchConfig) -> "SearchOrchestrator":
        return cls(
            granularity=config.granularity,
            fund_count=config.fund_count,
            max_candidates=config.max_candidates,
            max_workers=config.max_workers,
            chunk_size=config.chunk_size,
            blend=config.blend,
            initial_investment=config.initial_investment,
        )

    @property
    def fund_count(self) -> int:
        return self.generator.fund_count

    def candidate_count(self) -> int:
        return self.generator.count()

    def _check_ceiling(self) -> int:
        total = self.candidate_count()
        if total > self.max_candidates:
            raise CandidateLimitExceeded(
                f"Granularity {self.generator.granularity} with {self.fund_count} funds "
                f"yields {total:,} candidates, above the limit of {self.max_candidates:,}"
            )
        return total

    def run(
        self,
        assets: Sequence[TimeSeries],
        risk_free: TimeSeries,
        cancel_event: Optional[threading.Event] = None
    ) -> Statistics:
        """
        Score every split of the grid.

        Args:
            assets: Fund series, one per split position.
            risk_free: Benchmark series for the Sharpe ratio.
            cancel_event: When set, the search stops before its next chunk.

        Returns:
            Statistics with one entry per candidate, in generator order.

        Raises:
            ArityMismatch: If the number of assets differs from fund_count.
            LengthMismatch: If the series are not all the same length.
            CandidateLimitExceeded: If the grid exceeds max_candidates.
            SearchCancelled: If cancel_event was set during the search.
        """
        if len(assets) != self.fund_count:
            raise ArityMismatch(
                f"Search configured for {self.fund_count} funds, got {len(assets)}"
            )
        check_aligned(assets, risk_free)

        total = self._check_ceiling()

        logger.info(
            f"Searching {total:,} candidate splits over {self.fund_count} funds "
            f"(granularity {self.generator.granularity})"
        )

        splits = np.empty((total, self.fund_count), dtype=float)
        for i, split in enumerate(self.generator):
            splits[i] = split

        volatilities = np.empty(total, dtype=float)
        average_returns = np.empty(total, dtype=float)
        returns_at_end = np.empty(total, dtype=float)
        sharpe_ratios = np.empty(total, dtype=float)

        evaluator = PortfolioEvaluator(
            risk_free, blend=self.blend, initial_investment=self.initial_investment
        )
        components = evaluator.component_matrix(assets)

        def score_chunk(start: int, stop: int) -> None:
            if cancel_event is not None and cancel_event.is_set():
                raise SearchCancelled(f"Search cancelled before candidate {start}")
            (
                volatilities[start:stop],
                average_returns[start:stop],
                returns_at_end[start:stop],
                sharpe_ratios[start:stop],
            ) = evaluator.evaluate_batch(components, splits[start:stop])
            logger.debug(f"Scored candidates {start}-{stop - 1}")

        bounds = [
            (start, min(start + self.chunk_size, total))
            for start in range(0, total, self.chunk_size)
        ]

        if self.max_workers == 1 or len(bounds) <= 1:
            for start, stop in bounds:
                score_chunk(start, stop)
        else:
            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="split-search"
            ) as pool:
                futures = [pool.submit(score_chunk, start, stop) for start, stop in bounds]
                _, pending = wait(futures, return_when=FIRST_EXCEPTION)
                for future in pending:
                    future.cancel()
                for future in futures:
                    if future.done() and not future.cancelled():
                        future.result()

        statistics = Statistics(
            splits=splits,
            volatilities=volatilities,
            average_returns=average_returns,
            returns_at_end=returns_at_end,
            sharpe_ratios=sharpe_ratios,
        )

        degenerate = int(np.count_nonzero(~np.isfinite(sharpe_ratios)))
        if degenerate:
            logger.warning(f"{degenerate:,} of {total:,} candidates have an undefined Sharpe ratio")
            warnings.warn(
                f"{degenerate} candidates have zero excess-return deviation",
                DegenerateVolatility,
                stacklevel=2,
            )

        logger.info(f"Search finished: {total:,} candidates scored")
        return statistics
