"""
Portfolio Evaluation Module.

This module blends a weighted set of fund return series into a single
portfolio series and scores it. Two evaluation paths share the same
formulas (QuantMetrics):

    - Portfolio / PortfolioEvaluator.evaluate: one split at a time, building
      the blended TimeSeries explicitly.
    - PortfolioEvaluator.evaluate_batch: many splits at once as a matrix
      product, used by the search to score whole chunks of the grid.

Blending:
    "multiplier" (default): blended_t = Σ_i w_i * (1 + r_i,t)
    "returns":              blended_t = Σ_i w_i * r_i,t

In both modes the blended values are then treated as the portfolio's period
returns, so in "multiplier" mode they are shifted by one a second time when
compounding. "returns" is the textbook weighted-return portfolio.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from config import BLEND_MODES, DEFAULT_BLEND_MODE, INITIAL_INVESTMENT
from fundsplit.exceptions import ArityMismatch, ConfigError, LengthMismatch
from fundsplit.mathematics import QuantMetrics
from fundsplit.timeseries import TimeSeries

logger = logging.getLogger(__name__)


def validate_blend(blend: str) -> None:
    if blend not in BLEND_MODES:
        raise ConfigError(f"blend must be one of {BLEND_MODES}, got {blend!r}")


def check_aligned(assets: Sequence[TimeSeries], risk_free: TimeSeries) -> int:
    """
    Verify that every asset and the risk-free series cover the same periods.

    Args:
        assets: Fund series to be blended.
        risk_free: Benchmark series used for the Sharpe ratio.

    Returns:
        The common number of periods.

    Raises:
        ArityMismatch: If no assets are given.
        LengthMismatch: If any series differs in length from the risk-free one.
    """
    if not assets:
        raise ArityMismatch("At least one asset is required")
    periods = len(risk_free)
    for asset in assets:
        if len(asset) != periods:
            raise LengthMismatch(
                f"Series '{asset.id}' has {len(asset)} periods, "
                f"risk-free series '{risk_free.id}' has {periods}"
            )
    return periods


@dataclass
class PortfolioStats:
    """
    Scores of a single candidate portfolio.

    Attributes:
        volatility: Sample standard deviation of the blended series.
        average_return: Mean of the blended series.
        value_at_end: Initial investment compounded over the blended series.
        sharpe_ratio: Mean over deviation of blended minus risk-free returns.
    """
    volatility: float
    average_return: float
    value_at_end: float
    sharpe_ratio: float


class Portfolio:
    """
    A weighted combination of fund return series.

    The blended series is derived once, at construction.

    Attributes:
        assets: Fund series, in split order.
        split: Weight of each fund.
        series: Blended portfolio TimeSeries.
    """

    def __init__(
        self,
        assets: Sequence[TimeSeries],
        split: Sequence[float],
        blend: str = DEFAULT_BLEND_MODE
    ) -> None:
        """
        Initialize the Portfolio.

        Args:
            assets: Fund series to combine.
            split: One weight per fund.
            blend: "multiplier" or "returns" (see module docstring).

        Raises:
            ArityMismatch: If the split and asset counts differ.
            LengthMismatch: If the fund series differ in length.
            ConfigError: If blend is unknown.
        """
        validate_blend(blend)
        if len(assets) != len(split):
            raise ArityMismatch(
                f"Split has {len(split)} weights for {len(assets)} assets"
            )
        if not assets:
            raise ArityMismatch("At least one asset is required")
        periods = len(assets[0])
        for asset in assets:
            if len(asset) != periods:
                raise LengthMismatch(
                    f"Series '{asset.id}' has {len(asset)} periods, "
                    f"'{assets[0].id}' has {periods}"
                )

        self.assets: List[TimeSeries] = list(assets)
        self.split: Tuple[float, ...] = tuple(float(w) for w in split)

        blended = np.zeros(periods)
        for asset, weight in zip(self.assets, self.split):
            components = asset.multipliers if blend == "multiplier" else asset.returns
            blended += weight * components

        portfolio_id = "_".join(asset.id for asset in self.assets)
        self.series: TimeSeries = TimeSeries(portfolio_id, blended)

    def std(self) -> float:
        return self.series.std_returns()

    def average(self) -> float:
        return self.series.average_returns()

    def calculate_value_at_end(self, initial_investment: float = INITIAL_INVESTMENT) -> float:
        return self.series.calculate_value_at_end(initial_investment)

    def sharpe_ratio(self, risk_free: TimeSeries) -> float:
        """
        Sharpe ratio of the portfolio over a risk-free benchmark.

        Formula: SR = average(blended - rf) / std(blended - rf)

        Returns:
            The ratio; NaN or ±inf when the excess series has zero deviation.
        """
        excess = self.series.subtract(risk_free)
        return float(QuantMetrics.sharpe_ratio(excess.returns))


class PortfolioEvaluator:
    """
    Scores candidate splits over a fixed pool of funds.

    Attributes:
        risk_free: Benchmark series for the Sharpe ratio.
        blend: Blending mode, "multiplier" or "returns".
        initial_investment: Amount compounded for value_at_end.

    Example:
        >>> evaluator = PortfolioEvaluator(cdi)
        >>> stats = evaluator.evaluate(funds, (0.5, 0.3, 0.2))
        >>> print(f"Sharpe: {stats.sharpe_ratio:.2f}")
    """

    def __init__(
        self,
        risk_free: TimeSeries,
        blend: str = DEFAULT_BLEND_MODE,
        initial_investment: float = INITIAL_INVESTMENT
    ) -> None:
        validate_blend(blend)
        self.risk_free: TimeSeries = risk_free
        self.blend: str = blend
        self.initial_investment: float = initial_investment

    def evaluate(self, assets: Sequence[TimeSeries], split: Sequence[float]) -> PortfolioStats:
        """
        Score one split.

        Args:
            assets: Fund series, in split order.
            split: One weight per fund.

        Returns:
            PortfolioStats of the blended portfolio.

        Raises:
            ArityMismatch: If the split and asset counts differ.
            LengthMismatch: If any series differs in length from the risk-free one.
        """
        if len(assets) != len(split):
            raise ArityMismatch(
                f"Split has {len(split)} weights for {len(assets)} assets"
            )
        check_aligned(assets, self.risk_free)

        portfolio = Portfolio(assets, split, blend=self.blend)
        return PortfolioStats(
            volatility=portfolio.std(),
            average_return=portfolio.average(),
            value_at_end=portfolio.calculate_value_at_end(self.initial_investment),
            sharpe_ratio=portfolio.sharpe_ratio(self.risk_free),
        )

    def component_matrix(self, assets: Sequence[TimeSeries]) -> np.ndarray:
        """
        Stack the per-fund series that splits are applied to.

        Returns:
            Array of shape (funds, periods): multipliers or returns depending
            on the blending mode.
        """
        check_aligned(assets, self.risk_free)
        if self.blend == "multiplier":
            return np.vstack([asset.multipliers for asset in assets])
        return np.vstack([asset.returns for asset in assets])

    def evaluate_batch(
        self,
        components: np.ndarray,
        splits: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Score many splits at once.

        Args:
            components: Output of component_matrix, shape (funds, periods).
            splits: Array of shape (candidates, funds).

        Returns:
            Tuple of (volatilities, average_returns, values_at_end,
            sharpe_ratios), each of shape (candidates,).

        Raises:
            ArityMismatch: If the split width differs from the fund count.
        """
        splits = np.atleast_2d(np.asarray(splits, dtype=float))
        if splits.shape[1] != components.shape[0]:
            raise ArityMismatch(
                f"Splits have {splits.shape[1]} weights for {components.shape[0]} assets"
            )

        blended = splits @ components
        volatilities = QuantMetrics.volatility(blended)
        average_returns = QuantMetrics.average_return(blended)
        values_at_end = QuantMetrics.value_at_end(1.0 + blended, self.initial_investment)
        sharpe_ratios = QuantMetrics.sharpe_ratio(blended - self.risk_free.returns)
        return volatilities, average_returns, values_at_end, sharpe_ratios
