"""
Quantitative Metrics Module for the Allocation Search.

This module provides the return statistics every candidate portfolio is
scored with. Each metric reduces along the last axis of a numpy array, so the
same formula serves a single return series (1-D) and a whole batch of blended
series (2-D, one row per candidate).

Key Formulas:
    - Average Return: μ = Σ(r_t) / T
    - Volatility: σ = √(Σ(r_t - μ)² / (T - 1))   (sample, Bessel-corrected)
    - Value at End: V = V_0 * Π(1 + r_t)
    - Sharpe Ratio: SR = mean(r_p - r_f) / std(r_p - r_f)
"""

import numpy as np

from config import INITIAL_INVESTMENT


class QuantMetrics:
    """
    A collection of static methods for calculating return statistics.

    All methods are static to allow for easy testing and standalone usage.
    None of them raise on degenerate input: a zero deviation produces NaN or
    infinity under IEEE semantics, leaving the decision to the caller.
    """

    @staticmethod
    def average_return(returns: np.ndarray) -> np.ndarray:
        """
        Calculate the arithmetic mean of period returns.

        Args:
            returns: Array of period returns, periods along the last axis.

        Returns:
            Mean return (scalar for 1-D input, one value per row otherwise).

        Example:
            >>> QuantMetrics.average_return(np.array([0.05, 0.07, 0.03]))
            0.05
        """
        return np.mean(returns, axis=-1)

    @staticmethod
    def volatility(returns: np.ndarray) -> np.ndarray:
        """
        Calculate the sample standard deviation of period returns.

        Uses the Bessel-corrected (T - 1) denominator, the usual definition of
        historical volatility in finance.

        Args:
            returns: Array of period returns, periods along the last axis.

        Returns:
            Sample standard deviation. NaN when fewer than two periods exist.
        """
        returns = np.asarray(returns, dtype=float)
        if returns.shape[-1] < 2:
            return np.full(returns.shape[:-1], np.nan)[()]
        return np.std(returns, axis=-1, ddof=1)

    @staticmethod
    def value_at_end(
        multipliers: np.ndarray,
        initial_investment: float = INITIAL_INVESTMENT
    ) -> np.ndarray:
        """
        Compound an initial investment over a sequence of multipliers.

        Formula: V = V_0 * Π(1 + r_t)

        Args:
            multipliers: Array of 1 + r_t factors, periods along the last axis.
            initial_investment: Amount invested at the start.

        Returns:
            Value of the investment after the last period.
        """
        return initial_investment * np.prod(multipliers, axis=-1)

    @staticmethod
    def sharpe_ratio(excess_returns: np.ndarray) -> np.ndarray:
        """
        Calculate the Sharpe Ratio from a series of excess returns.

        The excess series is the portfolio's period returns minus the
        risk-free benchmark's returns over the same periods.

        Formula: SR = mean(excess) / std(excess)

        Args:
            excess_returns: Array of excess returns, periods along the last axis.

        Returns:
            Sharpe Ratio (dimensionless). Zero deviation yields NaN (zero mean)
            or ±inf, never an exception.
        """
        mean = QuantMetrics.average_return(excess_returns)
        std = QuantMetrics.volatility(excess_returns)
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.divide(mean, std)

