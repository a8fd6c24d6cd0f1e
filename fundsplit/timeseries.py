"""
Return Series Module.

A TimeSeries is the historical sequence of period returns of one fund (or of
the risk-free benchmark) together with its compounding multipliers. Series
are immutable: arithmetic produces new series.
"""

from typing import Any, Dict, Iterable

import numpy as np

from config import INITIAL_INVESTMENT
from fundsplit.exceptions import LengthMismatch
from fundsplit.mathematics import QuantMetrics


class TimeSeries:
    """
    Historical period returns of a single asset.

    Attributes:
        id: Identifier of the asset (fund CNPJ, ticker, "_cdi", ...).
        returns: Read-only array of period returns, oldest first.
        multipliers: Read-only array of 1 + return, one per period.

    Example:
        >>> ts = TimeSeries("fund", [0.05, 0.07, 0.03])
        >>> ts.calculate_value_at_end(1.0)   # 1.05 * 1.07 * 1.03
        1.157205
    """

    def __init__(self, id: str, returns: Iterable[float]) -> None:
        """
        Initialize the TimeSeries.

        Args:
            id: Identifier of the asset.
            returns: Period returns in chronological order.

        Raises:
            ValueError: If returns is empty or not one-dimensional.
        """
        values = np.array(returns, dtype=float)
        if values.ndim != 1 or values.size == 0:
            raise ValueError(f"TimeSeries '{id}' needs a non-empty 1-D return sequence")

        values.setflags(write=False)
        multipliers = 1.0 + values
        multipliers.setflags(write=False)

        self._id: str = id
        self._returns: np.ndarray = values
        self._multipliers: np.ndarray = multipliers

    @property
    def id(self) -> str:
        return self._id

    @property
    def returns(self) -> np.ndarray:
        return self._returns

    @property
    def multipliers(self) -> np.ndarray:
        return self._multipliers

    def __len__(self) -> int:
        return len(self._returns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._id == other._id and np.array_equal(self._returns, other._returns)

    def __hash__(self) -> int:
        return hash((self._id, self._returns.tobytes()))

    def __repr__(self) -> str:
        return f"TimeSeries(id={self._id!r}, periods={len(self)})"

    def subtract(self, other: "TimeSeries") -> "TimeSeries":
        """
        Elementwise difference of two aligned series.

        Used to build the excess-return series of a portfolio over the
        risk-free benchmark.

        Args:
            other: Series subtracted from this one.

        Returns:
            New TimeSeries with id "<self.id>_<other.id>".

        Raises:
            LengthMismatch: If the two series cover a different number of periods.
        """
        if len(self) != len(other):
            raise LengthMismatch(
                f"Cannot subtract '{other.id}' ({len(other)} periods) "
                f"from '{self.id}' ({len(self)} periods)"
            )
        return TimeSeries(f"{self._id}_{other.id}", self._returns - other.returns)

    def average_returns(self) -> float:
        """Arithmetic mean of the period returns."""
        return float(QuantMetrics.average_return(self._returns))

    def std_returns(self) -> float:
        """Sample (Bessel-corrected) standard deviation of the period returns."""
        return float(QuantMetrics.volatility(self._returns))

    def calculate_value_at_end(self, initial_investment: float = INITIAL_INVESTMENT) -> float:
        """
        Value of an investment compounded over every period.

        Formula: V = initial_investment * Π(multipliers)

        Args:
            initial_investment: Amount invested before the first period.

        Returns:
            Value after the last period.
        """
        return float(QuantMetrics.value_at_end(self._multipliers, initial_investment))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the {"id", "multipliers", "returns"} document."""
        return {
            "id": self._id,
            "multipliers": self._multipliers.tolist(),
            "returns": self._returns.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSeries":
        """
        Build a TimeSeries from its serialized document.

        Stored multipliers are ignored and recomputed from the returns.
        """
        return cls(data["id"], data["returns"])
