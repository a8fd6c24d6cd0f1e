"""
Fund Data Loader Module.

This module reads the fund and risk-free return series the search runs on,
and selects the fund universe.

Features:
    - Load long-format CSV exports (fund id, date, return) for a date window
    - Load and save the JSON TimeSeries documents
    - Filter the fund universe and keep the best performers
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from config import DATE_COLUMN, FUND_ID_COLUMN, RISK_FREE_ID, VALUE_COLUMN
from fundsplit.exceptions import ConfigError
from fundsplit.timeseries import TimeSeries

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
DateLike = Union[str, date, datetime]


class FundDataLoader:
    """
    Reads fund and benchmark return series.

    Attributes:
        from_date: First date (inclusive) of the window, or None for no bound.
        to_date: Last date (inclusive) of the window, or None for no bound.
        dropped_funds: Fund ids skipped by the last load_funds_csv call.

    Example:
        >>> loader = FundDataLoader("2019-01-01", "2023-12-01")
        >>> funds = loader.load_funds_csv("data/02_preprocessed/funds.csv")
        >>> cdi = loader.load_risk_free_csv("data/02_preprocessed/cdi.csv")
    """

    def __init__(
        self,
        from_date: Optional[DateLike] = None,
        to_date: Optional[DateLike] = None,
        id_column: str = FUND_ID_COLUMN,
        date_column: str = DATE_COLUMN,
        value_column: str = VALUE_COLUMN
    ) -> None:
        self.from_date: Optional[pd.Timestamp] = (
            pd.to_datetime(from_date) if from_date is not None else None
        )
        self.to_date: Optional[pd.Timestamp] = (
            pd.to_datetime(to_date) if to_date is not None else None
        )
        if self.from_date is not None and self.to_date is not None and self.from_date > self.to_date:
            raise ConfigError(f"from_date {from_date} is after to_date {to_date}")

        self.id_column: str = id_column
        self.date_column: str = date_column
        self.value_column: str = value_column
        self.dropped_funds: List[str] = []

    def _read_window(
        self,
        path: PathLike,
        columns: Sequence[str],
        dtype: Optional[Dict[str, Any]] = None
    ) -> pd.DataFrame:
        """
        Read a CSV and keep the rows inside the date window.

        Raises:
            ValueError: If a required column is missing.
        """
        header = pd.read_csv(path, nrows=0).columns
        missing = [c for c in columns if c not in header]
        if missing:
            raise ValueError(f"{path} is missing column(s): {missing}")

        df = pd.read_csv(path, dtype=dtype)

        df[self.date_column] = pd.to_datetime(df[self.date_column])
        if self.from_date is not None:
            df = df[df[self.date_column] >= self.from_date]
        if self.to_date is not None:
            df = df[df[self.date_column] <= self.to_date]
        return df.sort_values(self.date_column, kind="stable")

    def load_funds_csv(self, path: PathLike) -> List[TimeSeries]:
        """
        Load one TimeSeries per fund from a long-format CSV.

        Funds with missing values inside the window, or with no rows at all
        in it, are logged and left out.

        Args:
            path: CSV with id, date and value columns.

        Returns:
            List of TimeSeries in order of first appearance in the file.
        """
        df = self._read_window(
            path,
            [self.id_column, self.date_column, self.value_column],
            dtype={self.id_column: str},
        )

        order = pd.read_csv(path, usecols=[self.id_column], dtype=str)[self.id_column].unique()
        self.dropped_funds = []
        funds: List[TimeSeries] = []
        grouped = {fund_id: group for fund_id, group in df.groupby(self.id_column, sort=False)}

        for fund_id in order:
            group = grouped.get(fund_id)
            if group is None or group.empty:
                self.dropped_funds.append(fund_id)
                logger.warning(f"No data for {fund_id} between {self.from_date} and {self.to_date}")
                continue
            values = group[self.value_column]
            if values.isna().any():
                self.dropped_funds.append(fund_id)
                logger.warning(f"Removing {fund_id}: {values.isna().sum()} missing values")
                continue
            funds.append(TimeSeries(fund_id, values.to_numpy(dtype=float)))

        logger.info(f"Loaded {len(funds)} funds from {path}. Dropped: {self.dropped_funds}")
        return funds

    def load_risk_free_csv(self, path: PathLike, series_id: str = RISK_FREE_ID) -> TimeSeries:
        """
        Load the risk-free benchmark from a date / value CSV.

        Raises:
            ValueError: If the window is empty or contains missing values.
        """
        df = self._read_window(path, [self.date_column, self.value_column])
        values = df[self.value_column]
        if values.empty:
            raise ValueError(f"No risk-free data in {path} for the selected window")
        if values.isna().any():
            raise ValueError(f"Risk-free series in {path} has missing values")
        return TimeSeries(series_id, values.to_numpy(dtype=float))


def load_timeseries_json(path: PathLike) -> List[TimeSeries]:
    """Read a {"timeseries": [...]} document."""
    document = json.loads(Path(path).read_text())
    return [TimeSeries.from_dict(entry) for entry in document["timeseries"]]


def save_timeseries_json(series: Iterable[TimeSeries], path: PathLike) -> Path:
    """Write a {"timeseries": [...]} document, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    document: Dict[str, Any] = {"timeseries": [ts.to_dict() for ts in series]}
    path.write_text(json.dumps(document))
    return path


def load_risk_free_json(path: PathLike) -> TimeSeries:
    """Read a single-series document."""
    return TimeSeries.from_dict(json.loads(Path(path).read_text()))


def save_risk_free_json(series: TimeSeries, path: PathLike) -> Path:
    """Write a single-series document, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(series.to_dict()))
    return path


def select_best_funds(
    funds: Sequence[TimeSeries],
    fund_count: int,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    volatility_threshold: Optional[float] = None
) -> List[TimeSeries]:
    """
    Pick the funds a search runs on.

    Applies the universe filters, then keeps the fund_count funds with the
    highest average return.

    Args:
        funds: Candidate universe.
        fund_count: Number of funds to keep.
        include: If given and non-empty, only these ids are eligible.
        exclude: Ids that are never eligible.
        volatility_threshold: Funds whose volatility exceeds this are dropped.

    Returns:
        Selected funds, best average return first.

    Raises:
        ConfigError: If fewer than fund_count funds survive the filters.
    """
    eligible = list(funds)
    if include:
        allowed = set(include)
        eligible = [f for f in eligible if f.id in allowed]
    if exclude:
        banned = set(exclude)
        eligible = [f for f in eligible if f.id not in banned]
    if volatility_threshold is not None:
        kept = []
        for fund in eligible:
            vol = fund.std_returns()
            if np.isnan(vol) or vol > volatility_threshold:
                logger.warning(f"Removing {fund.id}: volatility {vol:.6f} above {volatility_threshold}")
            else:
                kept.append(fund)
        eligible = kept

    if len(eligible) < fund_count:
        raise ConfigError(
            f"fund_count is {fund_count} but only {len(eligible)} funds pass the filters"
        )

    # sorted() is stable: equal averages keep universe order
    ranked = sorted(eligible, key=lambda f: f.average_returns(), reverse=True)
    selected = ranked[:fund_count]
    logger.info(f"Selected funds: {[f.id for f in selected]}")
    return selected
