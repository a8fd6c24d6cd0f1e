"""
End-to-end allocation search.

    select funds -> search the grid -> extract the hull -> write charts
    -> pick the max Sharpe allocation -> write allocation.json

The convex hull and risk/return charts are written before selection, so a
run whose candidates are all degenerate still leaves them behind. The
efficient frontier chart marks the best allocation and, like
allocation.json, is only written once a best candidate exists.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from config import (
    ALLOCATION_FILE,
    CONVEX_HULL_FILE,
    EFFICIENT_FRONTIER_FILE,
    RISK_RETURN_FILE,
)
from fundsplit.data_loader import select_best_funds
from fundsplit.frontier import Frontier, FrontierExtractor
from fundsplit.search import SearchConfig, SearchOrchestrator, Statistics
from fundsplit.selection import Allocation, BestAllocationSelector
from fundsplit.timeseries import TimeSeries
from fundsplit.visualizer import DashboardCharts

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """
    Everything a pipeline run produced.

    Attributes:
        funds: Funds the search ran on, in split order.
        statistics: Scores of every candidate.
        frontier: Convex hull of the risk/return cloud.
        allocation: Max Sharpe allocation.
    """
    funds: List[TimeSeries]
    statistics: Statistics
    frontier: Frontier
    allocation: Allocation


def run_pipeline(
    funds: Sequence[TimeSeries],
    risk_free: TimeSeries,
    config: Optional[SearchConfig] = None,
    output_dir: Optional[Union[str, Path]] = None,
    cancel_event: Optional[threading.Event] = None
) -> SearchResult:
    """
    Run the full allocation search.

    Args:
        funds: Fund universe; the best config.fund_count funds are used.
        risk_free: Benchmark series for the Sharpe ratio.
        config: Search parameters. Defaults to SearchConfig().
        output_dir: If given, charts and allocation.json are written here.
        cancel_event: Forwarded to the search for cooperative cancellation.

    Returns:
        SearchResult of the run.

    Raises:
        ConfigError: If the universe or the grid is unusable.
        LengthMismatch: If the series are not aligned.
        NoValidCandidate: If every Sharpe ratio is undefined.
        SearchCancelled: If cancel_event was set during the search.
    """
    config = config or SearchConfig()

    selected = select_best_funds(
        funds,
        config.fund_count,
        include=config.include,
        exclude=config.exclude,
        volatility_threshold=config.volatility_threshold,
    )
    asset_ids = [fund.id for fund in selected]

    statistics = SearchOrchestrator.from_config(config).run(
        selected, risk_free, cancel_event=cancel_event
    )
    frontier = FrontierExtractor().extract(
        statistics.volatilities, statistics.average_returns, statistics.splits
    )
    logger.info(f"Convex hull has {len(frontier)} vertices ({frontier.skipped} skipped)")

    out = Path(output_dir) if output_dir is not None else None
    if out is not None:
        DashboardCharts.write_html(
            DashboardCharts.plot_convex_hull(frontier), out / CONVEX_HULL_FILE
        )
        DashboardCharts.write_html(
            DashboardCharts.plot_risk_return(statistics), out / RISK_RETURN_FILE
        )

    allocation = BestAllocationSelector().select(statistics, asset_ids)

    if out is not None:
        DashboardCharts.write_html(
            DashboardCharts.plot_efficient_frontier(statistics, frontier, allocation),
            out / EFFICIENT_FRONTIER_FILE,
        )
        allocation.to_json(out / ALLOCATION_FILE)

    return SearchResult(
        funds=selected,
        statistics=statistics,
        frontier=frontier,
        allocation=allocation,
    )
