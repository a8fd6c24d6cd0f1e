"""
Allocation Search Engine - Source Package

This package enumerates quantized fund allocations, scores each one from
historical return series, and extracts the efficient frontier and the
maximum Sharpe ratio allocation.

Modules:
    - mathematics: Return statistics shared by all evaluation paths
    - timeseries: Fund and benchmark return series
    - splits: Quantized allocation grid
    - portfolio: Blending and scoring of candidate portfolios
    - search: Exhaustive grid search
    - frontier: Convex hull extraction
    - selection: Max Sharpe allocation
    - data_loader: Series input/output and fund universe selection
    - visualizer: Interactive chart generation
    - pipeline: End-to-end run
"""

from fundsplit.exceptions import (
    ArityMismatch,
    CandidateLimitExceeded,
    ConfigError,
    DegenerateVolatility,
    LengthMismatch,
    LookupFailure,
    NoValidCandidate,
    SearchCancelled,
    SearchError,
)
from fundsplit.mathematics import QuantMetrics
from fundsplit.timeseries import TimeSeries
from fundsplit.splits import SplitGenerator
from fundsplit.portfolio import Portfolio, PortfolioEvaluator, PortfolioStats
from fundsplit.search import SearchConfig, SearchOrchestrator, Statistics
from fundsplit.frontier import Frontier, FrontierExtractor
from fundsplit.selection import Allocation, BestAllocationSelector
from fundsplit.data_loader import FundDataLoader, select_best_funds
from fundsplit.visualizer import DashboardCharts
from fundsplit.pipeline import SearchResult, run_pipeline

__all__ = [
    "ArityMismatch",
    "CandidateLimitExceeded",
    "ConfigError",
    "DegenerateVolatility",
    "LengthMismatch",
    "LookupFailure",
    "NoValidCandidate",
    "SearchCancelled",
    "SearchError",
    "QuantMetrics",
    "TimeSeries",
    "SplitGenerator",
    "Portfolio",
    "PortfolioEvaluator",
    "PortfolioStats",
    "SearchConfig",
    "SearchOrchestrator",
    "Statistics",
    "Frontier",
    "FrontierExtractor",
    "Allocation",
    "BestAllocationSelector",
    "FundDataLoader",
    "select_best_funds",
    "DashboardCharts",
    "SearchResult",
    "run_pipeline",
]

__version__ = "1.0.0"
