"""
Central configuration for the Allocation Search Engine.

This module contains all configurable parameters including the default search
grid, resource ceilings, and the file layout used throughout the application.
"""

from typing import List

# =============================================================================
# Search Grid
# =============================================================================
# Step between two consecutive candidate weights (0.05 = 5% increments)
DEFAULT_GRANULARITY: float = 0.05

# Number of funds combined in every candidate portfolio
DEFAULT_FUND_COUNT: int = 3

# Decimal places grid weights are rounded to, suppressing float drift
SPLIT_DECIMALS: int = 4

# =============================================================================
# Resource Limits
# =============================================================================
# Searches enumerating more candidates than this refuse to start
MAX_CANDIDATES: int = 1_000_000

# Candidates evaluated per work unit
DEFAULT_CHUNK_SIZE: int = 10_000

# Worker threads evaluating chunks (1 = evaluate in the calling thread)
DEFAULT_MAX_WORKERS: int = 4

# =============================================================================
# Financial Constants
# =============================================================================
# How asset series are combined: "multiplier" weights 1 + r, "returns" weights r
DEFAULT_BLEND_MODE: str = "multiplier"
BLEND_MODES: List[str] = ["multiplier", "returns"]

# Amount compounded when computing the value at the end of the period
INITIAL_INVESTMENT: float = 1.0

# Identifier given to the risk-free benchmark series (CDI)
RISK_FREE_ID: str = "_cdi"

# =============================================================================
# Data Files
# =============================================================================
# Column names of the long-format fund CSV
FUND_ID_COLUMN: str = "CNPJ_Fundo"
DATE_COLUMN: str = "dt"
VALUE_COLUMN: str = "values"

# Output artifacts
ALLOCATION_FILE: str = "allocation.json"
EFFICIENT_FRONTIER_FILE: str = "efficient_frontier.html"
CONVEX_HULL_FILE: str = "convex_hull.html"
RISK_RETURN_FILE: str = "risk_return.html"
