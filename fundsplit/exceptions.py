"""
Error taxonomy of the allocation search.

Every error derives from SearchError. Structural errors also derive from the
matching builtin (ValueError, KeyError), so callers written against plain
ValueError keep working.
"""


class SearchError(Exception):
    """Base class for all allocation search errors."""


class ConfigError(SearchError, ValueError):
    """Invalid search configuration (granularity, fund count, limits)."""


class CandidateLimitExceeded(ConfigError):
    """The search grid enumerates more candidates than the configured ceiling."""


class ArityMismatch(SearchError, ValueError):
    """A split, asset list or id list does not have the expected length."""


class LengthMismatch(SearchError, ValueError):
    """Two return series that must be aligned have different lengths."""


class DegenerateVolatility(SearchError, RuntimeWarning):
    """
    Warning category for candidates whose excess returns have zero deviation.

    Never raised: the Sharpe ratio of such a candidate is NaN or infinite and
    flows through the pipeline. Selection skips NaN ratios only.
    """


class LookupFailure(SearchError, KeyError):
    """A convex hull vertex could not be matched to its source candidate."""


class NoValidCandidate(SearchError, ValueError):
    """Every candidate's Sharpe ratio is NaN (or there are no candidates)."""


class SearchCancelled(SearchError):
    """The search observed its cancellation event and stopped."""
