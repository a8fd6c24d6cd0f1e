"""Shared fixtures: small, hand-written fund universes."""

import os
import sys
from typing import List

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from fundsplit.timeseries import TimeSeries


@pytest.fixture
def funds() -> List[TimeSeries]:
    """Three funds over six periods with clearly different profiles."""
    return [
        TimeSeries("A", [0.010, 0.020, -0.005, 0.015, 0.007, 0.012]),
        TimeSeries("B", [0.004, 0.003, 0.005, 0.002, 0.006, 0.004]),
        TimeSeries("C", [0.030, -0.020, 0.025, -0.010, 0.040, 0.000]),
    ]


@pytest.fixture
def universe(funds) -> List[TimeSeries]:
    """The three funds plus a low-return fund that selection should drop."""
    return funds + [TimeSeries("D", [0.001, 0.001, 0.002, 0.001, 0.001, 0.002])]


@pytest.fixture
def risk_free() -> TimeSeries:
    return TimeSeries("_cdi", [0.003, 0.003, 0.004, 0.003, 0.004, 0.003])


@pytest.fixture
def flat_funds() -> List[TimeSeries]:
    """Funds whose blended multipliers equal the flat risk-free series exactly."""
    return [
        TimeSeries("X", [0.0, 0.0, 0.0, 0.0]),
        TimeSeries("Y", [0.0, 0.0, 0.0, 0.0]),
    ]


@pytest.fixture
def flat_risk_free() -> TimeSeries:
    return TimeSeries("_cdi", [1.0, 1.0, 1.0, 1.0])
