"""Tests for convex hull extraction and split recovery."""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from fundsplit.exceptions import LengthMismatch, LookupFailure
from fundsplit.frontier import Frontier, FrontierExtractor, _PointIndex
from fundsplit.search import SearchOrchestrator


def dummy_splits(n: int) -> np.ndarray:
    """Distinct split per point so recovery can be checked by value."""
    first = np.arange(n) / max(n, 1)
    return np.column_stack([first, 1.0 - first])


def assert_contains(frontier: Frontier, xs: np.ndarray, ys: np.ndarray) -> None:
    """Every point lies on or to the left of each counter-clockwise hull edge."""
    vx, vy = frontier.volatilities, frontier.average_returns
    scale = max(np.ptp(xs), np.ptp(ys), 1e-300)
    for i in range(len(vx)):
        j = (i + 1) % len(vx)
        cross = (vx[j] - vx[i]) * (ys - vy[i]) - (vy[j] - vy[i]) * (xs - vx[i])
        assert np.all(cross >= -1e-9 * scale ** 2)


class TestHull:
    """Tests for the hull geometry."""

    def test_square_with_center(self):
        xs = np.array([0.0, 1.0, 1.0, 0.0, 0.5])
        ys = np.array([0.0, 0.0, 1.0, 1.0, 0.5])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(5))

        assert set(frontier.indices.tolist()) == {0, 1, 2, 3}
        assert frontier.skipped == 0

    def test_counter_clockwise_order(self):
        xs = np.array([0.0, 1.0, 1.0, 0.0, 0.5])
        ys = np.array([0.0, 0.0, 1.0, 1.0, 0.5])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(5))

        # Shoelace area is positive for counter-clockwise polygons
        vx, vy = frontier.volatilities, frontier.average_returns
        area = 0.5 * np.sum(vx * np.roll(vy, -1) - np.roll(vx, -1) * vy)
        assert area == pytest.approx(1.0)

    def test_random_cloud_containment(self):
        rng = np.random.default_rng(42)
        xs = rng.uniform(0.01, 0.05, 300)
        ys = rng.normal(0.01, 0.004, 300)

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(300))

        assert 3 <= len(frontier) < 300
        assert_contains(frontier, xs, ys)

    def test_search_cloud_containment(self, funds, risk_free):
        statistics = SearchOrchestrator(granularity=0.05, fund_count=3).run(funds, risk_free)

        frontier = FrontierExtractor().extract(
            statistics.volatilities, statistics.average_returns, statistics.splits
        )

        assert len(frontier) >= 3
        assert_contains(frontier, statistics.volatilities, statistics.average_returns)


class TestRecovery:
    """Hull vertices map back to their source splits by index."""

    def test_vertices_are_original_points(self, funds, risk_free):
        statistics = SearchOrchestrator(granularity=0.1, fund_count=3).run(funds, risk_free)

        frontier = FrontierExtractor().extract(
            statistics.volatilities, statistics.average_returns, statistics.splits
        )

        idx = frontier.indices
        assert np.array_equal(frontier.splits, statistics.splits[idx])
        assert np.array_equal(frontier.volatilities, statistics.volatilities[idx])
        assert np.array_equal(frontier.average_returns, statistics.average_returns[idx])

    def test_non_finite_points_ignored(self):
        xs = np.array([0.0, np.nan, 1.0, 1.0, 0.0, np.inf])
        ys = np.array([0.0, 0.5, 0.0, 1.0, 1.0, 0.2])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(6))

        assert set(frontier.indices.tolist()) == {0, 2, 3, 4}

    def test_skips_unmatched_vertex(self, monkeypatch):
        """A vertex whose reported coordinates differ from its source is skipped."""
        real_hull_order = FrontierExtractor._hull_order

        def shifted_hull_order(points):
            order, vertex_points = real_hull_order(points)
            vertex_points = vertex_points.copy()
            vertex_points[order == 2] += 1e-3
            return order, vertex_points

        monkeypatch.setattr(FrontierExtractor, "_hull_order", staticmethod(shifted_hull_order))
        xs = np.array([0.0, 1.0, 1.0, 0.0, 0.5])
        ys = np.array([0.0, 0.0, 1.0, 1.0, 0.5])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(5))

        assert frontier.skipped == 1
        assert set(frontier.indices.tolist()) == {0, 1, 3}

    def test_reported_vertex_coordinates_match_input(self):
        """The hull reports each vertex at its input coordinates."""
        xs = np.array([0.0, 1.0, 1.0, 0.0, 0.5])
        ys = np.array([0.0, 0.0, 1.0, 1.0, 0.5])
        extractor = FrontierExtractor()

        order, vertex_points = extractor._hull_order(np.column_stack([xs, ys]))

        assert np.array_equal(vertex_points, np.column_stack([xs[order], ys[order]]))

    def test_length_mismatch(self):
        with pytest.raises(LengthMismatch):
            FrontierExtractor().extract(np.zeros(3), np.zeros(2), dummy_splits(3))


class TestDegenerateClouds:
    """Inputs that cannot form a polygon."""

    def test_empty(self):
        frontier = FrontierExtractor().extract(np.array([]), np.array([]), np.empty((0, 2)))

        assert len(frontier) == 0

    def test_all_nan(self):
        nan = np.full(3, np.nan)

        frontier = FrontierExtractor().extract(nan, nan, dummy_splits(3))

        assert len(frontier) == 0

    def test_two_distinct_points(self):
        xs = np.array([0.1, 0.2, 0.1])
        ys = np.array([0.3, 0.4, 0.3])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(3))

        assert frontier.indices.tolist() == [0, 1]

    def test_collinear_points(self):
        xs = np.array([0.0, 1.0, 2.0, 3.0])
        ys = np.array([0.0, 1.0, 2.0, 3.0])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(4))

        assert {0, 3} <= set(frontier.indices.tolist())


class TestPointIndex:
    """Tests for the index used to confirm hull vertices."""

    def test_lookup(self):
        xs = np.array([0.0, 0.1, 0.3])
        ys = np.array([0.0, 0.2, 0.4])
        index = _PointIndex(np.array([1, 2]), xs, ys)

        assert index.lookup(2, np.array([0.3, 0.4])) == 2

    def test_unknown_index(self):
        index = _PointIndex(np.array([0]), np.array([0.1]), np.array([0.2]))

        with pytest.raises(LookupFailure):
            index.lookup(5, np.array([0.1, 0.2]))

    def test_moved_coordinates(self):
        index = _PointIndex(np.array([0]), np.array([0.1]), np.array([0.2]))

        with pytest.raises(KeyError):
            index.lookup(0, np.array([0.1, 0.2000001]))

    def test_unregistered_index_rejected(self):
        """Indices left out of the hull input (non-finite points) are unknown."""
        xs = np.array([0.1, np.nan])
        ys = np.array([0.2, 0.3])
        index = _PointIndex(np.array([0]), xs, ys)

        with pytest.raises(LookupFailure):
            index.lookup(1, np.array([np.nan, 0.3]))


class TestEfficient:
    """Tests for the Pareto subset of the hull."""

    def test_dominated_vertices_dropped(self):
        xs = np.array([0.10, 0.20, 0.30, 0.25, 0.15])
        ys = np.array([0.05, 0.10, 0.11, 0.02, 0.03])

        frontier = FrontierExtractor().extract(xs, ys, dummy_splits(5))

        assert len(frontier) == 5
        efficient = frontier.efficient()
        assert set(efficient.indices.tolist()) == {0, 1, 2}
        assert np.array_equal(efficient.splits, dummy_splits(5)[efficient.indices])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
