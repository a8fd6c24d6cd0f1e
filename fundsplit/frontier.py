"""
Efficient Frontier Module.

Extracts the convex hull of the (volatility, average return) cloud produced
by a search and maps every hull vertex back to the split that produced it.

Key Concepts:
    - Convex Hull: The smallest convex polygon containing every candidate.
      Its upper-left boundary approximates the efficient frontier.
    - Index Recovery: Points enter the hull algorithm together with their
      position in the Statistics arrays, so a vertex is mapped back to its
      split by index. The coordinates the hull reports for a vertex are then
      compared with the caller's arrays at that index, never used as a
      lookup key.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from fundsplit.exceptions import LengthMismatch, LookupFailure

logger = logging.getLogger(__name__)


@dataclass
class Frontier:
    """
    Convex hull vertices of a search, in counter-clockwise traversal order.

    Attributes:
        indices: Position of each vertex in the Statistics arrays.
        volatilities: Volatility of each vertex.
        average_returns: Average return of each vertex.
        splits: Split of each vertex, shape (vertices, funds).
        skipped: Number of hull vertices that could not be matched.
    """
    indices: np.ndarray
    volatilities: np.ndarray
    average_returns: np.ndarray
    splits: np.ndarray
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.indices)

    def efficient(self) -> "Frontier":
        """
        Keep the Pareto-optimal vertices only.

        A vertex is dropped when another vertex has no more volatility and no
        less return, and is strictly better in one of the two.

        Returns:
            Frontier of the non-dominated vertices, in hull order.
        """
        keep = []
        for i in range(len(self)):
            dominated = np.any(
                (self.volatilities <= self.volatilities[i])
                & (self.average_returns >= self.average_returns[i])
                & (
                    (self.volatilities < self.volatilities[i])
                    | (self.average_returns > self.average_returns[i])
                )
            )
            keep.append(not dominated)
        mask = np.array(keep, dtype=bool)
        return Frontier(
            indices=self.indices[mask],
            volatilities=self.volatilities[mask],
            average_returns=self.average_returns[mask],
            splits=self.splits[mask],
            skipped=self.skipped,
        )


class _PointIndex:
    """Maps a candidate index to its coordinates in the caller's arrays."""

    def __init__(self, indices: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> None:
        self._points: Dict[int, Tuple[float, float]] = {
            int(i): (float(xs[i]), float(ys[i])) for i in indices
        }

    def lookup(self, index: int, point: np.ndarray) -> int:
        """
        Confirm that a hull vertex is the registered candidate.

        Raises:
            LookupFailure: If the index is unknown or the vertex coordinates
                differ from the registered ones.
        """
        registered = self._points.get(int(index))
        if registered is None:
            raise LookupFailure(f"Hull vertex {index} is not a known candidate")
        if registered != (float(point[0]), float(point[1])):
            raise LookupFailure(
                f"Hull vertex {index} at {tuple(point)} does not match candidate at {registered}"
            )
        return int(index)


class FrontierExtractor:
    """
    Computes the convex hull of a search's risk/return cloud.

    Example:
        >>> frontier = FrontierExtractor().extract(
        ...     statistics.volatilities, statistics.average_returns, statistics.splits
        ... )
        >>> frontier.efficient().splits
    """

    def extract(
        self,
        volatilities: np.ndarray,
        average_returns: np.ndarray,
        splits: np.ndarray
    ) -> Frontier:
        """
        Extract the hull vertices and their splits.

        Candidates with a non-finite coordinate are left out of the hull.

        Args:
            volatilities: Volatility of every candidate.
            average_returns: Average return of every candidate.
            splits: Split of every candidate, shape (candidates, funds).

        Returns:
            Frontier with the hull vertices in counter-clockwise order.

        Raises:
            LengthMismatch: If the three inputs differ in length.
        """
        xs = np.asarray(volatilities, dtype=float)
        ys = np.asarray(average_returns, dtype=float)
        splits = np.asarray(splits, dtype=float)
        if not len(xs) == len(ys) == len(splits):
            raise LengthMismatch(
                f"{len(xs)} volatilities, {len(ys)} returns and {len(splits)} splits"
            )

        finite = np.isfinite(xs) & np.isfinite(ys)
        source = np.flatnonzero(finite)
        points = np.column_stack([xs[finite], ys[finite]])
        if len(source) < len(xs):
            logger.info(f"Ignoring {len(xs) - len(source)} candidates with undefined coordinates")

        index = _PointIndex(source, xs, ys)
        hull_order, vertex_points = self._hull_order(points)

        recovered: List[int] = []
        skipped = 0
        for local, vertex in zip(hull_order, vertex_points):
            try:
                recovered.append(index.lookup(source[local], vertex))
            except LookupFailure as e:
                skipped += 1
                logger.warning(f"Skipping hull vertex: {e}")

        indices = np.array(recovered, dtype=int)
        width = splits.shape[1] if splits.ndim == 2 else 0
        return Frontier(
            indices=indices,
            volatilities=xs[indices],
            average_returns=ys[indices],
            splits=splits[indices] if len(indices) else np.empty((0, width)),
            skipped=skipped,
        )

    @staticmethod
    def _hull_order(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Hull vertex positions (rows of points), counter-clockwise, together
        with the coordinates the hull reports for each vertex.

        Fewer than three distinct points cannot form a polygon and are
        returned as-is. Collinear clouds fall back to Qhull's joggle option.
        """
        if len(points) == 0:
            return np.array([], dtype=int), np.empty((0, 2))

        _, first = np.unique(points, axis=0, return_index=True)
        if len(first) < 3:
            order = np.sort(first)
            return order, points[order]

        try:
            hull = ConvexHull(points)
        except QhullError:
            logger.debug("Degenerate point cloud, retrying hull with joggled input")
            hull = ConvexHull(points, qhull_options="QJ")
        return hull.vertices, hull.points[hull.vertices]
