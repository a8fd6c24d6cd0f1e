"""
Search Visualization Module.

This module provides interactive Plotly charts of an allocation search. Every
point carries its split in the hover text so a chart can be read back to the
allocation that produced it.

Charts Included:
    - Efficient Frontier: every candidate's volatility vs average return,
      colored by Sharpe ratio, with the hull and the best allocation
    - Convex Hull: the hull vertices alone
    - Risk / Return: volatility vs value at end of period
    - Allocation donut chart
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from fundsplit.frontier import Frontier
from fundsplit.search import Statistics
from fundsplit.selection import Allocation

logger = logging.getLogger(__name__)

# Professional color palette
COLORS = {
    "primary": "#1f77b4",      # Blue
    "secondary": "#ff7f0e",    # Orange
    "success": "#2ca02c",      # Green
    "danger": "#d62728",       # Red
    "gray": "#7f7f7f",         # Gray
}


def split_labels(splits: np.ndarray, prefix: str = "Split") -> List[str]:
    """Hover text for each split, e.g. "Split: [0.50, 0.30, 0.20]"."""
    if len(splits) == 0:
        return []
    return [
        f"{prefix}: [" + ", ".join(f"{w:.2f}" for w in split) + "]"
        for split in np.atleast_2d(splits)
    ]


def _layout(fig: go.Figure, title: str, x_title: str, y_title: str, height: int) -> None:
    fig.update_layout(
        title=dict(text=f"<b>{title}</b>", font=dict(size=20)),
        xaxis=dict(title=x_title, gridcolor="lightgray"),
        yaxis=dict(title=y_title, gridcolor="lightgray"),
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="left",
            x=0.01,
            bgcolor="rgba(255,255,255,0.8)",
            font=dict(color="black")
        ),
        height=height,
        template="plotly_white",
        hovermode="closest"
    )


class DashboardCharts:
    """
    Creates interactive Plotly charts for search results.

    All methods are static and return Plotly figure objects that can be
    shown directly or written to HTML with write_html().

    Example:
        >>> fig = DashboardCharts.plot_efficient_frontier(statistics, frontier, best)
        >>> DashboardCharts.write_html(fig, "data/04_visualization/efficient_frontier.html")
    """

    @staticmethod
    def plot_efficient_frontier(
        statistics: Statistics,
        frontier: Optional[Frontier] = None,
        best: Optional[Allocation] = None,
        height: int = 600
    ) -> go.Figure:
        """
        Create the Efficient Frontier visualization.

        Displays:
        - Scatter plot of every candidate colored by Sharpe ratio
        - Convex hull boundary (closed polygon)
        - Best allocation (star marker)

        Args:
            statistics: Output of a search.
            frontier: Hull of the search, drawn as a closed line if given.
            best: Selected allocation, highlighted if given.
            height: Chart height in pixels.

        Returns:
            Plotly Figure object.
        """
        fig = go.Figure()

        fig.add_trace(
            go.Scatter(
                x=statistics.volatilities,
                y=statistics.average_returns,
                mode="markers",
                marker=dict(
                    size=6,
                    color=statistics.sharpe_ratios,
                    colorscale="Viridis",
                    colorbar=dict(
                        title=dict(text="Sharpe Ratio", side="right")
                    ),
                    opacity=0.6,
                    line=dict(width=0)
                ),
                text=split_labels(statistics.splits),
                hoverinfo="text+x+y",
                name="Candidates"
            )
        )

        if frontier is not None and len(frontier):
            fig.add_trace(
                go.Scatter(
                    x=np.append(frontier.volatilities, frontier.volatilities[0]),
                    y=np.append(frontier.average_returns, frontier.average_returns[0]),
                    mode="lines",
                    line=dict(color=COLORS["danger"], width=2),
                    name="Convex Hull",
                    hoverinfo="skip"
                )
            )

        if best is not None:
            weights = ", ".join(f"{k}: {v:.2f}" for k, v in best.allocations.items())
            fig.add_trace(
                go.Scatter(
                    x=[best.volatility],
                    y=[best.average],
                    mode="markers",
                    marker=dict(
                        size=20,
                        color=COLORS["success"],
                        symbol="star",
                        line=dict(color="white", width=2)
                    ),
                    name=f"Max Sharpe (SR: {best.sharpe_ratio:.2f})",
                    hovertext=f"Max Sharpe Allocation<br>{weights}<br>"
                              f"Sharpe: {best.sharpe_ratio:.2f}",
                    hoverinfo="text"
                )
            )

        _layout(fig, "Efficient Frontier", "Volatility", "Average Return", height)
        return fig

    @staticmethod
    def plot_convex_hull(frontier: Frontier, height: int = 600) -> go.Figure:
        """
        Create a scatter of the hull vertices with their splits.

        Args:
            frontier: Hull of a search.
            height: Chart height in pixels.

        Returns:
            Plotly Figure object.
        """
        fig = go.Figure(
            go.Scatter(
                x=frontier.volatilities,
                y=frontier.average_returns,
                mode="markers",
                marker=dict(size=9, color=COLORS["primary"]),
                text=split_labels(frontier.splits, prefix="Splits"),
                hoverinfo="text+x+y",
                name="Hull Vertices"
            )
        )
        _layout(fig, "Convex hull", "Volatility", "Average Return", height)
        return fig

    @staticmethod
    def plot_risk_return(statistics: Statistics, height: int = 600) -> go.Figure:
        """
        Create a scatter of volatility against value at end of period.

        Args:
            statistics: Output of a search.
            height: Chart height in pixels.

        Returns:
            Plotly Figure object.
        """
        fig = go.Figure(
            go.Scatter(
                x=statistics.volatilities,
                y=statistics.returns_at_end,
                mode="markers",
                marker=dict(size=6, color=COLORS["secondary"], opacity=0.6),
                text=split_labels(statistics.splits),
                hoverinfo="text+x+y",
                name="Candidates"
            )
        )
        _layout(fig, "Risk / Return", "Volatility", "Value at End", height)
        return fig

    @staticmethod
    def plot_allocation_donut(
        weights: Dict[str, float],
        height: int = 450
    ) -> go.Figure:
        """
        Create a donut chart showing the allocation.

        Args:
            weights: Dictionary of {fund id: weight}.
            height: Chart height in pixels.

        Returns:
            Plotly Figure object.
        """
        # Filter out zero/negligible weights
        filtered_weights = {
            k: v for k, v in weights.items() if v > 0.001
        }

        # Sort by weight descending
        sorted_pairs = sorted(filtered_weights.items(), key=lambda x: x[1], reverse=True)
        labels, values = zip(*sorted_pairs) if sorted_pairs else ([], [])

        fig = go.Figure(
            data=[
                go.Pie(
                    labels=list(labels),
                    values=list(values),
                    hole=0.4,
                    textinfo="label+percent",
                    textposition="outside",
                    marker=dict(
                        colors=px.colors.qualitative.Set2[:len(labels)],
                        line=dict(color="white", width=2)
                    ),
                    hovertemplate="<b>%{label}</b><br>"
                                  "Weight: %{value:.2%}<br>"
                                  "<extra></extra>"
                )
            ]
        )

        fig.update_layout(
            title=dict(
                text="Optimal Allocation",
                font=dict(size=20)
            ),
            height=height,
            showlegend=True,
            annotations=[
                dict(
                    text="Weights",
                    x=0.5,
                    y=0.5,
                    font_size=16,
                    showarrow=False
                )
            ]
        )

        return fig

    @staticmethod
    def write_html(fig: go.Figure, path: Union[str, Path]) -> Path:
        """Write a figure as a standalone HTML page, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(path))
        logger.info(f"Chart written to {path}")
        return path
