"""
Unit tests for plotting module.

Tests figure creation with the non-interactive Agg backend.
"""

import matplotlib
matplotlib.use('Agg')  # non-interactive backend for testing
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from retireplan.model import Logger
from retireplan.plotting import plot_gradient, plot_sensitivity, plot_survival


@pytest.fixture(autouse=True)
def close_figures():
    """Close all figures after each test."""
    yield
    plt.close('all')


@pytest.fixture
def paths(rng):
    """Fifty random-walk paths over twelve steps."""
    return 1000 + np.cumsum(rng.normal(0, 10, size=(50, 12)), axis=1)


@pytest.fixture
def times():
    return 60 + np.arange(1, 13) / 12


# ---------------------------------------------------------------------------
# plot_gradient Tests
# ---------------------------------------------------------------------------

class TestPlotGradient:
    """Tests for plot_gradient."""

    def test_returns_fig_ax(self, times, paths):
        """Test figure and axes are returned on request."""
        fig, ax = plot_gradient(times, paths, return_fig_ax=True)
        assert ax.get_xlabel() == "Age"
        # 2 bands for 5 percentiles + median line
        assert len(ax.collections) == 2
        assert len(ax.lines) == 1

    def test_returns_none_by_default(self, times, paths):
        """Test nothing is returned unless asked."""
        assert plot_gradient(times, paths) is None

    def test_sample_lines(self, times, paths):
        """Test n_lines overlays individual paths."""
        _, ax = plot_gradient(times, paths, n_lines=3, return_fig_ax=True)
        assert len(ax.lines) == 4

    def test_existing_axes(self, times, paths):
        """Test drawing into a supplied axes."""
        fig, ax = plt.subplots()
        out_fig, out_ax = plot_gradient(times, paths, ax=ax, return_fig_ax=True)
        assert out_ax is ax
        assert out_fig is fig

    def test_shape_mismatch_raises(self, times, paths):
        """Test paths must match the time axis."""
        with pytest.raises(ValueError, match="columns"):
            plot_gradient(times[:-1], paths)

    def test_save_path(self, times, paths, tmp_path):
        """Test the figure is written to disk."""
        out = tmp_path / "fan.png"
        plot_gradient(times, paths, title="Net worth", save_path=str(out))
        assert out.exists()


# ---------------------------------------------------------------------------
# plot_survival Tests
# ---------------------------------------------------------------------------

class TestPlotSurvival:
    """Tests for plot_survival."""

    @pytest.fixture
    def loggers(self):
        a, b = Logger(3, 2), Logger(3, 2)
        a.net_worth[:] = 1.0
        b.net_worth[:, 0] = [1.0, 1.0, 0.0]
        return {"retire 62": a, "retire 67": b}

    def test_one_line_per_scenario(self, loggers):
        """Test a labelled curve per logger."""
        _, ax = plot_survival([1, 2, 3], loggers, return_fig_ax=True)
        assert len(ax.lines) == 2
        np.testing.assert_allclose(ax.lines[1].get_ydata(), [0.5, 0.5, 0.0])

    def test_single_logger(self, loggers):
        """Test a bare logger draws one curve."""
        _, ax = plot_survival([1, 2, 3], loggers["retire 62"], return_fig_ax=True)
        assert len(ax.lines) == 1


# ---------------------------------------------------------------------------
# plot_sensitivity Tests
# ---------------------------------------------------------------------------

class TestPlotSensitivity:
    """Tests for plot_sensitivity."""

    def test_heatmap(self, tmp_path):
        """Test a 2 x 2 heatmap is drawn and saved."""
        df = pd.DataFrame({
            "time": [1.0] * 4,
            "net_worth": [1.0, 0.0, 1.0, 1.0],
            "withdraw_amount": [1000, 2000, 1000, 2000],
            "retire_age": [62, 62, 67, 67],
        })
        out = tmp_path / "heat.png"
        fig, ax = plot_sensitivity(df, "withdraw_amount", "retire_age",
                                   save_path=str(out), return_fig_ax=True)
        assert len(ax.images) == 1
        assert ax.images[0].get_array().shape == (2, 2)
        assert out.exists()
