"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import matplotlib
matplotlib.use('Agg')  # non-interactive backend for testing
import pandas as pd
import pytest
from click.testing import CliRunner

from retireplan import __version__
from retireplan.cli import main
from retireplan.processes import GBM, rand


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def short_plan():
    """Options for a five-year quarterly plan with few repetitions."""
    return ["--start-age", "60", "--duration", "5", "--dt", "0.25", "-n", "20", "--seed", "1"]


@pytest.fixture
def prices_csv(tmp_path):
    """Fifty years of daily closes from a known GBM."""
    dt = 1 / 252
    prices = rand(GBM(mu=0.10, sigma=0.01), 50 * 252, dt=dt, rng=17)
    path = tmp_path / "prices.csv"
    pd.DataFrame({"day": range(len(prices)), "close": prices}).to_csv(path, index=False)
    return path


# ============================================================================
# MAIN GROUP
# ============================================================================

class TestMain:
    """Tests for the command group."""

    def test_version(self, runner):
        """Test --version flag."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        """Test help lists every command."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("simulate", "sweep", "fit"):
            assert command in result.output


# ============================================================================
# SIMULATE COMMAND
# ============================================================================

class TestSimulateCommand:
    """Tests for 'retireplan simulate'."""

    def test_table_output(self, runner, short_plan):
        """Test the survival table is printed."""
        result = runner.invoke(main, ["simulate", *short_plan, "--retire-age", "62"])
        assert result.exit_code == 0, result.output
        assert "Simulation Results" in result.output
        assert "Survival" in result.output

    def test_quiet_output(self, runner, short_plan):
        """Test quiet mode prints only the final survival."""
        result = runner.invoke(main, ["-q", "simulate", *short_plan, "--retire-age", "62"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("Final survival:")
        value = float(result.output.split(":")[1])
        assert 0.0 <= value <= 1.0

    def test_reproducible(self, runner, short_plan):
        """Test equal seeds print equal results."""
        args = ["-q", "simulate", *short_plan, "--withdraw", "20000", "--retire-age", "61"]
        first = runner.invoke(main, args)
        second = runner.invoke(main, args)
        assert first.output == second.output

    def test_csv_and_plot(self, runner, short_plan, tmp_path):
        """Test output files are written."""
        csv_path = tmp_path / "out.csv"
        png_path = tmp_path / "fan.png"
        result = runner.invoke(main, ["-q", "simulate", *short_plan,
                                      "-o", str(csv_path), "--plot", str(png_path)])
        assert result.exit_code == 0, result.output
        df = pd.read_csv(csv_path)
        assert len(df) == 20 * 20
        assert {"time", "rep", "net_worth"} <= set(df.columns)
        assert png_path.exists()

    def test_invalid_scenario_exits(self, runner):
        """Test configuration errors exit with status 1."""
        result = runner.invoke(main, ["simulate", "--duration", "0", "--start-age", "60",
                                      "--retire-age", "65", "-n", "5"])
        assert result.exit_code == 1
        assert "Error" in result.output


# ============================================================================
# SWEEP COMMAND
# ============================================================================

class TestSweepCommand:
    """Tests for 'retireplan sweep'."""

    def test_quiet_rows(self, runner, short_plan):
        """Test one row per (retirement age, withdrawal)."""
        result = runner.invoke(main, ["-q", "sweep", *short_plan,
                                      "--retire-age", "61", "--retire-age", "62",
                                      "--withdraw", "100", "--withdraw", "200"])
        assert result.exit_code == 0, result.output
        rows = [line.split("\t") for line in result.output.strip().splitlines()]
        assert len(rows) == 4
        assert sorted((r[0], r[1]) for r in rows) == [
            ("61", "100"), ("61", "200"), ("62", "100"), ("62", "200"),
        ]

    def test_single_combination(self, runner, short_plan):
        """Test one age and one withdrawal still run."""
        result = runner.invoke(main, ["-q", "sweep", *short_plan,
                                      "--retire-age", "62", "--withdraw", "100"])
        assert result.exit_code == 0, result.output
        assert len(result.output.strip().splitlines()) == 1

    def test_table_and_csv(self, runner, short_plan, tmp_path):
        """Test the results table and CSV export."""
        csv_path = tmp_path / "sweep.csv"
        result = runner.invoke(main, ["sweep", *short_plan,
                                      "--retire-age", "61", "--retire-age", "62",
                                      "--withdraw", "100", "-o", str(csv_path)])
        assert result.exit_code == 0, result.output
        assert "Sweep Results" in result.output
        assert "$100" in result.output
        df = pd.read_csv(csv_path)
        assert len(df) == 2 * 20 * 20
        assert "withdraw_withdraws" in df.columns


# ============================================================================
# FIT COMMAND
# ============================================================================

class TestFitCommand:
    """Tests for 'retireplan fit'."""

    def test_recovers_parameters(self, runner, prices_csv):
        """Test drift and volatility of a known process."""
        result = runner.invoke(main, ["-q", "fit", str(prices_csv), "--column", "close"])
        assert result.exit_code == 0, result.output
        mu, sigma = (float(v) for v in result.output.split())
        assert mu == pytest.approx(0.10, rel=0.05)
        assert sigma == pytest.approx(0.01, rel=0.05)

    def test_default_column_is_last_numeric(self, runner, prices_csv):
        """Test the last numeric column is used when none is given."""
        result = runner.invoke(main, ["fit", str(prices_csv)])
        assert result.exit_code == 0, result.output
        assert "close" in result.output

    def test_missing_column_exits(self, runner, prices_csv):
        """Test unknown columns exit with status 1."""
        result = runner.invoke(main, ["fit", str(prices_csv), "--column", "open"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_missing_file(self, runner, tmp_path):
        """Test nonexistent files are rejected by click."""
        result = runner.invoke(main, ["fit", str(tmp_path / "nope.csv")])
        assert result.exit_code != 0
