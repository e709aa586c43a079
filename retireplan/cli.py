"""
Command-Line Interface for retireplan.

Purpose
-------
Stress-test a retirement plan from the shell without writing Python:
run a single scenario, sweep retirement ages and withdrawal levels, or
fit growth parameters to a price history.

Commands
--------
- simulate: Monte Carlo run of one plan with survival table
- sweep:    grid search over retirement ages and withdrawal amounts
- fit:      estimate (mu, sigma) of a GBM from a CSV price column

Example Usage
-------------
    # One plan, 2,000 repetitions
    $ retireplan simulate --start-age 30 --retire-age 67 --invest 1000 --withdraw 3500 -n 2000

    # Retirement age x withdrawal sweep, in parallel
    $ retireplan sweep --retire-age 62 --retire-age 67 --withdraw 3000 --withdraw 4000 --parallel

    # Fit daily closes
    $ retireplan fit prices.csv --column close --periods-per-year 252

    # Show version
    $ retireplan --version
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Tuple

import click
import numpy as np

from . import __version__
from .config import get_settings, setup_logging
from .exceptions import RetirePlanError
from .utils import format_currency


def _get_console():
    """Rich console for formatted output."""
    from rich.console import Console
    return Console()


def _plan_config(
    *,
    start_age: float,
    duration: float,
    start_amount: float,
    dt: float,
    invest_amounts,
    withdraw_amounts,
    retire_ages,
    market_mu: float,
    market_sigma: float,
    inflation_mu: float,
    inflation_sigma: float,
) -> Tuple[dict, list]:
    """Sweep configuration plus the yoke tying retirement to the end of investing."""
    from scipy.stats import norm

    from .processes import GBM
    from .transactions import AdaptiveWithdraw, Transaction

    withdraws = [
        Transaction(age, amount=AdaptiveWithdraw(min_withdraw=w, percent_of_real_growth=0.15,
                                                 volatility=0.05))
        for age in retire_ages
        for w in withdraw_amounts
    ]
    investments = [
        Transaction(start_age, age, norm(inv, 0.1 * inv) if inv > 0 else inv)
        for age in retire_ages
        for inv in invest_amounts
    ]
    config = {
        "dt": dt,
        "start_age": start_age,
        "duration": duration,
        "start_amount": start_amount,
        "kw_market": {"gbm": GBM(mu=market_mu, sigma=market_sigma)},
        "kw_inflation": {"gbm": GBM(mu=inflation_mu, sigma=inflation_sigma)},
        "kw_withdraw": {"withdraws": withdraws if len(withdraws) > 1 else withdraws[0]},
        "kw_invest": {"investments": investments if len(investments) > 1 else investments[0]},
    }
    yoked = []
    if len(withdraws) > 1 and len(investments) > 1:
        yoked = [(("kw_withdraw", "withdraws", "start_age"),
                  ("kw_invest", "investments", "end_age"))]
    return config, yoked


_common_options = [
    click.option("--start-age", type=float, default=30.0, show_default=True,
                 help="Age at the start of the simulation"),
    click.option("--duration", type=float, default=60.0, show_default=True,
                 help="Simulated span in years"),
    click.option("--start-amount", type=float, default=10_000.0, show_default=True,
                 help="Initial net worth"),
    click.option("--dt", type=float, default=1 / 12, show_default=True,
                 help="Time step in years"),
    click.option("--market-mu", type=float, default=0.07, show_default=True),
    click.option("--market-sigma", type=float, default=0.12, show_default=True),
    click.option("--inflation-mu", type=float, default=0.03, show_default=True),
    click.option("--inflation-sigma", type=float, default=0.01, show_default=True),
    click.option("--simulations", "-n", type=int, default=None,
                 help="Repetitions per scenario (default: RETIREPLAN_N_REPS)"),
    click.option("--seed", "-s", type=int, default=None,
                 help="Random seed (default: RETIREPLAN_SEED)"),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="retireplan")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default=None,
    help="Logging level (default: RETIREPLAN_LOG_LEVEL)",
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, log_level: Optional[str]) -> None:
    """
    retireplan - Monte Carlo stress tests for retirement plans.

    Use 'retireplan COMMAND --help' for command-specific help.
    """
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = _get_console()
    ctx.obj["settings"] = settings


@main.command()
@common_options
@click.option("--retire-age", type=float, default=67.0, show_default=True,
              help="Age at which investing stops and withdrawals begin")
@click.option("--invest", type=float, default=1000.0, show_default=True,
              help="Mean contribution per step before retirement")
@click.option("--withdraw", type=float, default=3000.0, show_default=True,
              help="Minimum withdrawal per step after retirement")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Write the long-form results to this CSV file")
@click.option("--plot", type=click.Path(path_type=Path), default=None,
              help="Save a net-worth fan chart to this image file")
@click.pass_context
def simulate(
    ctx: click.Context,
    start_age: float,
    duration: float,
    start_amount: float,
    dt: float,
    market_mu: float,
    market_sigma: float,
    inflation_mu: float,
    inflation_sigma: float,
    simulations: Optional[int],
    seed: Optional[int],
    retire_age: float,
    invest: float,
    withdraw: float,
    output: Optional[Path],
    plot: Optional[Path],
) -> None:
    """
    Run a Monte Carlo simulation of one plan.

    Example:
        retireplan simulate --retire-age 65 --withdraw 4000 -n 5000 --seed 7
    """
    from .model import Logger, Model
    from .reporting import summarize, to_dataframe
    from .simulation import get_times
    from .simulation import simulate as run_simulation

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]
    settings = ctx.obj["settings"]
    n_reps = simulations or settings.n_reps
    seed = settings.seed if seed is None else seed

    config, _ = _plan_config(
        start_age=start_age, duration=duration, start_amount=start_amount, dt=dt,
        invest_amounts=[invest], withdraw_amounts=[withdraw], retire_ages=[retire_age],
        market_mu=market_mu, market_sigma=market_sigma,
        inflation_mu=inflation_mu, inflation_sigma=inflation_sigma,
    )
    try:
        model = Model(**config, seed=seed)
        logger = Logger(len(get_times(model)), n_reps)
        if not quiet:
            console.print(f"[bold]Running {n_reps:,} repetitions over {duration:g} years...[/bold]")
        run_simulation(model, logger, n_reps)
    except RetirePlanError as e:
        click.echo(f"Error during simulation: {e}", err=True)
        sys.exit(1)

    summary = summarize(model, logger)
    if not quiet:
        from rich.table import Table

        table = Table(title="Simulation Results", show_header=True)
        table.add_column("Age", style="cyan", justify="right")
        table.add_column("Survival", style="green", justify="right")
        table.add_column("Median Net Worth", justify="right")
        table.add_column("5th Percentile", justify="right")
        step = max(1, int(round(5 / dt)))
        for age, row in summary.iloc[step - 1::step].iterrows():
            table.add_row(f"{age:.0f}", f"{row['survival']:.1%}",
                          format_currency(row['p50']), format_currency(row['p5']))
        console.print(table)
    else:
        click.echo(f"Final survival: {summary['survival'].iloc[-1]:.4f}")

    if output:
        to_dataframe(model, logger).to_csv(output, index=False)
        if not quiet:
            click.echo(f"Results saved to {output}")
    if plot:
        from .plotting import plot_gradient

        plot_gradient(get_times(model), logger.net_worth.T, ylabel="Net worth",
                      title="Net worth", save_path=str(plot))
        if not quiet:
            click.echo(f"Plot saved to {plot}")


@main.command()
@common_options
@click.option("--retire-age", type=float, multiple=True, default=(62.0, 67.0), show_default=True,
              help="Retirement age to test (repeatable)")
@click.option("--invest", type=float, default=1000.0, show_default=True,
              help="Mean contribution per step before retirement")
@click.option("--withdraw", type=float, multiple=True, default=(3000.0, 4000.0), show_default=True,
              help="Minimum withdrawal per step to test (repeatable)")
@click.option("--parallel/--sequential", default=False, help="Evaluate combinations in worker processes")
@click.option("--workers", type=int, default=None, help="Number of worker processes")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Write the long-form results to this CSV file")
@click.pass_context
def sweep(
    ctx: click.Context,
    start_age: float,
    duration: float,
    start_amount: float,
    dt: float,
    market_mu: float,
    market_sigma: float,
    inflation_mu: float,
    inflation_sigma: float,
    simulations: Optional[int],
    seed: Optional[int],
    retire_age: Tuple[float, ...],
    invest: float,
    withdraw: Tuple[float, ...],
    parallel: bool,
    workers: Optional[int],
    output: Optional[Path],
) -> None:
    """
    Grid search over retirement ages and withdrawal amounts.

    Investing stops at the same age withdrawals begin.

    Example:
        retireplan sweep --retire-age 60 --retire-age 65 --withdraw 2500 --withdraw 3500
    """
    from .model import Logger, Model
    from .reporting import survival_probability, to_dataframe
    from .sweep import grid_search

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]
    settings = ctx.obj["settings"]
    n_reps = simulations or settings.n_reps
    seed = settings.seed if seed is None else seed

    # singletons are promoted to one-element sweeps so the yoke always applies
    ages = list(retire_age)
    amounts = list(withdraw)
    config, yoked = _plan_config(
        start_age=start_age, duration=duration, start_amount=start_amount, dt=dt,
        invest_amounts=[invest], withdraw_amounts=amounts, retire_ages=ages,
        market_mu=market_mu, market_sigma=market_sigma,
        inflation_mu=inflation_mu, inflation_sigma=inflation_sigma,
    )
    for group, key in (("kw_withdraw", "withdraws"), ("kw_invest", "investments")):
        if not isinstance(config[group][key], list):
            config[group][key] = [config[group][key]]
    if not yoked:
        yoked = [(("kw_withdraw", "withdraws", "start_age"),
                  ("kw_invest", "investments", "end_age"))]

    try:
        results = grid_search(
            Model, Logger, n_reps, config,
            yoked_values=yoked, parallel=parallel,
            max_workers=workers or settings.max_workers,
            show_progress=not quiet, seed=seed,
        )
    except RetirePlanError as e:
        click.echo(f"Error during sweep: {e}", err=True)
        sys.exit(1)

    rows = []
    for params, logger in results:
        values = dict(params)
        wd = values[("kw_withdraw", "withdraws")]
        rows.append((wd.start_age, wd.amount.min_withdraw,
                     float(survival_probability(logger)[-1]),
                     float(np.median(logger.net_worth[-1]))))

    if not quiet:
        from rich.table import Table

        table = Table(title="Sweep Results", show_header=True)
        table.add_column("Retire Age", style="cyan", justify="right")
        table.add_column("Withdraw", justify="right")
        table.add_column("Final Survival", style="green", justify="right")
        table.add_column("Median Final Net Worth", justify="right")
        for age, amount, surv, med in rows:
            table.add_row(f"{age:g}", format_currency(amount), f"{surv:.1%}", format_currency(med))
        console.print(table)
    else:
        for age, amount, surv, _ in rows:
            click.echo(f"{age:g}\t{amount:.0f}\t{surv:.4f}")

    if output:
        model = Model(**{k: v for k, v in config.items() if not k.startswith("kw_")})
        to_dataframe(model, results).to_csv(output, index=False)
        if not quiet:
            click.echo(f"Results saved to {output}")


@main.command()
@click.argument("prices_csv", type=click.Path(exists=True, path_type=Path))
@click.option("--column", "-c", default=None, help="Price column (default: last numeric column)")
@click.option("--periods-per-year", type=float, default=252.0, show_default=True,
              help="Observations per year (252 trading days, 12 months, ...)")
@click.pass_context
def fit(ctx: click.Context, prices_csv: Path, column: Optional[str], periods_per_year: float) -> None:
    """
    Estimate GBM drift and volatility from a price history.

    Example:
        retireplan fit sp500.csv --column close
    """
    import pandas as pd

    from .processes import fit as fit_gbm

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    df = pd.read_csv(prices_csv)
    if column is None:
        numeric = df.select_dtypes("number").columns
        if len(numeric) == 0:
            click.echo("Error: no numeric column found", err=True)
            sys.exit(1)
        column = numeric[-1]
    if column not in df.columns:
        click.echo(f"Error: column {column!r} not found (available: {list(df.columns)})", err=True)
        sys.exit(1)

    try:
        mu, sigma = fit_gbm(df[column].dropna().to_numpy(), dt=1.0 / periods_per_year)
    except ValueError as e:
        click.echo(f"Error fitting prices: {e}", err=True)
        sys.exit(1)

    if quiet:
        click.echo(f"{mu:.6f}\t{sigma:.6f}")
    else:
        console.print(f"[bold]{column}[/bold]: mu = [green]{mu:.4f}[/green], "
                      f"sigma = [green]{sigma:.4f}[/green]")


if __name__ == "__main__":
    main()
