"""
CLI entry point: ladder pnl | plan | sell-plan | price | health.

Every command loads config from --config (default config.yaml) and prints
human-readable results. Live prices go through the guarded fetcher, so a
failing provider trips the breaker instead of stalling every command.
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import AppConfig, load_config

load_dotenv()

logger = logging.getLogger("ladder")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _load(ctx: click.Context) -> AppConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


def _events(cfg: AppConfig):
    from cli.structured_log import StructuredEventLogger

    return StructuredEventLogger(
        cfg.coin_id,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )


def _price_client(cfg: AppConfig):
    """Build the guarded fetcher for the configured provider. One breaker per client."""
    from data import CircuitBreaker, GuardedPriceFetcher, MockPriceFetcher, get_coingecko_fetcher

    if cfg.prices.provider == "mock":
        fetcher = MockPriceFetcher(cfg.prices.mock_prices)
    elif cfg.prices.provider == "coingecko":
        fetcher = get_coingecko_fetcher(
            cfg.prices.api_base,
            cfg.prices.api_key,
            timeout=cfg.prices.timeout_seconds,
            retries=cfg.prices.retries,
        )
    else:
        raise click.ClickException(f"Unknown price provider {cfg.prices.provider!r} (use 'coingecko' or 'mock')")

    breaker = CircuitBreaker(
        cfg.breaker.failure_threshold,
        cfg.breaker.cooldown_ms,
        name=cfg.prices.provider,
    )
    return GuardedPriceFetcher(fetcher, breaker, ttl_seconds=cfg.prices.cache_ttl_seconds)


def _live_price(cfg: AppConfig, coin_id: str | None = None) -> float:
    """Fetch the current price or fail the command with a readable message."""
    from data import BreakerState, PriceFetchError

    events = _events(cfg)
    client = _price_client(cfg)
    coin = coin_id or cfg.coin_id
    try:
        quote = client.fetch_price(coin)
    except PriceFetchError as exc:
        state = client.breaker.state
        events.price_unavailable(str(exc), state.value)
        if state is BreakerState.OPEN:
            events.breaker_open(client.breaker.failure_count, cfg.breaker.cooldown_ms)
        raise click.ClickException(f"Live price unavailable for {coin}: {exc}") from exc
    if quote.price is None:
        events.price_unavailable("provider returned no price", client.breaker.state.value)
        raise click.ClickException(f"No price available for {coin}. Pass the price explicitly.")
    events.price_fetched(quote.price, quote.source)
    return quote.price


def _records(loader, path: str):
    from data import RecordsError

    try:
        return loader(path)
    except RecordsError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """ladder-ledger: position P&L, buy ladders and waterfall fills for one coin."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- ladder pnl ----------


@cli.command()
@click.argument("trades_path", type=click.Path(dir_okay=False))
@click.option("--price", "current_price", default=None, type=float, help="Current price for unrealized P&L.")
@click.option("--live", is_flag=True, default=False, help="Fetch the current price from the provider.")
@click.pass_context
def pnl(ctx: click.Context, trades_path: str, current_price: float | None, live: bool) -> None:
    """Compute position, average cost and realized P&L from a trades JSON file."""
    cfg = _load(ctx)
    from cli.output import format_position
    from data import load_trades
    from ladder_core import compute_position

    trades = _records(load_trades, trades_path)
    position = compute_position(trades)
    if live and current_price is None:
        current_price = _live_price(cfg)
    click.echo(f"Loaded {len(trades)} trade(s) from {trades_path}")
    click.echo(format_position(position, cfg.coin_id, current_price))


# ---------- ladder plan ----------


@cli.command()
@click.option("--start-price", default=None, type=float, help="Top of the ladder. Defaults to the live price.")
@click.option("--budget", default=None, type=float, help="Total USD budget (default: config planner.base_budget).")
@click.option("--step", "step_pct", default=None, type=float, help="Depth step in percent.")
@click.option("--depth", "depth_pct", default=None, type=float, help="Deepest stepped level in percent.")
@click.option("--extra-deep/--no-extra-deep", default=None, help="Add the 80% and 90% levels.")
@click.option("--profile", type=click.Choice(["70", "75", "90"]), default=None, help="Use a weighted ladder profile instead.")
@click.option("--buys", "buys_path", default=None, type=click.Path(dir_okay=False), help="Buys (or trades) JSON to allocate onto the plan.")
@click.option("--tolerance", "tolerance_pct", default=None, type=float, help="Eligibility tolerance above a level price, in percent.")
@click.pass_context
def plan(
    ctx: click.Context,
    start_price: float | None,
    budget: float | None,
    step_pct: float | None,
    depth_pct: float | None,
    extra_deep: bool | None,
    profile: str | None,
    buys_path: str | None,
    tolerance_pct: float | None,
) -> None:
    """Build a buy ladder and show how executed buys fill it (waterfall).

    Without --profile the budget is split equally over depths step, 2*step,
    ... up to --depth. With --profile 70/75/90 deeper levels get a growing
    share of the budget.
    """
    cfg = _load(ctx)
    from cli.output import format_plan
    from data import load_buys
    from ladder_core import (
        allocate_buys_to_plan,
        apply_buy_fills,
        build_plan,
        build_weighted_plan,
        compute_buy_fills,
        summarize_fills,
    )

    pc = cfg.planner
    if start_price is None:
        start_price = _live_price(cfg)
    budget = pc.base_budget if budget is None else budget

    if profile:
        levels = build_weighted_plan(start_price, budget, int(profile), pc.growth_pct_per_level)
        title = f"Buy Plan ({profile}% profile)"
    else:
        levels = build_plan(
            start_price,
            budget,
            pc.step_pct if step_pct is None else step_pct,
            pc.depth_pct if depth_pct is None else depth_pct,
            pc.include_extra_deep if extra_deep is None else extra_deep,
        )
        title = "Buy Plan"

    if buys_path:
        buys = _records(load_buys, buys_path)
        tol = pc.tolerance_pct if tolerance_pct is None else tolerance_pct
        if profile:
            # Profile ladders cap the blended average per block; tolerance widens the on-plan band.
            fills = compute_buy_fills(levels, buys, tol / 100)
            levels = apply_buy_fills(levels, fills)
            click.echo(
                f"Matched {len(buys)} buy(s) against the {profile}% profile "
                f"(band 2% + {tol:g}%). Off plan {fills.off_plan_usd:,.2f} USD."
            )
        else:
            levels = allocate_buys_to_plan(levels, buys, tol)
            click.echo(f"Allocated {len(buys)} buy(s) with {tol:g}% tolerance.")

    summary = summarize_fills(levels)
    _events(cfg).plan_built(len(levels), summary.planned_total, summary.filled_total, start_price)
    click.echo(format_plan(levels, start_price, title))


# ---------- ladder sell-plan ----------


@cli.command("sell-plan")
@click.option("--baseline", default=None, type=float, help="Baseline price (default: average cost from --trades).")
@click.option("--holdings", default=None, type=float, help="Tokens held (default: position from --trades).")
@click.option("--trades", "trades_path", default=None, type=click.Path(dir_okay=False), help="Trades JSON; sells in it are matched to levels.")
@click.option("--step", "step_pct", default=None, type=float, help="Rise per level in percent.")
@click.option("--levels", "levels_count", default=None, type=int, help="Number of sell levels.")
@click.option("--pct", "sell_pct", default=None, type=float, help="Percent of remaining holdings sold at each level.")
@click.pass_context
def sell_plan(
    ctx: click.Context,
    baseline: float | None,
    holdings: float | None,
    trades_path: str | None,
    step_pct: float | None,
    levels_count: int | None,
    sell_pct: float | None,
) -> None:
    """Build a take-profit ladder above the baseline and match executed sells."""
    cfg = _load(ctx)
    from cli.output import format_sell_plan
    from data import load_sells, load_trades
    from ladder_core import build_sell_ladder, compute_position, compute_sell_fills, plan_sell_tokens

    sc = cfg.sell
    sells = []
    if trades_path:
        trades = _records(load_trades, trades_path)
        buys_only = [t for t in trades if t.side == "buy"]
        bought = compute_position(buys_only)
        position = compute_position(trades)
        baseline = bought.avg_cost if baseline is None else baseline
        holdings = bought.position_qty if holdings is None else holdings
        sells = _records(load_sells, trades_path)
        click.echo(f"Position now {position.position_qty:,.8g} tokens, realized P&L {position.realized_pnl:,.2f}")

    if baseline is None or holdings is None:
        raise click.UsageError("Pass --baseline and --holdings, or --trades to derive them.")

    levels = build_sell_ladder(
        baseline,
        sc.step_pct if step_pct is None else step_pct,
        sc.levels if levels_count is None else levels_count,
        sc.sell_pct_of_remaining if sell_pct is None else sell_pct,
    )
    levels = plan_sell_tokens(levels, holdings)
    fills = compute_sell_fills(levels, sells, sc.tolerance) if sells else None
    click.echo(format_sell_plan(levels, fills))


# ---------- ladder price ----------


@cli.command()
@click.argument("coin_id", required=False)
@click.pass_context
def price(ctx: click.Context, coin_id: str | None) -> None:
    """Show the current price (default coin from config)."""
    cfg = _load(ctx)
    from cli.output import format_price
    from data import PriceFetchError

    client = _price_client(cfg)
    coin = coin_id or cfg.coin_id
    try:
        quote = client.fetch_price(coin)
    except PriceFetchError as exc:
        _events(cfg).price_unavailable(str(exc), client.breaker.state.value)
        raise click.ClickException(f"Live price unavailable for {coin}: {exc}") from exc
    click.echo(format_price(quote))


# ---------- ladder health ----------

Check = tuple[str, bool, str]


def _check_prices(cfg: AppConfig) -> list[Check]:
    from data import BreakerState, PriceFetchError

    try:
        client = _price_client(cfg)
    except click.ClickException as exc:
        return [("prices", False, exc.message)]
    try:
        quote = client.fetch_price(cfg.coin_id)
    except PriceFetchError as exc:
        ok_price: Check = ("prices", False, str(exc))
    else:
        if quote.has_price:
            ok_price = ("prices", True, f"{cfg.coin_id} = {quote.price} ({quote.source})")
        else:
            ok_price = ("prices", False, f"no price for {cfg.coin_id}")
    breaker = client.breaker
    breaker_ok = breaker.state is not BreakerState.OPEN
    return [ok_price, ("breaker", breaker_ok, f"{breaker.state.value}, {breaker.failure_count} failure(s)")]


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check config and price provider. Exit code 0 = healthy, 1 = unhealthy."""
    try:
        cfg = load_config(ctx.obj["config_path"])
    except (FileNotFoundError, ValueError) as exc:
        _report([("config", False, str(exc))])
        raise SystemExit(1)

    checks: list[Check] = [("config", True, f"loaded (coin={cfg.coin_id}, provider={cfg.prices.provider})")]
    checks.extend(_check_prices(cfg))
    raise SystemExit(0 if _report(checks) else 1)


def _report(checks: list[Check]) -> bool:
    """Print one line per check plus a verdict; True when every check passed."""
    for name, ok, detail in checks:
        click.echo(f"  [{'OK' if ok else 'FAIL'}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")
    return healthy


if __name__ == "__main__":
    cli()
