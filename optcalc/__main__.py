"""
CLI entry point.  Usage:

    python -m optcalc quote -s 100 -k 100 --vol 20 --rate 5 --preset 1y
    python -m optcalc quote --asset BTC --live-vol --duration 24:00:00
    python -m optcalc quote --asset ETH --side put --expiry 2026-12-25T08:00 --excel
    python -m optcalc payoff -s 100 -k 110 --vol 80 --html
    python -m optcalc watch --asset BTC --preset 1w
    python -m optcalc assets
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from . import config as cfg


def _add_contract_args(p: argparse.ArgumentParser):
    p.add_argument("--asset", help="Asset symbol; fetches spot when --spot is omitted.")
    p.add_argument("-s", "--spot", type=float, help="Underlying price.")
    p.add_argument("-k", "--strike", type=float, help="Strike (default: spot).")
    p.add_argument(
        "--vol",
        type=float,
        default=cfg.DEFAULT_VOLATILITY_PCT,
        help=f"Volatility in percent (default: {cfg.DEFAULT_VOLATILITY_PCT:g}).",
    )
    p.add_argument(
        "--rate",
        type=float,
        default=cfg.DEFAULT_RATE_PCT,
        help=f"Risk-free rate in percent (default: {cfg.DEFAULT_RATE_PCT:g}).",
    )
    p.add_argument("--side", choices=["call", "put"], default="call")

    when = p.add_mutually_exclusive_group()
    when.add_argument("--expiry", help="Expiry instant, ISO format (2026-12-25T08:00).")
    when.add_argument("--duration", help="Time to expiry as H:M:S.")
    when.add_argument(
        "--preset",
        choices=list(cfg.EXPIRY_PRESETS),
        help=f"Quick expiry (default: {cfg.DEFAULT_EXPIRY_DAYS} days).",
    )
    p.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress progress messages.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="option-calc",
        description="European option premium, Greeks and payoff calculator.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = p.add_subparsers(dest="command")

    # -- quote --------------------------------------------------------------
    quote = sub.add_parser("quote", help="Price one option and show its Greeks.")
    _add_contract_args(quote)
    quote.add_argument(
        "--live-vol",
        action="store_true",
        help="Use the live DVOL reading (BTC, ETH) instead of --vol.",
    )
    quote.add_argument(
        "--excel",
        nargs="?",
        const="auto",
        default=None,
        help="Export to Excel. Optionally specify filename.",
    )
    quote.add_argument(
        "--html",
        nargs="?",
        const="auto",
        default=None,
        help="Write the payoff chart as HTML. Optionally specify filename.",
    )

    # -- payoff -------------------------------------------------------------
    pay = sub.add_parser("payoff", help="Print the buyer/seller payoff table.")
    _add_contract_args(pay)
    pay.add_argument(
        "--every",
        type=int,
        default=10,
        help="Show every Nth sample point (default: 10).",
    )
    pay.add_argument(
        "--html",
        nargs="?",
        const="auto",
        default=None,
        help="Write the payoff chart as HTML. Optionally specify filename.",
    )

    # -- watch --------------------------------------------------------------
    watch = sub.add_parser("watch", help="Re-price on every live DVOL update.")
    _add_contract_args(watch)
    watch.add_argument(
        "--interval",
        type=float,
        default=cfg.DVOL_POLL_INTERVAL,
        help=f"Seconds between DVOL polls (default: {cfg.DVOL_POLL_INTERVAL:g}).",
    )

    # -- assets -------------------------------------------------------------
    sub.add_parser("assets", help="List supported assets.")

    return p


# ---------------------------------------------------------------------------
# Input resolution
# ---------------------------------------------------------------------------


def _time_kwargs(args) -> dict:
    from . import expiry as exp

    if args.duration:
        return {"duration": exp.parse_duration(args.duration)}
    if args.expiry:
        return {"expiry": datetime.fromisoformat(args.expiry)}
    if args.preset:
        return {"expiry": exp.from_preset(args.preset)}
    return {}


def _resolve_spot(args) -> float:
    from . import data
    from .engine import _log
    from .exceptions import PriceLookupError

    if args.spot is not None:
        return args.spot
    if args.asset:
        try:
            spot = data.get_spot(args.asset)
        except PriceLookupError as exc:
            _log(f"{exc}; using spot {cfg.DEFAULT_SPOT:g}")
            return cfg.DEFAULT_SPOT
        if not args.quiet:
            _log(f"Updated {data.asset_info(args.asset)['name']} price to ${spot:,.2f}")
        return spot
    return cfg.DEFAULT_SPOT


def _live_vol(args) -> tuple[float, str]:
    """One DVOL fetch; falls back to --vol on any feed failure."""
    from .engine import _log
    from .exceptions import FeedError
    from .feed import VolatilityFeedClient

    asset = (args.asset or "").upper()
    if asset not in cfg.DVOL_ASSETS:
        _log(f"Live volatility not available for {asset or 'this contract'}")
        return args.vol, "manual"
    try:
        sample = asyncio.run(VolatilityFeedClient().fetch(asset))
    except FeedError as exc:
        _log(f"Failed to fetch DVOL data: {exc}")
        return args.vol, "manual"
    return sample.value, f"DVOL {sample.observed_at:%Y-%m-%d %H:%M} UTC"


def _quote(args, volatility_pct: float, vol_source: str = "manual", spot=None):
    from . import engine

    spot = _resolve_spot(args) if spot is None else spot
    strike = args.strike if args.strike is not None else spot
    return engine.build_quote(
        spot,
        strike,
        volatility_pct,
        args.rate,
        args.side,
        asset=args.asset,
        vol_source=vol_source,
        **_time_kwargs(args),
    )


def _output_path(value: str):
    return None if value == "auto" else value


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_quote(args):
    from . import engine, report

    vol, source = _live_vol(args) if args.live_vol else (args.vol, "manual")
    quote = _quote(args, vol, source)
    engine.print_report(quote)

    if args.excel is not None:
        out = report.generate_excel(quote, output_path=_output_path(args.excel))
        print(f"Report saved: {out}")
    if args.html is not None:
        out = report.write_payoff_html(quote, output_path=_output_path(args.html))
        print(f"Chart saved: {out}")


def _cmd_payoff(args):
    from . import engine, report

    quote = _quote(args, args.vol)
    print(
        f"\n  {quote.contract.side.upper()}  premium ${quote.premium:,.2f}"
        f"  breakeven ${quote.breakeven:,.2f}\n"
    )
    engine.print_curve(quote, every=args.every)
    if args.html is not None:
        out = report.write_payoff_html(quote, output_path=_output_path(args.html))
        print(f"\nChart saved: {out}")


async def _watch(args):
    from . import engine
    from .feed import VolatilityPoller

    spot = await asyncio.to_thread(_resolve_spot, args)

    def on_sample(asset, sample):
        quote = _quote(
            args,
            sample.value,
            f"DVOL {sample.observed_at:%Y-%m-%d %H:%M} UTC",
            spot=spot,
        )
        engine.print_report(quote)

    def on_error(asset, exc):
        engine._log(f"Failed to fetch DVOL data for {asset}: {exc}")

    async with VolatilityPoller(
        interval=args.interval, on_sample=on_sample, on_error=on_error
    ) as poller:
        if not poller.start(args.asset or ""):
            engine._log(f"Live volatility not available for {args.asset or 'no asset'}")
            return 1
        if not args.quiet:
            engine._log(f"Polling DVOL for {args.asset.upper()} every {args.interval:g}s")
        await asyncio.Event().wait()
    return 0


def _cmd_assets():
    from . import data

    print(f"{'SYMBOL':<8} {'NAME':<20} {'TICKER':<14} {'LIVE VOL':>8}")
    print("-" * 53)
    for a in data.list_assets():
        live = "yes" if a["live_vol"] else "no"
        print(f"{a['symbol']:<8} {a['name']:<20} {a['ticker']:<14} {live:>8}")


def main():
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return

    if args.command == "assets":
        _cmd_assets()
        return

    try:
        if args.command == "quote":
            _cmd_quote(args)
        elif args.command == "payoff":
            _cmd_payoff(args)
        elif args.command == "watch":
            sys.exit(asyncio.run(_watch(args)))
    except ValueError as exc:
        parser.error(str(exc))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
