#!/usr/bin/env python3
"""CLI script to compute a liquidation density heatmap and summarize it.

Usage:
    python scripts/render_density_heatmap.py --ticker BTC --days 1
    python scripts/render_density_heatmap.py --map-file snapshot.json --days 7 --exclude CLEARED
    python scripts/render_density_heatmap.py --ticker ETH --output heatmap.json
"""

import argparse
import json
import time
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.liquidationdensity.engine.config import get_engine_config, load_engine_config
from src.liquidationdensity.engine.density_heatmap import calculate_density_heatmap
from src.liquidationdensity.ingestion.liquidation_client import LiquidationMapClient
from src.liquidationdensity.ingestion.price_client import PriceClient, pick_lookback_days
from src.liquidationdensity.models.liquidation_map import LiquidationMap
from src.liquidationdensity.utils.logging_config import setup_logging

console = Console()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Compute a liquidation density heatmap")
    parser.add_argument("--ticker", type=str, default="BTC", help="Ticker symbol (default: BTC)")
    parser.add_argument("--days", type=float, default=1, help="Candle lookback in days (default: 1)")
    parser.add_argument(
        "--map-file",
        type=Path,
        default=None,
        help="Read the liquidation map from a JSON file instead of the API",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="YAML file with a 'heatmap' section"
    )
    parser.add_argument(
        "--exclude",
        type=str,
        nargs="*",
        choices=["ACTIVE", "PARTIAL", "CLEARED"],
        default=[],
        help="Liquidation statuses to leave out",
    )
    parser.add_argument("--top", type=int, default=10, help="Number of hottest cells to show")
    parser.add_argument("--output", type=Path, default=None, help="Write the heatmap JSON here")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Log level")

    args = parser.parse_args()
    setup_logging(level=args.log_level, log_file=None)

    config = load_engine_config(args.config) if args.config else get_engine_config()
    days = pick_lookback_days(args.days)

    console.print("\n[bold cyan]Liquidation Density Heatmap[/bold cyan]")
    console.print(f"Ticker: {args.ticker}")
    console.print(f"Lookback: {days}d")
    console.print(f"Price bins: {config.price_bins}\n")

    if args.map_file:
        console.print(f"[yellow]Reading liquidation map from {args.map_file}...[/yellow]")
        liquidation_map = LiquidationMap.model_validate_json(args.map_file.read_text())
    else:
        console.print("[yellow]Fetching liquidation map...[/yellow]")
        with LiquidationMapClient() as client:
            liquidation_map = client.fetch_liquidation_map()

    console.print("[yellow]Fetching candles...[/yellow]")
    with PriceClient() as client:
        candles = client.fetch_historical_candles(args.ticker, days)

    events = liquidation_map.to_events()
    console.print(f"✓ {len(events)} raw liquidations, {len(candles)} candles\n")

    start_time = time.time()
    heatmap = calculate_density_heatmap(
        candles, events, excluded_statuses=set(args.exclude), config=config
    )
    calc_time = time.time() - start_time

    if heatmap.is_empty:
        console.print("[red]No renderable data[/red] (too few candles, no timed events, or flat price range)")
    else:
        console.print(f"✓ {len(heatmap.cells)} cells in {calc_time:.3f}s")
        console.print(
            f"✓ Price range: ${heatmap.price_range.min:,.2f} - ${heatmap.price_range.max:,.2f}\n"
        )

        table = Table(title=f"Top {args.top} Cells")
        table.add_column("Candle", justify="right", style="cyan")
        table.add_column("Price Low", justify="right", style="green")
        table.add_column("Price High", justify="right", style="green")
        table.add_column("Intensity", justify="right", style="magenta")

        hottest = sorted(heatmap.cells, key=lambda c: (-c.intensity, c.time_index, c.price_low))
        for cell in hottest[: args.top]:
            table.add_row(
                str(cell.time_index),
                f"${cell.price_low:,.2f}",
                f"${cell.price_high:,.2f}",
                f"{cell.intensity:.3f}",
            )

        console.print(table)

    if args.output:
        args.output.write_text(json.dumps(heatmap.to_dict(), indent=2))
        console.print(f"\n✓ Wrote {args.output}")


if __name__ == "__main__":
    main()
