"""
GovSim
Command-line runner for the monthly economic and geopolitical simulation:
generates a world, advances it month by month behind a live dashboard and
writes the history and final state to disk.
"""

import argparse
import json
from pathlib import Path
import numpy as np

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.layout import Layout
from rich.panel import Panel

from config import SimulationConfig
from economy_engine import EconomyEngine
from errors import SimulationError
from events import EventBus, WILDCARD
from logger import setup_logger
from scenario import generate_world

logger = None
console = Console()


class NumpyEncoder(json.JSONEncoder):
    """Custom encoder for NumPy data types."""
    def default(self, obj):
        if isinstance(obj, (np.integer, np.floating, np.bool_)):
            return obj.item()
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, (set, frozenset)):
            return sorted(obj)
        elif isinstance(obj, Path):
            return str(obj)
        return super(NumpyEncoder, self).default(obj)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments for simulation configuration."""
    parser = argparse.ArgumentParser(
        description="Monthly economic and geopolitical strategy simulation"
    )
    parser.add_argument(
        "--countries", type=int, default=8,
        help="Number of countries including the player's (default: 8)"
    )
    parser.add_argument(
        "--months", type=int, default=120,
        help="Number of months to simulate (default: 120)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--player", type=str, default="United Kingdom",
        help="Name of the player's country (default: United Kingdom)"
    )
    parser.add_argument(
        "--output-dir", type=str, default="output",
        help="Directory for output files (default: output)"
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO",
        help="Logging verbosity level (default: INFO)"
    )
    return parser.parse_args(argv)


def create_dashboard(month, total_months, indicators, events):
    """Create a rich layout dashboard."""
    layout = Layout()
    layout.split_column(
        Layout(name="header", size=3),
        Layout(name="main", ratio=1),
        Layout(name="footer", size=3)
    )

    layout["header"].update(Panel(f"GovSim - Month {month}/{total_months}", style="bold blue"))

    table = Table(title="Economy")
    table.add_column("Indicator", style="cyan")
    table.add_column("Value", style="green")

    if indicators:
        table.add_row("GDP", f"${indicators.get('gdp', 0) / 1e12:.3f}T")
        table.add_row("Growth (m/m)", f"{indicators.get('gdp_growth', 0):.2%}")
        table.add_row("Inflation", f"{indicators.get('inflation', 0):.2%}")
        table.add_row("Unemployment", f"{indicators.get('unemployment', 0):.2%}")
        table.add_row("Debt / GDP", f"{indicators.get('debt_to_gdp', 0):.1f}%")
        table.add_row("Trade Balance", f"${indicators.get('trade_balance', 0) / 1e9:.1f}B")
        table.add_row("Currency", f"{indicators.get('currency_value', 1):.3f}")
        table.add_row("Consumer Confidence", f"{indicators.get('consumer_confidence', 0):.1f}")

    event_text = "\n".join([f"• {e}" for e in events[-8:]]) if events else "No events yet."

    layout["main"].split_row(
        Layout(Panel(table, title="Indicators"), ratio=1),
        Layout(Panel(event_text, title="Recent Events", style="yellow"), ratio=2)
    )
    layout["footer"].update(Panel("Running simulation...", style="italic"))

    return layout


def describe_event(event) -> str:
    if event.type == "simulation_complete":
        return ""
    details = ", ".join(f"{k}={v:.3g}" if isinstance(v, float) else f"{k}={v}"
                        for k, v in event.data.items() if k not in ("month", "indicators"))
    return f"[{event.month}] {event.type} {details}".strip()


def main(argv=None):
    """Main simulation loop with a live dashboard."""
    global logger
    args = parse_args(argv)

    logger = setup_logger(level_name=args.log_level)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(exist_ok=True)

    config = SimulationConfig(
        num_countries=args.countries,
        num_months=args.months,
        seed=args.seed,
        player_name=args.player,
        output_dir=output_dir
    )
    rng = np.random.default_rng(config.seed)

    console.print(f"[bold green]Generating a world of {config.num_countries} countries...[/bold green]")
    country_records, company_records = generate_world(config, rng)

    events = EventBus(config.event_history_length)
    recent_events = []

    def collect(event):
        text = describe_event(event)
        if text:
            recent_events.append(text)
            del recent_events[:-20]

    events.subscribe(WILDCARD, collect)

    engine = EconomyEngine(config, rng=rng, events=events)
    engine.initialize(country_records, company_records, config.player_name)

    history = []
    with Live(console=console, refresh_per_second=4) as live:
        for month in range(config.num_months):
            try:
                record = engine.simulate_month()
            except SimulationError as e:
                logger.error(f"Stopping early: {e}")
                break
            history.append(record)
            live.update(create_dashboard(month + 1, config.num_months, record["indicators"], recent_events))

    history_file = output_dir / "simulation.json"
    with open(history_file, 'w') as f:
        json.dump(history, f, indent=2, cls=NumpyEncoder)
    console.print(f"[bold green]Simulation history saved to {history_file}[/bold green]")

    state_file = output_dir / "final_state.json"
    with open(state_file, 'w') as f:
        json.dump(engine.snapshot(), f, indent=2, cls=NumpyEncoder)
    console.print(f"[bold green]Final state saved to {state_file}[/bold green]")
    console.print("[bold blue]Simulation complete![/bold blue]")
    return engine


if __name__ == "__main__":
    main()
