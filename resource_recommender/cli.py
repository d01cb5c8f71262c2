# cli.py
import argparse
import sys
from datetime import datetime
from datetime import timezone
from typing import Dict
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from resource_recommender.api import recommend_workloads
from resource_recommender.errors import RecommendationError
from resource_recommender.models.recommendation import Recommendation
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.utils.conversions import format_quantity
from resource_recommender.utils.logging import setup_logging

console = Console()


def _parse_overrides(pairs: List[str]) -> Dict[str, str]:
    overrides = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise RecommendationError(f"Invalid --set {pair!r}: expected KEY=VALUE")
        overrides[key.strip()] = value.strip()
    return overrides


def _parse_now(value: str) -> datetime:
    now = datetime.fromisoformat(value)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now


def _print_recommendation(recommendation: Recommendation) -> None:
    rec_table = Table(title=recommendation.workload, show_header=False, box=None)
    rec_table.add_column("Resource", style="cyan bold")
    rec_table.add_column("Recommended", style="green")

    for dimension in ResourceDimension:
        value = recommendation.quantity(dimension)
        if value is None:
            reason = recommendation.skipped.get(dimension.value, "")
            rec_table.add_row(dimension.value, f"[yellow]- ({escape(reason)})[/]")
        else:
            rec_table.add_row(dimension.value, format_quantity(value, dimension.value))

    if recommendation.specification:
        rec_table.add_row("Specification", f"[magenta]{recommendation.specification}[/]")
    elif "specification" in recommendation.skipped:
        rec_table.add_row(
            "Specification",
            f"[red]{escape(recommendation.skipped['specification'])}[/]",
        )

    console.print(Panel(rec_table, expand=False, border_style="green"))


def main():
    parser = argparse.ArgumentParser(description="Workload Resource Recommender CLI")
    parser.add_argument(
        "--samples",
        type=str,
        required=True,
        help="Path of the usage samples parquet dataset (e.g., s3://bucket/path)",
    )
    parser.add_argument(
        "--oom-events", type=str, help="Path of the OOM events parquet dataset"
    )
    parser.add_argument(
        "--config", type=str, help="YAML file with the recommender base configuration"
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Rule-level configuration override, may be repeated",
    )
    parser.add_argument(
        "--workload",
        dest="workloads",
        action="append",
        help="Workload to evaluate, may be repeated. Defaults to all workloads.",
    )
    parser.add_argument(
        "--sink-path",
        type=str,
        help="Path to save recommendations parquet dataset (e.g., s3://bucket/path)",
    )
    parser.add_argument(
        "--now", type=str, help="Evaluation time as ISO-8601. Defaults to now (UTC)."
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Evaluate workloads in parallel"
    )
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")

    args = parser.parse_args()
    setup_logging(args.log_level.upper(), console=console)

    try:
        overrides = _parse_overrides(args.overrides)
        now = _parse_now(args.now) if args.now else None

        with console.status("[bold green]Computing recommendations..."):
            results = recommend_workloads(
                samples_location=args.samples,
                oom_location=args.oom_events,
                config_path=args.config,
                overrides=overrides,
                workloads=args.workloads,
                sink_path=args.sink_path,
                now=now,
                max_workers=args.workers,
            )
    except (ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        sys.exit(1)

    if not results:
        console.print("[bold yellow]No recommendations could be computed.[/]")
        return

    for workload in sorted(results):
        _print_recommendation(results[workload])

    if not args.sink_path:
        console.print("\n--sink-path not provided. Skipping save.")


if __name__ == "__main__":
    main()
