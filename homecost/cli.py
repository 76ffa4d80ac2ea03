"""CLI entry point for the property purchase cost engine."""

import argparse
import logging
import sys

import yaml

from homecost import branching
from homecost.config import DEFAULT_SCENARIO, default_scenario, load_scenario
from homecost.duty import calc_duty, foreign_surcharge
from homecost.errors import HomecostError
from homecost.loan import summarise_loan
from homecost.ongoing import calculate_ongoing
from homecost.output import cost_report, fmt, progress_report, to_csv
from homecost.progress import track
from homecost.sensitivity import format_sweep, frange, sweep
from homecost.upfront import calculate_costs

logger = logging.getLogger(__name__)


def _scenario(path: str | None):
    if path:
        logger.info("Loading scenario from %s", path)
        return load_scenario(path)
    return default_scenario()


def cmd_costs(args: argparse.Namespace) -> None:
    """Print the upfront cost breakdown for a scenario."""
    profile, position = _scenario(args.scenario)
    breakdown = calculate_costs(profile, position)

    if args.csv:
        print(to_csv(breakdown), end="")
        return

    loan = None
    if position.is_complete("loan") and branching.loan_required(profile, position):
        loan = summarise_loan(profile)
    print(cost_report(breakdown, calculate_ongoing(profile, position), loan))


def cmd_progress(args: argparse.Namespace) -> None:
    """Print required-field progress for a scenario."""
    profile, position = _scenario(args.scenario)
    print(progress_report(track(profile, position)))


def cmd_duty(args: argparse.Namespace) -> None:
    """Print base duty for a region and price."""
    duty = calc_duty(args.price, args.region)
    print(f"{args.region.upper()} transfer duty on {fmt(args.price)}: ${duty:,.2f}")
    if args.foreign:
        surcharge = foreign_surcharge(args.price, args.region)
        print(f"Foreign purchaser surcharge: ${surcharge:,.2f}")
        print(f"Total: ${duty + surcharge:,.2f}")


def cmd_sweep(args: argparse.Namespace) -> None:
    """Recalculate costs across a range of values for one field."""
    profile, position = _scenario(args.scenario)

    parts = args.range.split(",")
    if len(parts) != 3:
        print("Error: --range must be start,stop,step (e.g., 500000,900000,50000)", file=sys.stderr)
        sys.exit(1)

    start, stop, step = float(parts[0]), float(parts[1]), float(parts[2])
    results = sweep(profile, position, args.field, frange(start, stop, step))
    print(format_sweep(args.field, results))


def cmd_template(args: argparse.Namespace) -> None:
    """Print a starter scenario as YAML."""
    print(yaml.dump(DEFAULT_SCENARIO, default_flow_style=False, sort_keys=False), end="")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Upfront and ongoing property purchase costs for Australian states and territories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  homecost costs                          # Costs for the built-in scenario
  homecost costs scenario.yaml            # Costs for a saved scenario
  homecost costs scenario.yaml --csv      # CSV output
  homecost progress scenario.yaml         # Outstanding questions
  homecost duty --region VIC --price 750000 --foreign
  homecost sweep --field price --range 500000,1000000,50000
  homecost template > scenario.yaml       # Starter scenario
""",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging")

    subparsers = parser.add_subparsers(dest="command")

    costs_parser = subparsers.add_parser("costs", help="Upfront cost breakdown")
    costs_parser.add_argument("scenario", nargs="?", help="YAML/JSON scenario file")
    costs_parser.add_argument("--csv", action="store_true", help="Output as CSV")

    progress_parser = subparsers.add_parser("progress", help="Required-field progress")
    progress_parser.add_argument("scenario", nargs="?", help="YAML/JSON scenario file")

    duty_parser = subparsers.add_parser("duty", help="Base transfer duty")
    duty_parser.add_argument("--region", required=True, help="Region code (e.g., NSW)")
    duty_parser.add_argument("--price", required=True, type=float, help="Purchase price")
    duty_parser.add_argument("--foreign", action="store_true", help="Include foreign purchaser surcharge")

    sweep_parser = subparsers.add_parser("sweep", help="Field sensitivity analysis")
    sweep_parser.add_argument("--scenario", help="Base scenario file")
    sweep_parser.add_argument("--field", default="price", help="Profile field to vary (default: price)")
    sweep_parser.add_argument("--range", required=True, help="start,stop,step (e.g., 500000,900000,50000)")

    subparsers.add_parser("template", help="Print a starter scenario")

    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "costs": cmd_costs,
        "progress": cmd_progress,
        "duty": cmd_duty,
        "sweep": cmd_sweep,
        "template": cmd_template,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except HomecostError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
