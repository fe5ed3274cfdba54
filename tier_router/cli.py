"""tier-router CLI - route tasks, sanity-check routing, build dashboard data.

Commands::

    tier-router route --type T [--tokens N] [--multiple-sources] [--reasoning]
    tier-router check                  - Run the reference routing cases
    tier-router record PROVIDER TOKENS COST
                                       - Append a usage-log line for a call
    tier-router dashboard [--log PATH] [--output PATH]
                                       - Generate dashboard JSON from the usage log

Paths default to the values in Settings (TIER_ROUTER_* environment variables).

Usage::

    tier-router route --type financial_analysis --tokens 2000 --reasoning
    tier-router --config config/llm-providers.yaml check
    tier-router dashboard --output logs/dashboard-data.json
"""

from __future__ import annotations

import argparse
import json
import sys
import textwrap
from decimal import Decimal, InvalidOperation

import structlog

from tier_router.config import Settings, get_settings
from tier_router.dashboard import DashboardGenerator
from tier_router.exceptions import TierRouterError
from tier_router.loader import load_router_config
from tier_router.routing import ProviderTier, Task, TierRouter, preferred_tier
from tier_router.telemetry import bind_task_context, clear_context, configure_logging
from tier_router.usage_log import UsageLog

log = structlog.get_logger(__name__)

# ------------------------------------------------------------------ #
# Formatting helpers
# ------------------------------------------------------------------ #

_RESET = "\033[0m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_BOLD = "\033[1m"
_CYAN = "\033[36m"


def _ok(msg: str) -> None:
    print(f"{_GREEN}  [OK]{_RESET}  {msg}")


def _fail(msg: str) -> None:
    print(f"{_RED}[FAIL]{_RESET}  {msg}")


def _err(msg: str) -> None:
    print(f"{_RED}[ERROR]{_RESET} {msg}", file=sys.stderr)


def _info(msg: str) -> None:
    print(f"{_CYAN} [INFO]{_RESET} {msg}")


def _header(msg: str) -> None:
    print(f"\n{_BOLD}{msg}{_RESET}")


# Reference cases: task -> expected tier with fresh (zero) usage
REFERENCE_CASES: list[tuple[str, Task, ProviderTier]] = [
    (
        "Complex financial analysis",
        Task(
            type="financial_analysis",
            involves_multiple_sources=True,
            requires_reasoning=True,
            estimated_tokens=2000,
        ),
        ProviderTier.OPUS,
    ),
    ("Data extraction", Task(type="data_extraction", estimated_tokens=1000), ProviderTier.SONNET),
    ("Simple classification", Task(type="classification", estimated_tokens=100), ProviderTier.HAIKU),
    ("Formatting", Task(type="formatting", estimated_tokens=200), ProviderTier.HAIKU),
]


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def _build_router(args: argparse.Namespace, settings: Settings) -> TierRouter:
    config = load_router_config(args.config or settings.providers_config_path)
    return TierRouter(config, usage_log=UsageLog(settings.usage_log_path))


def cmd_route(args: argparse.Namespace, settings: Settings) -> int:
    """Route a single task and print the decision."""
    task = Task(
        type=args.type,
        estimated_tokens=args.tokens,
        priority=args.priority,
        involves_multiple_sources=args.multiple_sources,
        requires_reasoning=args.reasoning,
    )
    router = _build_router(args, settings)

    bind_task_context(task.type, task.priority)
    try:
        decision = router.route(task)
    finally:
        clear_context()

    assessment = decision.assessment
    if args.json:
        print(
            json.dumps(
                {
                    "task_type": assessment.type,
                    "complexity": assessment.complexity,
                    "estimated_tokens": assessment.estimated_tokens,
                    "estimated_cost": str(assessment.estimated_cost),
                    "preferred_tier": decision.preferred_tier.value,
                    "provider": decision.provider.key.value,
                    "provider_name": decision.provider.name,
                    "fallback_used": decision.fallback_used,
                },
                indent=2,
            )
        )
        return 0

    _header(f"Task: {assessment.type}")
    _info(f"Complexity: {assessment.complexity}/10")
    _info(f"Selected: {decision.provider.name} ({decision.provider.key.value})")
    if decision.fallback_used:
        _info(f"Fallback from: {decision.preferred_tier.value}")
    _info(f"Est. cost: ${assessment.estimated_cost:.4f}")
    return 0


def cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    """Run the reference routing cases against the configured providers."""
    router = _build_router(args, settings)
    passed = 0

    _header("Routing reference cases")
    for name, task, expected in REFERENCE_CASES:
        assessment = router.assess(task)
        provider = router.select_provider(preferred_tier(assessment.complexity)).provider

        summary = (
            f"{name}: complexity {assessment.complexity}/10 -> {provider.key.value}, "
            f"est. ${assessment.estimated_cost:.4f}"
        )
        if provider.key == expected:
            _ok(summary)
            passed += 1
        else:
            _fail(f"{summary} (expected {expected.value})")

    total = len(REFERENCE_CASES)
    _header(f"Passed: {passed}/{total}")
    return 0 if passed == total else 1


def cmd_record(args: argparse.Namespace, settings: Settings) -> int:
    """Append a usage-log line for a completed call."""
    try:
        tier = ProviderTier(args.provider)
    except ValueError:
        _err(f"Unknown provider: {args.provider}")
        return 1
    if args.tokens < 0 or args.cost < 0:
        _err("tokens and cost must be non-negative")
        return 1

    line = UsageLog(args.log or settings.usage_log_path).append(tier.value, args.tokens, args.cost)
    print(line)
    return 0


def cmd_dashboard(args: argparse.Namespace, settings: Settings) -> int:
    """Generate dashboard data from the usage log."""
    generator = DashboardGenerator.from_settings(settings, log_path=args.log)
    output = args.output or settings.dashboard_output_path
    data = generator.write(output)

    _ok(f"Dashboard data generated: {output}")
    if args.print:
        print(json.dumps(data, indent=2))
    return 0


def _decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a decimal amount: {value!r}") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite amount: {value!r}")
    return amount


# ------------------------------------------------------------------ #
# Argument parser
# ------------------------------------------------------------------ #


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser tree."""
    parser = argparse.ArgumentParser(
        prog="tier-router",
        description="Quota-aware LLM provider tier router",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """\
            Examples:
              tier-router route --type classification --tokens 100
              tier-router route --type strategic_planning --reasoning --json
              tier-router check
              tier-router record anthropic_haiku 120 0.0036
              tier-router dashboard --print
            """
        ),
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Provider configuration file (default: settings.providers_config_path)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    route_parser = subparsers.add_parser("route", help="Route a single task")
    route_parser.add_argument("--type", "-t", required=True, help="Task type tag")
    route_parser.add_argument("--tokens", type=int, default=None, help="Estimated tokens")
    route_parser.add_argument("--priority", default="normal", help="Task priority label")
    route_parser.add_argument(
        "--multiple-sources", action="store_true", help="Task involves multiple sources"
    )
    route_parser.add_argument(
        "--reasoning", action="store_true", help="Task requires reasoning"
    )
    route_parser.add_argument("--json", action="store_true", help="Print the decision as JSON")

    subparsers.add_parser("check", help="Run the reference routing cases")

    record_parser = subparsers.add_parser("record", help="Append a usage-log line")
    record_parser.add_argument("provider", help="Provider key (e.g. anthropic_sonnet)")
    record_parser.add_argument("tokens", type=int, help="Tokens consumed")
    record_parser.add_argument("cost", type=_decimal, help="Dollar cost of the call")
    record_parser.add_argument("--log", default=None, help="Usage log path")

    dashboard_parser = subparsers.add_parser("dashboard", help="Generate dashboard data")
    dashboard_parser.add_argument("--log", default=None, help="Usage log path")
    dashboard_parser.add_argument("--output", "-o", default=None, help="Output JSON path")
    dashboard_parser.add_argument(
        "--print", action="store_true", help="Also print the JSON to stdout"
    )

    return parser


# ------------------------------------------------------------------ #
# Dispatch
# ------------------------------------------------------------------ #

_COMMANDS = {
    "route": cmd_route,
    "check": cmd_check,
    "record": cmd_record,
    "dashboard": cmd_dashboard,
}


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Entry point for the tier-router CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    settings = settings or get_settings()
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)

    try:
        return command(args, settings)
    except TierRouterError as exc:
        log.error("cli.command_failed", command=args.command, error=str(exc))
        _err(str(exc))
        return 1
    except ValueError as exc:
        _err(str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
