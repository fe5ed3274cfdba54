"""Usage log: one line per completed provider call.

The dashboard consumes this log by pattern matching, so the line shape is
a contract shared by producer and consumer::

    [API] anthropic_sonnet: 1500 tokens, $0.0450

Lines that do not match are skipped by the parser rather than treated as
errors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)

USAGE_LINE_RE = re.compile(r"\[API\] (?P<provider>\w+): (?P<tokens>\d+) tokens, \$(?P<cost>[0-9.]+)")

_COST_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class UsageLine:
    """A parsed usage-log line."""

    provider: str
    tokens: int
    cost: Decimal


def format_usage_line(provider: str, tokens: int, cost: Decimal | float) -> str:
    """Render a usage-log line with the cost rounded half-up to 4 decimals."""
    amount = cost if isinstance(cost, Decimal) else Decimal(str(cost))
    amount = amount.quantize(_COST_QUANTUM, rounding=ROUND_HALF_UP)
    return f"[API] {provider}: {tokens} tokens, ${amount}"


def parse_usage_line(line: str) -> UsageLine | None:
    """Parse a usage-log line.

    Returns:
        UsageLine, or None when the line does not match the format
    """
    match = USAGE_LINE_RE.search(line)
    if match is None:
        return None
    try:
        cost = Decimal(match.group("cost"))
    except ArithmeticError:
        # e.g. "$1.2.3" matches the character class but is not a number
        return None
    return UsageLine(
        provider=match.group("provider"),
        tokens=int(match.group("tokens")),
        cost=cost,
    )


class UsageLog:
    """Append-only usage log file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def append(self, provider: str, tokens: int, cost: Decimal | float) -> str:
        """Append one line for a completed call and return it."""
        line = format_usage_line(provider, tokens, cost)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        return line

    def read_lines(self) -> list[str]:
        """Return the non-blank lines of the log (empty if it does not exist)."""
        if not self.path.is_file():
            log.info("usage_log.not_found", path=str(self.path))
            return []
        # Undecodable bytes become U+FFFD so the line fails to parse and is skipped
        text = self.path.read_text(encoding="utf-8", errors="replace")
        return [line for line in text.splitlines() if line.strip()]
