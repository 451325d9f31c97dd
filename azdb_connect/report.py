"""Rendering of connection-test outcomes.

Everything here is pure: functions take outcomes and return strings, so the
CLI decides where the text goes and tests never need to capture output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

from ._constants import ELLIPSIS, MAX_REASON_LENGTH

if TYPE_CHECKING:
    from .client import Outcome

RULE = "=" * 60


def first_line(text: str) -> str:
    for line in str(text).splitlines():
        if line.strip():
            return line.strip()
    return ""


def truncate_reason(text: str, limit: int = MAX_REASON_LENGTH) -> str:
    """Return the first line of *text*, cut to *limit* characters.

    Longer lines keep ``limit - 3`` characters followed by ``...``.
    """
    line = first_line(text)
    if len(line) <= limit:
        return line
    return line[: limit - len(ELLIPSIS)] + ELLIPSIS


def banner_lines(title: str, fields: Sequence[Tuple[str, str]]) -> List[str]:
    lines = [f"=== {title} Connector Demo ==="]
    lines.extend(f"{label}: {value}" for label, value in fields)
    return lines


def section_header(method: str) -> str:
    return f"--- Testing {method} ---"


def outcome_line(outcome: "Outcome") -> str:
    if outcome.succeeded:
        return f"✓ {outcome.method}: succeeded"
    if outcome.skipped:
        return f"- {outcome.method}: skipped ({outcome.reason})"
    return f"✗ {outcome.method}: {outcome.reason}"


def summary_lines(outcomes: Sequence["Outcome"]) -> List[str]:
    """Return the test-all summary block.

    Skipped methods get their own group; they are neither successes nor
    failures, but they do count towards the total.
    """
    succeeded = [o for o in outcomes if o.succeeded]
    failed = [o for o in outcomes if o.failed]
    skipped = [o for o in outcomes if o.skipped]

    lines = [RULE, "TEST SUMMARY", RULE]
    if succeeded:
        lines.append(f"Successful connections ({len(succeeded)}):")
        lines.extend(f"  ✓ {o.method}" for o in succeeded)
    if failed:
        lines.append(f"Failed connections ({len(failed)}):")
        lines.extend(f"  ✗ {o.method} - {o.reason}" for o in failed)
    if skipped:
        lines.append(f"Skipped connections ({len(skipped)}):")
        lines.extend(f"  - {o.method} - {o.reason}" for o in skipped)
    lines.append("-" * len(RULE))
    lines.append(
        f"Total: {len(succeeded)}/{len(outcomes)} connection methods succeeded"
    )
    lines.append(RULE)
    return lines
