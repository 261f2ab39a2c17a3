"""Report building.

Turns a list of HAR entries into totals, top-N rankings and optional grouped
statistics. Everything here is a pure function of its inputs.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Callable, Sequence
from enum import Enum

from pydantic import BaseModel, Field

from har_perf.har import HarEntry

logger = logging.getLogger(__name__)

INVALID_HOST = "<invalid-host>"
DEFAULT_TOP = 10


# =============================================================================
# Enums
# =============================================================================


class GroupBy(str, Enum):
    """Dimensions requests can be grouped by."""

    HOST = "host"


# =============================================================================
# Report Models
# =============================================================================


class ReportRow(BaseModel):
    """One request with both ranking metrics."""

    url: str
    time_ms: float
    bytes: int = Field(ge=0)


class GroupRow(BaseModel):
    """Aggregated statistics for one group key."""

    key: str
    count: int = Field(ge=1)
    total_time_ms: float
    avg_time_ms: float
    p95_time_ms: float
    total_bytes: int = Field(ge=0)


class Report(BaseModel):
    """Complete metrics report."""

    entries: int
    total_time_ms: float
    total_bytes: int
    top_requested: int = Field(ge=0)
    top_returned: int = Field(ge=0)
    group_by: GroupBy | None = None
    top_slowest: list[ReportRow]
    top_largest: list[ReportRow]
    top_groups: list[GroupRow] = Field(default_factory=list)


# =============================================================================
# Byte Utils
# =============================================================================


def known_positive_bytes(value: int | None) -> int:
    """Return ``value`` when it is a known positive size, otherwise 0."""
    if value is None:
        return 0
    return value if value > 0 else 0


def entry_bytes(entry: HarEntry) -> int:
    """Best-effort transferred bytes for one entry.

    HAR producers may report both a transfer body size and a decoded content
    size; the larger of the two is used, plus the response headers.
    """
    body = max(
        known_positive_bytes(entry.body_size),
        known_positive_bytes(entry.content_size),
    )
    return body + known_positive_bytes(entry.headers_size)


def format_bytes(n: int) -> str:
    """Format a byte count with binary units."""
    if n < 1024:
        return f"{n} B"
    if n < 1024**2:
        return f"{n / 1024:.2f} KB"
    if n < 1024**3:
        return f"{n / 1024**2:.2f} MB"
    return f"{n / 1024**3:.2f} GB"


# =============================================================================
# Grouping Keys
# =============================================================================


def host_key(url: str) -> str:
    """Extract a lower-cased hostname from a raw URL.

    Not a URL parser: anything that does not look like
    ``scheme://[userinfo@]host[:port][/...]`` maps to ``INVALID_HOST``.
    """
    _, sep, rest = url.partition("://")
    if not sep:
        return INVALID_HOST

    authority = rest.split("/", 1)[0]
    host = authority.rpartition("@")[2]
    if not host:
        return INVALID_HOST

    if host.startswith("["):
        end = host.find("]")
        if end <= 1:
            return INVALID_HOST
        host = host[: end + 1]
    else:
        host = host.split(":", 1)[0]
        if not host:
            return INVALID_HOST

    return host.lower()


GROUP_KEY_FUNCTIONS: dict[GroupBy, Callable[[HarEntry], str]] = {
    GroupBy.HOST: lambda entry: host_key(entry.url),
}


# =============================================================================
# Statistics
# =============================================================================


def nearest_rank(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile of an ascending sample, ``0 < p <= 1``."""
    if not sorted_values:
        return 0.0
    n = len(sorted_values)
    rank = min(max(math.ceil(p * n), 1), n)
    return float(sorted_values[rank - 1])


# =============================================================================
# Rankings
# =============================================================================


def _check_top(n: int) -> None:
    if n < 0:
        raise ValueError(f"top must be non-negative, got {n}")


def _to_row(entry: HarEntry) -> ReportRow:
    return ReportRow(url=entry.url, time_ms=entry.time, bytes=entry_bytes(entry))


def top_by_time(entries: Sequence[HarEntry], n: int) -> list[ReportRow]:
    """Return up to ``n`` rows, slowest first."""
    _check_top(n)
    ranked = sorted(entries, key=lambda e: e.time, reverse=True)
    return [_to_row(e) for e in ranked[:n]]


def top_by_bytes(entries: Sequence[HarEntry], n: int) -> list[ReportRow]:
    """Return up to ``n`` rows, largest first."""
    _check_top(n)
    ranked = sorted(entries, key=entry_bytes, reverse=True)
    return [_to_row(e) for e in ranked[:n]]


def aggregate_groups(
    entries: Sequence[HarEntry],
    group_by: GroupBy | None,
    top: int,
    *,
    percentile: float = 0.95,
) -> list[GroupRow]:
    """Bucket entries by ``group_by`` and return the top groups by total time.

    Ties on total time are ordered by key so the output is the same for any
    ordering of ``entries``.
    """
    _check_top(top)
    if group_by is None:
        return []

    key_for = GROUP_KEY_FUNCTIONS[group_by]
    times_by_key: dict[str, list[float]] = defaultdict(list)
    bytes_by_key: dict[str, int] = defaultdict(int)
    for entry in entries:
        key = key_for(entry)
        times_by_key[key].append(entry.time)
        bytes_by_key[key] += entry_bytes(entry)

    groups: list[GroupRow] = []
    for key, times in times_by_key.items():
        times.sort()
        total_time = sum(times)
        groups.append(
            GroupRow(
                key=key,
                count=len(times),
                total_time_ms=total_time,
                avg_time_ms=total_time / len(times),
                p95_time_ms=nearest_rank(times, percentile),
                total_bytes=bytes_by_key[key],
            )
        )
    logger.debug(f"Grouped {len(entries)} entries into {len(groups)} {group_by.value} groups")

    groups.sort(key=lambda g: (-g.total_time_ms, g.key))
    return groups[:top]


# =============================================================================
# Analyzer
# =============================================================================


class PerfAnalyzer:
    """Build performance reports from HAR entries."""

    GROUP_PERCENTILE = 0.95

    def analyze(
        self,
        entries: Sequence[HarEntry],
        top: int = DEFAULT_TOP,
        group_by: GroupBy | None = None,
    ) -> Report:
        """Compute totals, rankings and optional grouped statistics.

        Raises ``ValueError`` when ``top`` is negative.
        """
        _check_top(top)
        logger.info(f"Analyzing {len(entries)} entries")

        top_returned = min(top, len(entries))
        return Report(
            entries=len(entries),
            total_time_ms=sum(e.time for e in entries),
            total_bytes=sum(entry_bytes(e) for e in entries),
            top_requested=top,
            top_returned=top_returned,
            group_by=group_by,
            top_slowest=top_by_time(entries, top_returned),
            top_largest=top_by_bytes(entries, top_returned),
            top_groups=aggregate_groups(
                entries, group_by, top, percentile=self.GROUP_PERCENTILE
            ),
        )


def build_report(
    entries: Sequence[HarEntry],
    top: int = DEFAULT_TOP,
    group_by: GroupBy | None = None,
) -> Report:
    """Build a report with the default analyzer settings."""
    return PerfAnalyzer().analyze(entries, top, group_by)
