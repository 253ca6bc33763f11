"""
CampaignPulse — Month Range & Distribution Module

Campaigns are planned in calendar months. Months are carried around as
"YYYY-MM" labels so that plain string comparison gives chronological order.

A campaign's total quantity per product is spread across its months by a
weight vector that always sums to 1.0:

    Uniform       1, 1, ..., 1
    Front-loaded  n, n-1, ..., 1   (earliest month heaviest)
    Back-loaded   1, 2, ..., n     (latest month heaviest)
    Custom        user weights per month, negatives clipped to 0;
                  missing or all-zero weights fall back to Uniform

Any unknown mode is treated as Uniform.
"""

import logging
import re
from datetime import date, datetime
from typing import Mapping, Optional

from .numbers import as_float

logger = logging.getLogger("campaignpulse.engines.months")

MONTH_ABBR = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

DISTRIBUTION_MODES = ("Uniform", "Front-loaded", "Back-loaded", "Custom")

MONTH_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


def _to_date(value) -> Optional[date]:
    """Parse a date, datetime or ISO string. Returns None if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%Y-%m").date()
    except ValueError:
        return None


def month_range(start, end) -> list[str]:
    """
    Inclusive list of "YYYY-MM" labels between two dates.

    The earlier date is always used as the start, so the argument order
    does not matter. If either date cannot be parsed the range is empty.

    Example:
        month_range("2026-03-15", "2026-01-01") -> ["2026-01", "2026-02", "2026-03"]
    """
    s = _to_date(start)
    e = _to_date(end)
    if s is None or e is None:
        logger.debug(f"Unparseable campaign dates: start={start!r} end={end!r}")
        return []

    if e < s:
        s, e = e, s

    months = []
    y, m = s.year, s.month
    while (y, m) <= (e.year, e.month):
        months.append(f"{y:04d}-{m:02d}")
        m += 1
        if m > 12:
            m = 1
            y += 1
    return months


def month_label_to_nice(label: str) -> str:
    """
    "2026-01" -> "Jan 2026".

    Only zero-padded YYYY-MM labels are converted; any other string comes back
    unchanged and None comes back as "".
    """
    if label is None:
        return ""
    match = MONTH_LABEL_RE.fullmatch(str(label))
    if not match:
        return label
    y, m = int(match.group(1)), int(match.group(2))
    if y <= 0 or not 1 <= m <= 12:
        return label
    return f"{MONTH_ABBR[m - 1]} {y}"


def build_distribution_weights(
    months: list[str],
    mode: str = "Uniform",
    custom_weights: Optional[Mapping[str, float]] = None,
) -> dict[str, float]:
    """
    Normalised weight per month for a distribution mode.

    Args:
        months: Ordered month labels (from month_range).
        mode: One of DISTRIBUTION_MODES; anything else behaves as Uniform.
        custom_weights: {month_label: weight}, only read in Custom mode.

    Returns:
        {month_label: weight} with weights summing to 1.0 (empty if no months).
    """
    n = len(months)
    if n == 0:
        return {}

    if mode == "Front-loaded":
        w = [float(n - i) for i in range(n)]
    elif mode == "Back-loaded":
        w = [float(i + 1) for i in range(n)]
    elif mode == "Custom" and custom_weights is not None:
        w = [max(0.0, as_float(custom_weights.get(m))) for m in months]
        if all(val == 0 for val in w):
            w = [1.0] * n
    else:
        w = [1.0] * n

    total = sum(w) or 1.0
    return {m: w[idx] / total for idx, m in enumerate(months)}


def distribute_quantity(total_qty: float, weights: Mapping[str, float]) -> dict[str, float]:
    """Split a total quantity across months. No rounding: fractional units are kept."""
    return {month: total_qty * weight for month, weight in weights.items()}
