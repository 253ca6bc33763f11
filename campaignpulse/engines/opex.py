"""
CampaignPulse — OPEX Module

Operating expenses attached to a campaign. Each item has a cost, a
start_month, an optional end_month (open-ended when absent) and an
is_one_time flag. Recurring items cost `cost` in every campaign month inside
[start_month, end_month]; one-time items cost it once, in start_month.
"""

import logging
from typing import Mapping

from .months import month_label_to_nice, month_range
from .numbers import as_float, as_optional_float

logger = logging.getLogger("campaignpulse.engines.opex")

# Stand-in end month for open-ended items
OPEN_END_MONTH = "9999-12"


def expand_opex_for_campaign(campaign_start, campaign_end, items: list[Mapping]) -> list[dict]:
    """
    One row per (OPEX item, campaign month) in which the item applies.

    Items without a start_month are skipped. Rows are ordered item by item,
    month by month.
    """
    camp_months = month_range(campaign_start, campaign_end)
    if not camp_months:
        return []

    rows = []
    for item in items:
        start_month = item.get("start_month")
        end_month = item.get("end_month") or OPEN_END_MONTH
        if not start_month:
            logger.debug(f"OPEX item {item.get('id')} has no start_month, skipped")
            continue
        one_time = bool(item.get("is_one_time"))

        for m in camp_months:
            if not (start_month <= m <= end_month):
                continue
            if one_time and m != start_month:
                continue
            rows.append({
                "month": m,
                "month_nice": month_label_to_nice(m),
                "opex_id": item.get("id"),
                "name": item.get("name"),
                "category": item.get("category"),
                "cost": as_float(item.get("cost")),
                "is_one_time": one_time,
                "notes": item.get("notes") or "",
            })
    return rows


def opex_month_table(rows: list[Mapping]) -> list[dict]:
    """Sum expanded OPEX rows per month, ascending by month label."""
    by_month: dict[str, float] = {}
    for r in rows:
        cost = as_optional_float(r.get("cost"))
        if cost is None:
            continue
        by_month[r["month"]] = by_month.get(r["month"], 0.0) + cost

    return [
        {"month": month, "month_nice": month_label_to_nice(month), "total_cost": cost}
        for month, cost in sorted(by_month.items())
    ]


def opex_by_category(rows: list[Mapping]) -> list[dict]:
    """Sum expanded OPEX rows per category, in first-seen order."""
    by_cat: dict = {}
    for r in rows:
        cost = as_optional_float(r.get("cost"))
        if cost is None:
            continue
        by_cat[r.get("category")] = by_cat.get(r.get("category"), 0.0) + cost
    return [{"category": cat, "total_cost": cost} for cat, cost in by_cat.items()]


def opex_total_for_months(items: list[Mapping], months: list[str]) -> float:
    """
    Total OPEX of `items` over a campaign's months.

    One-time items count once if their start_month is a campaign month.
    Recurring items count once per month m with
    start_month <= m <= (end_month or the last campaign month).
    """
    if not months:
        return 0.0

    month_set = set(months)
    total = 0.0
    for it in items:
        start = it.get("start_month")
        if not start:
            continue
        cost = as_float(it.get("cost"))
        if it.get("is_one_time"):
            if start in month_set:
                total += cost
            continue
        end = it.get("end_month") or months[-1]
        total += cost * sum(1 for m in months if start <= m <= end)
    return total
