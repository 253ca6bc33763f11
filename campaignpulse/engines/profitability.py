"""
CampaignPulse — Campaign Profitability Module

Combines a campaign forecast with its expanded OPEX into a month-by-month
P&L: variable profit from the forecast, minus OPEX, over the union of the
months that have either.
"""

from typing import Mapping

from .opex import opex_by_category, opex_month_table
from .months import month_label_to_nice


def _empty_month(month: str, month_nice: str) -> dict:
    return {
        "month": month,
        "month_nice": month_nice,
        "qty": 0.0,
        "gross_revenue": 0.0,
        "effective_revenue": 0.0,
        "variable_cost": 0.0,
        "net_profit_variable": 0.0,
    }


def build_campaign_profitability(forecast: Mapping, opex_rows: list[Mapping]) -> dict:
    """
    Monthly profitability for a campaign.

    Args:
        forecast: Output of build_campaign_forecast.
        opex_rows: Output of expand_opex_for_campaign for the same campaign.

    Returns:
        Dict with monthly (revenue, variable cost, opex and profit per month),
        totals and opex_by_category.
    """
    revenue: dict[str, dict] = {}
    for row in forecast.get("monthly", []):
        agg = revenue.get(row["month"])
        if agg is None:
            agg = _empty_month(row["month"], row["month_nice"])
            revenue[row["month"]] = agg
        agg["qty"] += row["qty"]
        agg["gross_revenue"] += row["gross_revenue"]
        agg["effective_revenue"] += row["effective_revenue"]
        agg["variable_cost"] += row["total_cost"]
        agg["net_profit_variable"] += row["net_profit"]

    opex_monthly = {r["month"]: r["total_cost"] for r in opex_month_table(opex_rows)}

    monthly = []
    for m in sorted(set(revenue) | set(opex_monthly)):
        rev = revenue.get(m) or _empty_month(m, month_label_to_nice(m))
        opex_cost = opex_monthly.get(m, 0.0)
        monthly.append({
            **rev,
            "opex_cost": opex_cost,
            "net_profit_after_opex": rev["net_profit_variable"] - opex_cost,
        })

    totals = {
        "campaign_qty": 0.0,
        "gross_revenue": 0.0,
        "effective_revenue": 0.0,
        "net_profit_variable": 0.0,
        "total_opex": 0.0,
        "net_profit_after_opex": 0.0,
    }
    for row in monthly:
        totals["campaign_qty"] += row["qty"]
        totals["gross_revenue"] += row["gross_revenue"]
        totals["effective_revenue"] += row["effective_revenue"]
        totals["net_profit_variable"] += row["net_profit_variable"]
        totals["total_opex"] += row["opex_cost"]
        totals["net_profit_after_opex"] += row["net_profit_after_opex"]

    return {
        "monthly": monthly,
        "totals": totals,
        "opex_by_category": opex_by_category(opex_rows),
    }
