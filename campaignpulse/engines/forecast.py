"""
CampaignPulse — Campaign Forecast Engine

Main entry point for turning campaign inputs into financial projections.

Process:
    1. Build the campaign month range and the base distribution weights
    2. Index products by id
    3. For each product with a positive quantity:
       a. Pick per-product Custom weights if the campaign is Custom and the
          product has its own month map, else the base weights
       b. Distribute the quantity across months
       c. Emit one monthly row per month with quantity > 0
    4. Aggregate monthly rows into a per-product summary with margins
    5. Aggregate everything into campaign totals
    6. Allocate each product's summary across its size breakdown

Everything here is pure: inputs are read, never modified.
"""

import logging
from typing import Mapping, Optional

from .economics import effective_price, revenue_for_product_month
from .months import (
    build_distribution_weights, distribute_quantity,
    month_label_to_nice, month_range,
)
from .numbers import as_float

logger = logging.getLogger("campaignpulse.engines.forecast")

MONEY_FIELDS = ("gross_revenue", "effective_revenue", "total_cost", "net_profit")


def build_campaign_forecast(
    products: list[Mapping],
    quantities: Mapping,
    start_date,
    end_date,
    distribution_mode: str = "Uniform",
    custom_month_weights: Optional[Mapping[str, float]] = None,
    per_product_month_weights: Optional[Mapping[str, Mapping[str, float]]] = None,
    size_breakdown: Optional[Mapping[str, Mapping[str, float]]] = None,
) -> dict:
    """
    Build the monthly, per-product and per-size forecast for one campaign.

    Args:
        products: Product records (id, name, category, price, rates, costs,
                  optional cost_override_total).
        quantities: {product_id: total units over the whole campaign}.
        start_date, end_date: Campaign dates (any order, see month_range).
        distribution_mode: Uniform / Front-loaded / Back-loaded / Custom.
        custom_month_weights: {month: weight} for Custom mode.
        per_product_month_weights: {product_id: {month: weight}}; wins over
                  custom_month_weights for that product in Custom mode.
        size_breakdown: {product_id: {size_label: units}}.

    Returns:
        Dict with:
            - monthly: list of product × month rows
            - product_summary: list of per-product aggregates with margins
            - size_breakdown: list of product × size allocation rows
            - totals: campaign-level sums
    """
    mode = distribution_mode or "Uniform"
    months = month_range(start_date, end_date)
    base_weights = build_distribution_weights(months, mode, custom_month_weights)

    # Ids arrive as ints from the store and as strings from JSON maps
    prod_map = {str(p.get("id")): p for p in products}
    per_product = {str(k): v for k, v in (per_product_month_weights or {}).items()}

    # ------------------------------------------------------------------
    # 1. Monthly rows
    # ------------------------------------------------------------------
    monthly_rows = []
    for pid, total_qty in quantities.items():
        pid = str(pid)
        qty_num = as_float(total_qty)
        product = prod_map.get(pid)
        if product is None or qty_num <= 0:
            logger.debug(f"Skipping product {pid}: qty={total_qty!r}, known={product is not None}")
            continue

        weights = base_weights
        if mode == "Custom" and per_product.get(pid) is not None:
            weights = build_distribution_weights(months, "Custom", per_product[pid])

        ep = effective_price(product)
        for month, qty in distribute_quantity(qty_num, weights).items():
            if qty <= 0:
                continue
            econ = revenue_for_product_month(product, qty)
            monthly_rows.append({
                "month": month,
                "month_nice": month_label_to_nice(month),
                "product_id": pid,
                "product_name": product.get("name"),
                "category": product.get("category"),
                "qty": qty,
                "price": as_float(product.get("price")),
                "effective_price": ep,
                **econ,
            })

    # ------------------------------------------------------------------
    # 2. Product summary
    # ------------------------------------------------------------------
    summary_map: dict[str, dict] = {}
    for row in monthly_rows:
        agg = summary_map.get(row["product_id"])
        if agg is None:
            agg = {
                "product_id": row["product_id"],
                "product_name": row["product_name"],
                "category": row["category"],
                "campaign_qty": 0.0,
                **{field: 0.0 for field in MONEY_FIELDS},
            }
            summary_map[row["product_id"]] = agg
        agg["campaign_qty"] += row["qty"]
        for field in MONEY_FIELDS:
            agg[field] += row[field]

    product_summary = []
    for p in summary_map.values():
        gross_margin = (
            0.0 if p["gross_revenue"] == 0
            else (p["gross_revenue"] - p["total_cost"]) / p["gross_revenue"] * 100
        )
        net_margin = (
            0.0 if p["effective_revenue"] == 0
            else p["net_profit"] / p["effective_revenue"] * 100
        )
        product_summary.append({**p, "gross_margin_pct": gross_margin, "net_margin_pct": net_margin})

    # ------------------------------------------------------------------
    # 3. Campaign totals
    # ------------------------------------------------------------------
    totals = {"campaign_qty": 0.0, **{field: 0.0 for field in MONEY_FIELDS}}
    for row in monthly_rows:
        totals["campaign_qty"] += row["qty"]
        for field in MONEY_FIELDS:
            totals[field] += row[field]

    # ------------------------------------------------------------------
    # 4. Size breakdown
    # ------------------------------------------------------------------
    size_rows = _allocate_sizes(summary_map, size_breakdown or {})

    return {
        "monthly": monthly_rows,
        "product_summary": product_summary,
        "size_breakdown": size_rows,
        "totals": totals,
    }


def _allocate_sizes(summary_map: dict, size_breakdown: Mapping) -> list[dict]:
    """
    Split each product's summary economics across its size variants.

    A size's share is its units over the product's campaign quantity, or
    over the sum of its own size units when the product quantity is 0.
    Products without a summary (no quantity) get no size rows.
    """
    rows = []
    for pid, sizes in size_breakdown.items():
        totals = summary_map.get(str(pid))
        if totals is None:
            continue
        sizes = sizes or {}
        total_size_qty = sum(as_float(v) for v in sizes.values())
        product_qty = as_float(totals["campaign_qty"])
        denom_qty = product_qty if product_qty > 0 else total_size_qty
        if denom_qty <= 0:
            continue

        for size, size_qty in sizes.items():
            qty_val = as_float(size_qty)
            if qty_val <= 0:
                continue
            share = qty_val / denom_qty
            eff_rev = totals["effective_revenue"] * share
            cost = totals["total_cost"] * share
            rows.append({
                "product_id": totals["product_id"],
                "product_name": totals["product_name"],
                "size": size,
                "qty": qty_val,
                "gross_revenue": totals["gross_revenue"] * share,
                "effective_revenue": eff_rev,
                "total_cost": cost,
                "net_profit": eff_rev - cost,
            })
    return rows
