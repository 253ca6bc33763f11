"""
CampaignPulse — Scenario Engine

A scenario is a what-if variant of a base campaign. It layers overrides on
top of the campaign's products, quantities and OPEX, re-runs the campaign
forecast and then nets OPEX off the variable profit.

Override semantics (per product):
    price_override        → price
    discount_override     → discount_rate (percentage points, /100)
    return_rate_override  → return_rate   (percentage points, /100)
    cost_override         → cost_override_total (replaces the cost components)
    qty_override          → replaces the campaign quantity (not additive)
Per OPEX item:
    cost_override         → replaces the item's cost

A missing key and an explicit None both mean "keep the base value". With no
overrides at all the scenario reproduces the base campaign forecast.
"""

import logging
from typing import Mapping, Optional

from .forecast import build_campaign_forecast
from .months import month_range
from .numbers import as_optional_float
from .opex import opex_total_for_months

logger = logging.getLogger("campaignpulse.engines.scenario")


def apply_product_overrides(products: list[Mapping], overrides: list[Mapping]) -> list[dict]:
    """Return copies of `products` with scenario price/rate/cost overrides applied."""
    ov_map = {str(o.get("product_id")): o for o in overrides or []}

    result = []
    for p in products:
        o = ov_map.get(str(p.get("id")), {})
        price = as_optional_float(o.get("price_override"))
        discount = as_optional_float(o.get("discount_override"))
        return_rate = as_optional_float(o.get("return_rate_override"))

        result.append({
            **p,
            "price": price if price is not None else p.get("price"),
            "discount_rate": discount / 100 if discount is not None else p.get("discount_rate"),
            "return_rate": return_rate / 100 if return_rate is not None else p.get("return_rate"),
            "cost_override_total": as_optional_float(o.get("cost_override")),
        })
    return result


def apply_quantity_overrides(base_quantities: Mapping, overrides: list[Mapping]) -> dict:
    """Return a copy of the quantity map with each qty_override replacing the base quantity."""
    out = {str(pid): qty for pid, qty in (base_quantities or {}).items()}
    for o in overrides or []:
        qty = as_optional_float(o.get("qty_override"))
        if qty is not None:
            out[str(o.get("product_id"))] = qty
    return out


def apply_opex_overrides(items: list[Mapping], overrides: list[Mapping]) -> list[dict]:
    """Return copies of the attached OPEX items with scenario cost overrides applied."""
    ov_map = {str(o.get("opex_item_id")): o for o in overrides or []}

    result = []
    for it in items or []:
        out = dict(it)
        o = ov_map.get(str(it.get("id")))
        if o is not None:
            cost = as_optional_float(o.get("cost_override"))
            if cost is not None:
                out["cost"] = cost
        result.append(out)
    return result


def build_scenario_forecast(
    products: list[Mapping],
    campaign: Mapping,
    scenario_product_overrides: Optional[list[Mapping]] = None,
    scenario_opex_overrides: Optional[list[Mapping]] = None,
    distribution_mode_override: Optional[str] = None,
    custom_weights_override: Optional[Mapping[str, float]] = None,
) -> dict:
    """
    Forecast a scenario on top of its base campaign.

    Args:
        products: Product records (campaign-level overrides already merged
                  in by the caller, if any).
        campaign: Base campaign mapping with start_date, end_date,
                  distribution_mode, quantities, month_weights,
                  product_month_weights, size_breakdown and attached_opex.
        scenario_product_overrides: Rows with product_id and the
                  *_override fields listed in the module docstring.
        scenario_opex_overrides: Rows with opex_item_id and cost_override.
        distribution_mode_override: Replaces the campaign's mode if given.
        custom_weights_override: Replaces the campaign's month weights
                  (Custom mode only).

    Returns:
        Dict with monthly, product_summary and totals (the campaign totals
        plus opex_total and net_profit_after_opex).
    """
    product_overrides = scenario_product_overrides or []
    months = month_range(campaign.get("start_date"), campaign.get("end_date"))

    products_ov = apply_product_overrides(products, product_overrides)
    quantities = apply_quantity_overrides(campaign.get("quantities") or {}, product_overrides)

    mode = distribution_mode_override or campaign.get("distribution_mode") or "Uniform"
    if mode == "Custom":
        if custom_weights_override is not None:
            weights = custom_weights_override
        else:
            weights = campaign.get("month_weights") or {}
        per_product_weights = campaign.get("product_month_weights") or {}
    else:
        # build_campaign_forecast derives weights from the mode itself
        weights = None
        per_product_weights = {}

    forecast = build_campaign_forecast(
        products=products_ov,
        quantities=quantities,
        start_date=campaign.get("start_date"),
        end_date=campaign.get("end_date"),
        distribution_mode=mode,
        custom_month_weights=weights,
        per_product_month_weights=per_product_weights,
        size_breakdown=campaign.get("size_breakdown") or {},
    )

    opex_items = apply_opex_overrides(campaign.get("attached_opex") or [], scenario_opex_overrides)
    opex_total = opex_total_for_months(opex_items, months)

    base_totals = forecast["totals"]
    totals = {
        "campaign_qty": base_totals["campaign_qty"],
        "gross_revenue": base_totals["gross_revenue"],
        "effective_revenue": base_totals["effective_revenue"],
        "total_cost": base_totals["total_cost"],
        "net_profit_variable": base_totals["net_profit"],
        "opex_total": opex_total,
        "net_profit_after_opex": base_totals["net_profit"] - opex_total,
    }
    logger.debug(
        f"Scenario forecast: {len(forecast['monthly'])} monthly rows, "
        f"opex_total={opex_total:.2f}, mode={mode}"
    )

    return {
        "monthly": forecast["monthly"],
        "product_summary": forecast["product_summary"],
        "totals": totals,
    }
