"""
CampaignPulse — Product Economics Module

Per-unit price, cost and profit for a product record.

Formulas:
    effective_price  = price × (1 − discount_rate) × (1 − return_rate)
    total_unit_cost  = manufacturing + packaging + shipping + marketing
    unit_net_profit  = effective_price − total_unit_cost

Discount and return are applied sequentially: of the discounted sales a
fraction comes back, so the return rate reduces the already-discounted price.

Scenarios may set `cost_override_total` on a product; when it holds a number
it replaces the four cost components entirely.
"""

from typing import Mapping, Optional

from .numbers import as_float, as_optional_float

COST_COMPONENTS = (
    "manufacturing_cost",
    "packaging_cost",
    "shipping_cost",
    "marketing_cost",
)

# Fields a campaign may shadow per product (campaign_product_overrides table)
CAMPAIGN_OVERRIDE_FIELDS = (
    "packaging_cost",
    "marketing_cost",
    "discount_rate",
    "return_rate",
)


def effective_price(product: Mapping) -> float:
    after_discount = as_float(product.get("price")) * (1 - as_float(product.get("discount_rate")))
    return after_discount * (1 - as_float(product.get("return_rate")))


def total_unit_cost(product: Mapping) -> float:
    return sum(as_float(product.get(field)) for field in COST_COMPONENTS)


def total_unit_cost_with_override(product: Mapping) -> float:
    """Total unit cost, honouring a numeric `cost_override_total` if present."""
    override = as_optional_float(product.get("cost_override_total"))
    if override is not None:
        return override
    return total_unit_cost(product)


def unit_net_profit(product: Mapping) -> float:
    """Effective price minus the component cost sum (ignores overrides)."""
    return effective_price(product) - total_unit_cost(product)


def revenue_for_product_month(product: Mapping, qty: float) -> dict:
    """
    Money fields for `qty` units of a product in one month.

    Returns:
        Dict with gross_revenue, effective_revenue, total_cost, net_profit.
    """
    ep = effective_price(product)
    tuc = total_unit_cost_with_override(product)
    return {
        "gross_revenue": as_float(product.get("price")) * qty,
        "effective_revenue": ep * qty,
        "total_cost": tuc * qty,
        "net_profit": (ep - tuc) * qty,
    }


def apply_campaign_product_overrides(
    products: list[Mapping],
    overrides: Optional[Mapping[str, Mapping]],
) -> list[dict]:
    """
    Shadow packaging/marketing cost and discount/return rate per product.

    Args:
        products: Product records.
        overrides: {product_id: {field: value-or-None}} for the fields in
                   CAMPAIGN_OVERRIDE_FIELDS. None (or a missing key) keeps
                   the product's own value.

    Returns:
        New product dicts; the inputs are left untouched.
    """
    overrides = overrides or {}
    merged = []
    for p in products:
        out = dict(p)
        ov = overrides.get(str(p.get("id"))) or overrides.get(p.get("id"))
        if ov:
            for field in CAMPAIGN_OVERRIDE_FIELDS:
                value = as_optional_float(ov.get(field))
                if value is not None:
                    out[field] = value
        merged.append(out)
    return merged
