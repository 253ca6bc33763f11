"""
CampaignPulse — Forecast Runs

Database-facing entry points for the forecast engines. Each run:
    1. Loads the campaign (or scenario) and its input rows
    2. Loads active products and merges campaign product overrides
    3. Calls the pure engine
    4. Returns the engine output dict (nothing is written back)

Raises ValueError when the requested record does not exist; routers turn
that into a 404.
"""

import logging
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from .. import crud
from .economics import apply_campaign_product_overrides
from .forecast import build_campaign_forecast
from .opex import expand_opex_for_campaign
from .profitability import build_campaign_profitability
from .scenario import build_scenario_forecast

logger = logging.getLogger("campaignpulse.engines.runs")


def _campaign_products(db: Session, inputs: Mapping) -> list[dict]:
    """Active products with this campaign's product overrides applied."""
    products = [crud.product_to_dict(p) for p in crud.list_products(db, active=True)]
    return apply_campaign_product_overrides(products, inputs["product_overrides"])


def _load_campaign_inputs(db: Session, campaign_id: int):
    campaign = crud.get_campaign(db, campaign_id)
    if not campaign:
        raise ValueError(f"Campaign {campaign_id} not found")
    return crud.load_campaign_inputs(db, campaign)


def calculate_campaign_forecast(campaign_id: int, db: Session, include_sizes: bool = True) -> dict:
    """
    Forecast a stored campaign.

    Returns:
        build_campaign_forecast output: monthly, product_summary,
        size_breakdown and totals.
    """
    inputs = _load_campaign_inputs(db, campaign_id)

    forecast = build_campaign_forecast(
        products=_campaign_products(db, inputs),
        quantities=inputs["quantities"],
        start_date=inputs["start_date"],
        end_date=inputs["end_date"],
        distribution_mode=inputs["distribution_mode"],
        custom_month_weights=inputs["month_weights"] or None,
        per_product_month_weights=inputs["product_month_weights"],
        size_breakdown=inputs["size_breakdown"] if include_sizes else {},
    )
    logger.info(
        f"Campaign {campaign_id} forecast: {len(forecast['monthly'])} monthly rows, "
        f"{len(forecast['product_summary'])} products, mode={inputs['distribution_mode']}"
    )
    return forecast


def calculate_campaign_profitability(campaign_id: int, db: Session) -> dict:
    """Monthly revenue, variable cost and attached OPEX for a stored campaign."""
    inputs = _load_campaign_inputs(db, campaign_id)

    forecast = calculate_campaign_forecast(campaign_id, db)
    opex_rows = expand_opex_for_campaign(
        inputs["start_date"], inputs["end_date"], inputs["attached_opex"],
    )
    result = build_campaign_profitability(forecast, opex_rows)
    logger.info(
        f"Campaign {campaign_id} profitability: {len(opex_rows)} OPEX rows, "
        f"total_opex={result['totals']['total_opex']:.2f}"
    )
    return result


def calculate_scenario_forecast(
    scenario_id: int,
    db: Session,
    distribution_mode: Optional[str] = None,
    custom_weights: Optional[Mapping[str, float]] = None,
) -> dict:
    """
    Forecast a stored scenario against its linked (or base) campaign.

    Args:
        distribution_mode: Optional mode override for this run only.
        custom_weights: Optional {month: weight} override for Custom mode.
    """
    scenario = crud.get_scenario(db, scenario_id)
    if not scenario:
        raise ValueError(f"Scenario {scenario_id} not found")
    campaign = crud.resolve_scenario_campaign(db, scenario)
    if not campaign:
        raise ValueError(f"Scenario {scenario_id} has no campaign")
    inputs = crud.load_campaign_inputs(db, campaign)

    product_overrides = [
        {
            "product_id": o.product_id,
            "price_override": o.price_override,
            "discount_override": o.discount_override,
            "return_rate_override": o.return_rate_override,
            "cost_override": o.cost_override,
            "qty_override": o.qty_override,
        }
        for o in crud.list_scenario_products(db, scenario_id)
    ]
    opex_overrides = [
        {"opex_item_id": o.opex_item_id, "cost_override": o.cost_override}
        for o in crud.list_scenario_opex(db, scenario_id)
    ]

    result = build_scenario_forecast(
        products=_campaign_products(db, inputs),
        campaign=inputs,
        scenario_product_overrides=product_overrides,
        scenario_opex_overrides=opex_overrides,
        distribution_mode_override=distribution_mode,
        custom_weights_override=custom_weights,
    )
    logger.info(
        f"Scenario {scenario_id} forecast on campaign {campaign.id}: "
        f"net_profit_after_opex={result['totals']['net_profit_after_opex']:.2f}"
    )
    return result
