"""
Campaign Router — /api/campaigns

Campaign headers, their input record sets, and the forecast/profitability
calculations. Calculation logic lives in campaignpulse/engines/; these
endpoints load, store and hand over.

Endpoints:
    GET    /api/campaigns                               — List campaigns (newest first)
    POST   /api/campaigns                               — Create a campaign
    GET    /api/campaigns/{id}                          — Get a campaign header
    PUT    /api/campaigns/{id}                          — Update a campaign header
    DELETE /api/campaigns/{id}                          — Delete campaign, inputs and scenarios
    GET    /api/campaigns/{id}/inputs                   — All input maps in one object
    PUT    /api/campaigns/{id}/quantities               — Replace product quantities
    PUT    /api/campaigns/{id}/month-weights            — Replace campaign-wide month weights
    PUT    /api/campaigns/{id}/product-month-weights    — Replace per-product month weights
    PUT    /api/campaigns/{id}/sizes                    — Replace size breakdown
    PUT    /api/campaigns/{id}/product-overrides        — Replace campaign product overrides
    PUT    /api/campaigns/{id}/marketing-total          — Set/clear marketing total
    PUT    /api/campaigns/{id}/opex                     — Replace attached OPEX items
    GET    /api/campaigns/{id}/opex                     — Attached OPEX items
    GET    /api/campaigns/{id}/forecast                 — Run the campaign forecast
    GET    /api/campaigns/{id}/profitability            — Forecast + OPEX monthly P&L
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud
from ..engines.runs import calculate_campaign_forecast, calculate_campaign_profitability
from ..schemas import (
    CampaignCreate, CampaignUpdate, CampaignResponse, QuantitiesUpdate,
    ProductOverridesUpdate, MarketingTotalUpdate, CampaignOpexUpdate, OpexResponse,
)

logger = logging.getLogger("campaignpulse.routers.campaigns")

router = APIRouter(prefix="/api/campaigns", tags=["Campaigns"])


def _get_campaign_or_404(db: Session, campaign_id: int):
    campaign = crud.get_campaign(db, campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail=f"Campaign {campaign_id} not found")
    return campaign


# ---------------------------------------------------------------------------
# CAMPAIGN HEADER
# ---------------------------------------------------------------------------

@router.get("", response_model=list[CampaignResponse])
def list_campaigns(db: Session = Depends(get_db)):
    return crud.list_campaigns(db)


@router.post("", response_model=CampaignResponse, status_code=201)
def create_campaign(data: CampaignCreate, db: Session = Depends(get_db)):
    campaign = crud.create_campaign(db, data)
    logger.info(f"Created campaign {campaign.id} ({campaign.name})")
    return campaign


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(campaign_id: int, db: Session = Depends(get_db)):
    return _get_campaign_or_404(db, campaign_id)


@router.put("/{campaign_id}", response_model=CampaignResponse)
def update_campaign(campaign_id: int, data: CampaignUpdate, db: Session = Depends(get_db)):
    """Update name, dates, distribution mode or currency. Only provided fields change."""
    campaign = crud.update_campaign(db, campaign_id, data)
    if not campaign:
        raise HTTPException(status_code=404, detail=f"Campaign {campaign_id} not found")
    return campaign


@router.delete("/{campaign_id}")
def delete_campaign(campaign_id: int, db: Session = Depends(get_db)):
    """
    Delete a campaign with all of its inputs (quantities, weights, sizes,
    overrides, marketing total, OPEX links) and the scenarios based on it.
    """
    if not crud.delete_campaign(db, campaign_id):
        raise HTTPException(status_code=404, detail=f"Campaign {campaign_id} not found")
    logger.info(f"Deleted campaign {campaign_id}")
    return {"deleted": True, "id": campaign_id}


# ---------------------------------------------------------------------------
# CAMPAIGN INPUTS
# ---------------------------------------------------------------------------

@router.get("/{campaign_id}/inputs")
def get_campaign_inputs(campaign_id: int, db: Session = Depends(get_db)):
    """
    Every input record set of a campaign, keyed the way the forecast engine
    reads them (map keys are product ids as strings).
    """
    campaign = _get_campaign_or_404(db, campaign_id)
    inputs = crud.load_campaign_inputs(db, campaign)
    return {
        "campaign": {
            **CampaignResponse.model_validate(campaign).model_dump(mode="json"),
            "opex_ids": inputs["opex_ids"],
            "attached_opex": inputs["attached_opex"],
            "marketing_total": inputs["marketing_total"],
        },
        "quantities": inputs["quantities"],
        "month_weights": inputs["month_weights"],
        "product_month_weights": inputs["product_month_weights"],
        "size_breakdown": inputs["size_breakdown"],
        "product_overrides": inputs["product_overrides"],
    }


@router.put("/{campaign_id}/quantities")
def replace_quantities(campaign_id: int, data: QuantitiesUpdate, db: Session = Depends(get_db)):
    """Replace all product quantities. Zero/negative entries and unknown products are dropped."""
    campaign = _get_campaign_or_404(db, campaign_id)
    count = crud.replace_quantities(db, campaign, data.quantities)
    return {"saved": True, "count": count}


@router.put("/{campaign_id}/month-weights")
def replace_month_weights(
    campaign_id: int,
    weights: dict[str, Optional[float]] = Body(..., description="{YYYY-MM: weight}"),
    db: Session = Depends(get_db),
):
    """Replace the campaign-wide Custom month weights. Negative weights are dropped."""
    campaign = _get_campaign_or_404(db, campaign_id)
    count = crud.replace_month_weights(db, campaign, weights)
    return {"saved": True, "count": count}


@router.put("/{campaign_id}/product-month-weights")
def replace_product_month_weights(
    campaign_id: int,
    weights: dict[str, dict[str, Optional[float]]] = Body(
        ..., description="{product_id: {YYYY-MM: weight}}"
    ),
    db: Session = Depends(get_db),
):
    """Replace the month weights of every product in the body; other products keep theirs."""
    campaign = _get_campaign_or_404(db, campaign_id)
    count = crud.replace_product_month_weights(db, campaign, weights)
    return {"saved": True, "count": count}


@router.put("/{campaign_id}/sizes")
def replace_sizes(
    campaign_id: int,
    sizes: dict[str, dict[str, Optional[float]]] = Body(
        ..., description="{product_id: {size_label: units}}"
    ),
    db: Session = Depends(get_db),
):
    """Replace the size breakdown. Sizes with zero/negative units are dropped."""
    campaign = _get_campaign_or_404(db, campaign_id)
    count = crud.replace_size_breakdown(db, campaign, sizes)
    return {"saved": True, "count": count}


@router.put("/{campaign_id}/product-overrides")
def replace_product_overrides(
    campaign_id: int, data: ProductOverridesUpdate, db: Session = Depends(get_db)
):
    """Replace campaign product overrides (packaging/marketing cost, discount/return rate)."""
    campaign = _get_campaign_or_404(db, campaign_id)
    count = crud.replace_product_overrides(db, campaign, data.overrides)
    return {"saved": True, "count": count}


@router.put("/{campaign_id}/marketing-total")
def set_marketing_total(campaign_id: int, data: MarketingTotalUpdate, db: Session = Depends(get_db)):
    """Set the campaign-level marketing spend; null clears it."""
    campaign = _get_campaign_or_404(db, campaign_id)
    value = crud.set_marketing_total(db, campaign, data.marketing_cost_total)
    return {"saved": True, "marketing_cost_total": value}


@router.put("/{campaign_id}/opex")
def replace_campaign_opex(campaign_id: int, data: CampaignOpexUpdate, db: Session = Depends(get_db)):
    """Replace the set of OPEX items attached to the campaign."""
    campaign = _get_campaign_or_404(db, campaign_id)
    count = crud.replace_campaign_opex(db, campaign, data.opex_ids)
    return {"saved": True, "count": count}


@router.get("/{campaign_id}/opex")
def get_campaign_opex(campaign_id: int, db: Session = Depends(get_db)):
    _get_campaign_or_404(db, campaign_id)
    items = crud.list_campaign_opex(db, campaign_id)
    return {
        "ids": [o.id for o in items],
        "items": [OpexResponse.model_validate(o).model_dump() for o in items],
    }


# ---------------------------------------------------------------------------
# CALCULATIONS
# ---------------------------------------------------------------------------

@router.get("/{campaign_id}/forecast")
def get_campaign_forecast(
    campaign_id: int,
    include_sizes: bool = Query(True, description="Include the size breakdown rows"),
    db: Session = Depends(get_db),
):
    """
    Run the campaign forecast.

    Returns monthly rows, product summary, size breakdown rows and totals.
    """
    try:
        return calculate_campaign_forecast(campaign_id, db, include_sizes=include_sizes)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{campaign_id}/profitability")
def get_campaign_profitability(campaign_id: int, db: Session = Depends(get_db)):
    """
    Monthly P&L: forecast revenue and variable cost per month, attached OPEX
    per month, and net profit after OPEX, plus OPEX by category.
    """
    try:
        return calculate_campaign_profitability(campaign_id, db)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
