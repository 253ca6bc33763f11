"""
Scenario Router — /api/scenarios

A scenario is a what-if layer over a campaign: per-product price, discount,
return-rate, cost and quantity overrides plus per-item OPEX cost overrides.
The forecast runs against the explicitly linked campaign, or the scenario's
base campaign when there is no link.

Endpoints:
    GET    /api/scenarios                 — List scenarios (newest first)
    POST   /api/scenarios                 — Create a scenario
    GET    /api/scenarios/{id}            — Scenario with its link and overrides
    PUT    /api/scenarios/{id}            — Update a scenario
    DELETE /api/scenarios/{id}            — Delete a scenario and its overrides
    PUT    /api/scenarios/{id}/campaign   — Link to a campaign
    PUT    /api/scenarios/{id}/products   — Replace product overrides
    PUT    /api/scenarios/{id}/opex       — Replace OPEX overrides
    GET    /api/scenarios/{id}/forecast   — Run the scenario forecast
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud
from ..engines.runs import calculate_scenario_forecast
from ..schemas import (
    ScenarioCreate, ScenarioUpdate, ScenarioResponse, ScenarioCampaignLinkUpdate,
    ScenarioProductOverrideSchema, ScenarioOpexOverrideSchema, DistributionMode,
)

logger = logging.getLogger("campaignpulse.routers.scenarios")

router = APIRouter(prefix="/api/scenarios", tags=["Scenarios"])


def _get_scenario_or_404(db: Session, scenario_id: int):
    scenario = crud.get_scenario(db, scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail=f"Scenario {scenario_id} not found")
    return scenario


def _parse_custom_weights(raw: Optional[str]) -> Optional[dict]:
    """Lenient parse of the custom_weights query param; anything but a JSON object is ignored."""
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable custom_weights: {raw[:80]}")
        return None
    return parsed if isinstance(parsed, dict) else None


@router.get("", response_model=list[ScenarioResponse])
def list_scenarios(db: Session = Depends(get_db)):
    return crud.list_scenarios(db)


@router.post("", response_model=ScenarioResponse, status_code=201)
def create_scenario(data: ScenarioCreate, db: Session = Depends(get_db)):
    if data.base_campaign_id is not None and not crud.get_campaign(db, data.base_campaign_id):
        raise HTTPException(status_code=404, detail=f"Campaign {data.base_campaign_id} not found")
    try:
        scenario = crud.create_scenario(db, data)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Scenario could not be created")
    logger.info(f"Created scenario {scenario.id} ({scenario.name})")
    return scenario


@router.get("/{scenario_id}")
def get_scenario(scenario_id: int, db: Session = Depends(get_db)):
    """Scenario header, the campaign it resolves to, and its stored overrides."""
    scenario = _get_scenario_or_404(db, scenario_id)
    campaign = crud.resolve_scenario_campaign(db, scenario)
    return {
        **ScenarioResponse.model_validate(scenario).model_dump(mode="json"),
        "campaign_id": campaign.id if campaign else None,
        "products": [
            ScenarioProductOverrideSchema.model_validate(r).model_dump()
            for r in crud.list_scenario_products(db, scenario_id)
        ],
        "opex": [
            ScenarioOpexOverrideSchema.model_validate(r).model_dump()
            for r in crud.list_scenario_opex(db, scenario_id)
        ],
    }


@router.put("/{scenario_id}", response_model=ScenarioResponse)
def update_scenario(scenario_id: int, data: ScenarioUpdate, db: Session = Depends(get_db)):
    if data.base_campaign_id is not None and not crud.get_campaign(db, data.base_campaign_id):
        raise HTTPException(status_code=404, detail=f"Campaign {data.base_campaign_id} not found")
    scenario = crud.update_scenario(db, scenario_id, data)
    if not scenario:
        raise HTTPException(status_code=404, detail=f"Scenario {scenario_id} not found")
    return scenario


@router.delete("/{scenario_id}", status_code=204)
def delete_scenario(scenario_id: int, db: Session = Depends(get_db)):
    if not crud.delete_scenario(db, scenario_id):
        raise HTTPException(status_code=404, detail=f"Scenario {scenario_id} not found")
    logger.info(f"Deleted scenario {scenario_id}")


@router.put("/{scenario_id}/campaign")
def link_campaign(scenario_id: int, data: ScenarioCampaignLinkUpdate, db: Session = Depends(get_db)):
    """Point the scenario at a campaign. Replaces any previous link."""
    scenario = _get_scenario_or_404(db, scenario_id)
    if not crud.get_campaign(db, data.campaign_id):
        raise HTTPException(status_code=404, detail=f"Campaign {data.campaign_id} not found")
    crud.link_scenario_campaign(db, scenario, data.campaign_id)
    return {"linked": True, "campaign_id": data.campaign_id}


@router.put("/{scenario_id}/products")
def replace_scenario_products(
    scenario_id: int,
    rows: list[ScenarioProductOverrideSchema] = Body(...),
    db: Session = Depends(get_db),
):
    """
    Replace all product overrides. discount_override and return_rate_override
    are percentage points (15 means 15%).
    """
    scenario = _get_scenario_or_404(db, scenario_id)
    count = crud.replace_scenario_products(db, scenario, rows)
    return {"saved": True, "count": count}


@router.put("/{scenario_id}/opex")
def replace_scenario_opex(
    scenario_id: int,
    rows: list[ScenarioOpexOverrideSchema] = Body(...),
    db: Session = Depends(get_db),
):
    scenario = _get_scenario_or_404(db, scenario_id)
    count = crud.replace_scenario_opex(db, scenario, rows)
    return {"saved": True, "count": count}


@router.get("/{scenario_id}/forecast")
def get_scenario_forecast(
    scenario_id: int,
    distribution_mode: Optional[DistributionMode] = Query(
        None, description="Override the campaign's distribution mode for this run"
    ),
    custom_weights: Optional[str] = Query(
        None, description='JSON object {"YYYY-MM": weight} used with Custom mode'
    ),
    db: Session = Depends(get_db),
):
    """
    Run the scenario forecast.

    Returns monthly rows, product summary and totals including OPEX and
    net profit after OPEX. 404 when the scenario or its campaign is missing.
    """
    try:
        return calculate_scenario_forecast(
            scenario_id, db,
            distribution_mode=distribution_mode,
            custom_weights=_parse_custom_weights(custom_weights),
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
