"""Export endpoints (Excel download)."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud
from ..engines.runs import calculate_campaign_forecast, calculate_campaign_profitability
from ..exports import rows_to_workbook, workbook_to_buffer
from ..schemas import CampaignResponse, ScenarioResponse

logger = logging.getLogger("campaignpulse.routers.export")

router = APIRouter(prefix="/api/export", tags=["export"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_response(sheets: list[tuple[str, list[dict]]], filename: str) -> StreamingResponse:
    buf = workbook_to_buffer(rows_to_workbook(sheets))
    return StreamingResponse(
        buf,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _safe_name(name: str, fallback: str) -> str:
    return "_".join((name or fallback).split()) or fallback


@router.get("/products")
def export_products(db: Session = Depends(get_db)):
    products = crud.list_products(db, active=False)
    rows = [{**crud.product_to_dict(p), "is_active": p.is_active} for p in products]
    return _xlsx_response([("Products", rows)], "Products.xlsx")


@router.get("/opex")
def export_opex(db: Session = Depends(get_db)):
    rows = [crud.opex_to_dict(o) for o in crud.list_opex(db)]
    return _xlsx_response([("OPEX_Items", rows)], "OPEX_Items.xlsx")


@router.get("/campaigns/{campaign_id}")
def export_campaign(campaign_id: int, db: Session = Depends(get_db)):
    """Campaign overview, product summary, monthly forecast, sizes and monthly P&L."""
    campaign = crud.get_campaign(db, campaign_id)
    if not campaign:
        raise HTTPException(404, f"Campaign {campaign_id} not found")

    forecast = calculate_campaign_forecast(campaign_id, db)
    profitability = calculate_campaign_profitability(campaign_id, db)

    sheets = [
        ("Campaign Overview", [CampaignResponse.model_validate(campaign).model_dump()]),
        ("Product Summary", forecast["product_summary"]),
        ("Monthly Forecast", forecast["monthly"]),
    ]
    if forecast["size_breakdown"]:
        sheets.append(("Size Breakdown", forecast["size_breakdown"]))
    sheets.append(("Monthly P&L", profitability["monthly"]))

    logger.info(f"Exporting campaign {campaign_id} ({len(sheets)} sheets)")
    return _xlsx_response(sheets, f"campaign_{_safe_name(campaign.name, 'campaign')}.xlsx")


@router.get("/scenarios/{scenario_id}")
def export_scenario(scenario_id: int, db: Session = Depends(get_db)):
    """Scenario info, its overrides and the campaign it resolves to."""
    scenario = crud.get_scenario(db, scenario_id)
    if not scenario:
        raise HTTPException(404, f"Scenario {scenario_id} not found")

    campaign = crud.resolve_scenario_campaign(db, scenario)
    product_rows = [
        {
            "product_id": r.product_id,
            "price_override": r.price_override,
            "discount_override": r.discount_override,
            "return_rate_override": r.return_rate_override,
            "cost_override": r.cost_override,
            "qty_override": r.qty_override,
        }
        for r in crud.list_scenario_products(db, scenario_id)
    ]
    opex_rows = [
        {"opex_item_id": r.opex_item_id, "cost_override": r.cost_override}
        for r in crud.list_scenario_opex(db, scenario_id)
    ]
    linked = [{"campaign_id": campaign.id, "campaign_name": campaign.name}] if campaign else []

    sheets = [
        ("Scenario_Info", [ScenarioResponse.model_validate(scenario).model_dump()]),
        ("Product_Overrides", product_rows),
        ("OPEX_Overrides", opex_rows),
        ("Linked_Campaigns", linked),
    ]
    return _xlsx_response(sheets, f"Scenario_{_safe_name(scenario.name, 'Scenario')}.xlsx")
