"""
OPEX Catalog Router — /api/opex

Endpoints:
    GET    /api/opex          — List OPEX items (newest first)
    POST   /api/opex          — Create an OPEX item
    PUT    /api/opex/{id}     — Update an OPEX item
    DELETE /api/opex/{id}     — Delete an OPEX item (detaches it from campaigns)

Attaching items to campaigns lives in campaigns.py (PUT /api/campaigns/{id}/opex).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud
from ..schemas import OpexCreate, OpexUpdate, OpexResponse

logger = logging.getLogger("campaignpulse.routers.opex")

router = APIRouter(prefix="/api/opex", tags=["OPEX"])


@router.get("", response_model=list[OpexResponse])
def list_opex(db: Session = Depends(get_db)):
    return crud.list_opex(db)


@router.post("", response_model=OpexResponse, status_code=201)
def create_opex(data: OpexCreate, db: Session = Depends(get_db)):
    item = crud.create_opex(db, data)
    logger.info(f"Created OPEX item {item.id} ({item.name}, {item.cost})")
    return item


@router.put("/{opex_id}", response_model=OpexResponse)
def update_opex(opex_id: int, data: OpexUpdate, db: Session = Depends(get_db)):
    """Update an OPEX item. Send end_month=null to make it open-ended."""
    item = crud.update_opex(db, opex_id, data)
    if not item:
        raise HTTPException(status_code=404, detail=f"OPEX item {opex_id} not found")
    return item


@router.delete("/{opex_id}", status_code=204)
def delete_opex(opex_id: int, db: Session = Depends(get_db)):
    if not crud.delete_opex(db, opex_id):
        raise HTTPException(status_code=404, detail=f"OPEX item {opex_id} not found")
    logger.info(f"Deleted OPEX item {opex_id}")
