"""
Display Settings Router — /api/settings

Presentation currency and exchange rates. Stored amounts stay in the base
currency; clients convert for display.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud
from ..schemas import DisplaySettingsSchema

logger = logging.getLogger("campaignpulse.routers.settings")

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("/display", response_model=DisplaySettingsSchema)
def get_display_settings(db: Session = Depends(get_db)):
    return crud.get_display_settings(db)


@router.put("/display", response_model=DisplaySettingsSchema)
def update_display_settings(data: DisplaySettingsSchema, db: Session = Depends(get_db)):
    """Replace currency and rates. Every supported currency needs a positive rate."""
    saved = crud.update_display_settings(db, data)
    logger.info(f"Display currency set to {saved.currency}")
    return saved
