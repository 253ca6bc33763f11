"""
CampaignPulse CRUD Operations

Database access functions for all tables. These functions encapsulate
all SQLAlchemy queries and are called by API routers and the forecast runs.

Architecture:
    - Each function takes a db: Session parameter (injected by FastAPI)
    - Functions return ORM model instances (routers convert to Pydantic)
    - Get functions return None if not found (routers raise 404)
    - Campaign/scenario input setters replace all rows for the parent in
      one commit, dropping entries that cannot contribute to a forecast

Naming convention:
    - create_xxx / get_xxx / list_xxx / update_xxx / delete_xxx
    - replace_xxx: delete-then-insert the full set of child rows
    - xxx_to_dict: plain dict handed to the forecast engines
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .engines.numbers import as_float
from .models import (
    Product, Campaign, CampaignQuantity, CampaignMonthWeight,
    CampaignSizeBreakdown, CampaignProductOverride, CampaignMarketingTotal,
    OpexItem, CampaignOpex, Scenario, ScenarioCampaignLink,
    ScenarioProduct, ScenarioOpex, DisplaySettings,
)
from .schemas import (
    ProductCreate, ProductUpdate, CampaignCreate, CampaignUpdate,
    CampaignProductOverrideSchema, OpexCreate, OpexUpdate,
    ScenarioCreate, ScenarioUpdate, ScenarioProductOverrideSchema,
    ScenarioOpexOverrideSchema, DisplaySettingsSchema,
)

logger = logging.getLogger("campaignpulse.crud")

DEFAULT_EXCHANGE_RATES = {"BDT": 1.0, "USD": 117.0, "GBP": 146.0}


def _to_int(key) -> Optional[int]:
    """JSON map keys are strings; product ids are ints."""
    try:
        return int(key)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# PRODUCT CRUD
# ---------------------------------------------------------------------------

def generate_product_code(name: str) -> str:
    """"Body Lotion" -> "BODY-LOTION-1a2b"."""
    suffix = uuid.uuid4().hex[:4]
    return f"{'-'.join(name.upper().split())}-{suffix}"


def create_product(db: Session, data: ProductCreate) -> Product:
    """
    Create a product. A product_code is generated from the name if none given.

    Raises:
        IntegrityError: If product_code already exists
    """
    values = data.model_dump()
    if not values.get("product_code"):
        values["product_code"] = generate_product_code(data.name)
    product = Product(**values)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def get_product(db: Session, product_id: int) -> Optional[Product]:
    """Get a single product by ID. Returns None if not found."""
    return db.query(Product).filter(Product.id == product_id).first()


def list_products(db: Session, active: Optional[bool] = None) -> list[Product]:
    """
    List products in creation order.

    active=None or True returns active products only; active=False returns all.
    """
    query = db.query(Product)
    if active is None or active:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.created_at, Product.id).all()


def update_product(db: Session, product_id: int, data: ProductUpdate) -> Optional[Product]:
    """Update an existing product. Only fields present in the body are updated."""
    product = get_product(db, product_id)
    if not product:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)

    product.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> bool:
    """Delete a product (campaign/scenario rows referencing it CASCADE)."""
    product = get_product(db, product_id)
    if not product:
        return False
    db.delete(product)
    db.commit()
    return True


def product_to_dict(p: Product) -> dict:
    return {
        "id": p.id,
        "product_code": p.product_code,
        "name": p.name,
        "category": p.category,
        "price": p.price,
        "discount_rate": p.discount_rate,
        "return_rate": p.return_rate,
        "manufacturing_cost": p.manufacturing_cost,
        "packaging_cost": p.packaging_cost,
        "shipping_cost": p.shipping_cost,
        "marketing_cost": p.marketing_cost,
    }


def _existing_product_ids(db: Session) -> set[int]:
    return {pid for (pid,) in db.query(Product.id).all()}


# ---------------------------------------------------------------------------
# CAMPAIGN CRUD
# ---------------------------------------------------------------------------

def create_campaign(db: Session, data: CampaignCreate) -> Campaign:
    campaign = Campaign(**data.model_dump())
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    return campaign


def get_campaign(db: Session, campaign_id: int) -> Optional[Campaign]:
    """Get a single campaign by ID. Returns None if not found."""
    return db.query(Campaign).filter(Campaign.id == campaign_id).first()


def list_campaigns(db: Session) -> list[Campaign]:
    """List campaigns, newest first."""
    return db.query(Campaign).order_by(Campaign.created_at.desc(), Campaign.id.desc()).all()


def update_campaign(db: Session, campaign_id: int, data: CampaignUpdate) -> Optional[Campaign]:
    campaign = get_campaign(db, campaign_id)
    if not campaign:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(campaign, field, value)

    campaign.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(campaign)
    return campaign


def delete_campaign(db: Session, campaign_id: int) -> bool:
    """
    Delete a campaign with all its input rows and the scenarios built on it.
    Links from other scenarios to this campaign are removed as well.
    """
    campaign = get_campaign(db, campaign_id)
    if not campaign:
        return False
    db.query(ScenarioCampaignLink).filter(
        ScenarioCampaignLink.campaign_id == campaign_id
    ).delete()
    db.delete(campaign)
    db.commit()
    return True


def replace_quantities(db: Session, campaign: Campaign, quantities: dict) -> int:
    """
    Replace all quantity rows of a campaign.
    Entries for unknown products or with qty <= 0 are dropped.
    Returns the number of rows stored.
    """
    known = _existing_product_ids(db)
    db.query(CampaignQuantity).filter(CampaignQuantity.campaign_id == campaign.id).delete()

    count = 0
    for key, qty in quantities.items():
        pid = _to_int(key)
        num = as_float(qty)
        if pid not in known or num <= 0:
            continue
        db.add(CampaignQuantity(campaign_id=campaign.id, product_id=pid, total_qty=num))
        count += 1

    db.commit()
    if count < len(quantities):
        logger.debug(f"Campaign {campaign.id}: dropped {len(quantities) - count} quantity entries")
    return count


def replace_month_weights(db: Session, campaign: Campaign, weights: dict) -> int:
    """Replace the campaign-wide custom month weights. Negative/None weights are dropped."""
    db.query(CampaignMonthWeight).filter(
        CampaignMonthWeight.campaign_id == campaign.id,
        CampaignMonthWeight.product_id.is_(None),
    ).delete()

    count = 0
    for month_label, weight in weights.items():
        if weight is None or weight < 0:
            continue
        db.add(CampaignMonthWeight(
            campaign_id=campaign.id, product_id=None,
            month_label=month_label, weight=float(weight),
        ))
        count += 1

    db.commit()
    return count


def replace_product_month_weights(db: Session, campaign: Campaign, weights_by_product: dict) -> int:
    """
    Replace the month weights of each product present in the body.
    Products not in the body keep their existing weights.
    """
    known = _existing_product_ids(db)
    count = 0
    for key, month_map in weights_by_product.items():
        pid = _to_int(key)
        if pid not in known:
            continue
        db.query(CampaignMonthWeight).filter(
            CampaignMonthWeight.campaign_id == campaign.id,
            CampaignMonthWeight.product_id == pid,
        ).delete()
        for month_label, weight in month_map.items():
            if weight is None or weight < 0:
                continue
            db.add(CampaignMonthWeight(
                campaign_id=campaign.id, product_id=pid,
                month_label=month_label, weight=float(weight),
            ))
            count += 1

    db.commit()
    return count


def replace_size_breakdown(db: Session, campaign: Campaign, sizes_by_product: dict) -> int:
    """Replace all size rows of a campaign. Sizes with qty <= 0 are dropped."""
    known = _existing_product_ids(db)
    db.query(CampaignSizeBreakdown).filter(
        CampaignSizeBreakdown.campaign_id == campaign.id
    ).delete()

    count = 0
    for key, sizes in sizes_by_product.items():
        pid = _to_int(key)
        if pid not in known:
            continue
        for size, qty in sizes.items():
            if qty is None or qty <= 0:
                continue
            db.add(CampaignSizeBreakdown(
                campaign_id=campaign.id, product_id=pid, size=size, qty=float(qty),
            ))
            count += 1

    db.commit()
    return count


def replace_product_overrides(
    db: Session,
    campaign: Campaign,
    overrides: dict[str, CampaignProductOverrideSchema],
) -> int:
    """Replace all campaign product overrides. Entries with every field None are dropped."""
    known = _existing_product_ids(db)
    db.query(CampaignProductOverride).filter(
        CampaignProductOverride.campaign_id == campaign.id
    ).delete()

    count = 0
    for key, ov in overrides.items():
        pid = _to_int(key)
        values = ov.model_dump()
        if pid not in known or all(v is None for v in values.values()):
            continue
        db.add(CampaignProductOverride(campaign_id=campaign.id, product_id=pid, **values))
        count += 1

    db.commit()
    return count


def set_marketing_total(db: Session, campaign: Campaign, value: Optional[float]) -> Optional[float]:
    """Upsert the campaign marketing total; None deletes it."""
    row = db.query(CampaignMarketingTotal).filter(
        CampaignMarketingTotal.campaign_id == campaign.id
    ).first()
    if value is None:
        if row:
            db.delete(row)
    elif row:
        row.marketing_cost_total = value
        row.updated_at = datetime.utcnow()
    else:
        db.add(CampaignMarketingTotal(campaign_id=campaign.id, marketing_cost_total=value))
    db.commit()
    return value


def replace_campaign_opex(db: Session, campaign: Campaign, opex_ids: list[int]) -> int:
    """Replace the set of OPEX items attached to a campaign. Unknown ids are dropped."""
    known = {oid for (oid,) in db.query(OpexItem.id).all()}
    db.query(CampaignOpex).filter(CampaignOpex.campaign_id == campaign.id).delete()

    count = 0
    for oid in dict.fromkeys(opex_ids):
        if oid not in known:
            continue
        db.add(CampaignOpex(campaign_id=campaign.id, opex_id=oid))
        count += 1

    db.commit()
    return count


def list_campaign_opex(db: Session, campaign_id: int) -> list[OpexItem]:
    """Active OPEX items attached to a campaign; deactivated items stay linked but drop out."""
    return (
        db.query(OpexItem)
        .join(CampaignOpex, CampaignOpex.opex_id == OpexItem.id)
        .filter(CampaignOpex.campaign_id == campaign_id, OpexItem.is_active.is_(True))
        .order_by(OpexItem.id)
        .all()
    )


def load_campaign_inputs(db: Session, campaign: Campaign) -> dict:
    """
    Gather every input record set of a campaign into the plain mapping the
    forecast engines consume. Map keys are product ids as strings.
    """
    quantities = {
        str(q.product_id): q.total_qty
        for q in db.query(CampaignQuantity).filter(CampaignQuantity.campaign_id == campaign.id)
    }

    month_weights: dict[str, float] = {}
    product_month_weights: dict[str, dict[str, float]] = {}
    for w in db.query(CampaignMonthWeight).filter(CampaignMonthWeight.campaign_id == campaign.id):
        if w.product_id is None:
            month_weights[w.month_label] = w.weight
        else:
            product_month_weights.setdefault(str(w.product_id), {})[w.month_label] = w.weight

    size_breakdown: dict[str, dict[str, float]] = {}
    for s in db.query(CampaignSizeBreakdown).filter(CampaignSizeBreakdown.campaign_id == campaign.id):
        size_breakdown.setdefault(str(s.product_id), {})[s.size] = s.qty

    product_overrides = {
        str(o.product_id): {
            "packaging_cost": o.packaging_cost,
            "marketing_cost": o.marketing_cost,
            "discount_rate": o.discount_rate,
            "return_rate": o.return_rate,
        }
        for o in db.query(CampaignProductOverride).filter(
            CampaignProductOverride.campaign_id == campaign.id
        )
    }

    attached_opex = [opex_to_dict(o) for o in list_campaign_opex(db, campaign.id)]

    return {
        "id": campaign.id,
        "name": campaign.name,
        "start_date": campaign.start_date,
        "end_date": campaign.end_date,
        "distribution_mode": campaign.distribution_mode or "Uniform",
        "quantities": quantities,
        "month_weights": month_weights,
        "product_month_weights": product_month_weights,
        "size_breakdown": size_breakdown,
        "product_overrides": product_overrides,
        "opex_ids": [o["id"] for o in attached_opex],
        "attached_opex": attached_opex,
        "marketing_total": (
            campaign.marketing_total.marketing_cost_total if campaign.marketing_total else None
        ),
    }


# ---------------------------------------------------------------------------
# OPEX CRUD
# ---------------------------------------------------------------------------

def create_opex(db: Session, data: OpexCreate) -> OpexItem:
    item = OpexItem(**data.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def get_opex(db: Session, opex_id: int) -> Optional[OpexItem]:
    return db.query(OpexItem).filter(OpexItem.id == opex_id).first()


def list_opex(db: Session) -> list[OpexItem]:
    """List OPEX items, newest first."""
    return db.query(OpexItem).order_by(OpexItem.created_at.desc(), OpexItem.id.desc()).all()


def update_opex(db: Session, opex_id: int, data: OpexUpdate) -> Optional[OpexItem]:
    """
    Update an OPEX item. end_month may be explicitly set to null to make the
    item open-ended; other None values are ignored.
    """
    item = get_opex(db, opex_id)
    if not item:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None or field == "end_month":
            setattr(item, field, value)

    item.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(item)
    return item


def delete_opex(db: Session, opex_id: int) -> bool:
    item = get_opex(db, opex_id)
    if not item:
        return False
    db.delete(item)
    db.commit()
    return True


def opex_to_dict(o: OpexItem) -> dict:
    return {
        "id": o.id,
        "name": o.name,
        "category": o.category,
        "cost": o.cost,
        "start_month": o.start_month,
        "end_month": o.end_month,
        "is_one_time": o.is_one_time,
        "notes": o.notes,
    }


# ---------------------------------------------------------------------------
# SCENARIO CRUD
# ---------------------------------------------------------------------------

def create_scenario(db: Session, data: ScenarioCreate) -> Scenario:
    """
    Raises:
        IntegrityError: If base_campaign_id does not reference a campaign
    """
    scenario = Scenario(**data.model_dump())
    db.add(scenario)
    db.commit()
    db.refresh(scenario)
    return scenario


def get_scenario(db: Session, scenario_id: int) -> Optional[Scenario]:
    return db.query(Scenario).filter(Scenario.id == scenario_id).first()


def list_scenarios(db: Session) -> list[Scenario]:
    """List scenarios, newest first."""
    return db.query(Scenario).order_by(Scenario.created_at.desc(), Scenario.id.desc()).all()


def update_scenario(db: Session, scenario_id: int, data: ScenarioUpdate) -> Optional[Scenario]:
    scenario = get_scenario(db, scenario_id)
    if not scenario:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None or field == "base_campaign_id":
            setattr(scenario, field, value)

    scenario.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(scenario)
    return scenario


def delete_scenario(db: Session, scenario_id: int) -> bool:
    scenario = get_scenario(db, scenario_id)
    if not scenario:
        return False
    db.delete(scenario)
    db.commit()
    return True


def link_scenario_campaign(db: Session, scenario: Scenario, campaign_id: int) -> ScenarioCampaignLink:
    """Point a scenario at a campaign, replacing any previous link."""
    db.query(ScenarioCampaignLink).filter(
        ScenarioCampaignLink.scenario_id == scenario.id
    ).delete()
    link = ScenarioCampaignLink(scenario_id=scenario.id, campaign_id=campaign_id)
    db.add(link)
    db.commit()
    db.expire(scenario)
    return link


def resolve_scenario_campaign(db: Session, scenario: Scenario) -> Optional[Campaign]:
    """The explicitly linked campaign if any, else the base campaign."""
    link = db.query(ScenarioCampaignLink).filter(
        ScenarioCampaignLink.scenario_id == scenario.id
    ).first()
    campaign_id = link.campaign_id if link else scenario.base_campaign_id
    if campaign_id is None:
        return None
    return get_campaign(db, campaign_id)


def replace_scenario_products(
    db: Session,
    scenario: Scenario,
    rows: list[ScenarioProductOverrideSchema],
) -> int:
    """Replace all product overrides of a scenario. Unknown products are dropped."""
    known = _existing_product_ids(db)
    db.query(ScenarioProduct).filter(ScenarioProduct.scenario_id == scenario.id).delete()

    seen = set()
    for r in rows:
        if r.product_id not in known or r.product_id in seen:
            continue
        seen.add(r.product_id)
        db.add(ScenarioProduct(scenario_id=scenario.id, **r.model_dump()))

    db.commit()
    return len(seen)


def replace_scenario_opex(
    db: Session,
    scenario: Scenario,
    rows: list[ScenarioOpexOverrideSchema],
) -> int:
    """Replace all OPEX overrides of a scenario. Unknown OPEX items are dropped."""
    known = {oid for (oid,) in db.query(OpexItem.id).all()}
    db.query(ScenarioOpex).filter(ScenarioOpex.scenario_id == scenario.id).delete()

    seen = set()
    for r in rows:
        if r.opex_item_id not in known or r.opex_item_id in seen:
            continue
        seen.add(r.opex_item_id)
        db.add(ScenarioOpex(scenario_id=scenario.id, **r.model_dump()))

    db.commit()
    return len(seen)


def list_scenario_products(db: Session, scenario_id: int) -> list[ScenarioProduct]:
    return db.query(ScenarioProduct).filter(ScenarioProduct.scenario_id == scenario_id).all()


def list_scenario_opex(db: Session, scenario_id: int) -> list[ScenarioOpex]:
    return db.query(ScenarioOpex).filter(ScenarioOpex.scenario_id == scenario_id).all()


# ---------------------------------------------------------------------------
# DISPLAY SETTINGS
# ---------------------------------------------------------------------------

def get_display_settings(db: Session) -> DisplaySettingsSchema:
    """Current display settings; defaults are stored on first read."""
    row = db.query(DisplaySettings).filter(DisplaySettings.id == 1).first()
    if not row:
        row = DisplaySettings(
            id=1, currency="BDT", exchange_rates_json=json.dumps(DEFAULT_EXCHANGE_RATES),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
    return DisplaySettingsSchema(
        currency=row.currency, exchange_rates=json.loads(row.exchange_rates_json),
    )


def update_display_settings(db: Session, data: DisplaySettingsSchema) -> DisplaySettingsSchema:
    get_display_settings(db)
    row = db.query(DisplaySettings).filter(DisplaySettings.id == 1).first()
    row.currency = data.currency
    row.exchange_rates_json = json.dumps(data.exchange_rates)
    row.updated_at = datetime.utcnow()
    db.commit()
    return data
