"""Seed the database with a sample catalog, OPEX items, one Eid campaign and a scenario."""

import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from campaignpulse.database import init_db, SessionLocal
from campaignpulse import crud, schemas
from campaignpulse.engines.runs import calculate_campaign_forecast, calculate_scenario_forecast

PRODUCTS = [
    {"name": "Panjabi Classic", "category": "Menswear", "price": 2800, "manufacturing_cost": 1100,
     "packaging_cost": 60, "shipping_cost": 80, "marketing_cost": 150,
     "discount_rate": 0.10, "return_rate": 0.04},
    {"name": "Panjabi Premium", "category": "Menswear", "price": 4500, "manufacturing_cost": 1900,
     "packaging_cost": 90, "shipping_cost": 80, "marketing_cost": 250,
     "discount_rate": 0.05, "return_rate": 0.03},
    {"name": "Three-Piece Lawn", "category": "Womenswear", "price": 3200, "manufacturing_cost": 1300,
     "packaging_cost": 70, "shipping_cost": 80, "marketing_cost": 180,
     "discount_rate": 0.12, "return_rate": 0.06},
    {"name": "Kids Kurta", "category": "Kidswear", "price": 1400, "manufacturing_cost": 520,
     "packaging_cost": 40, "shipping_cost": 60, "marketing_cost": 80,
     "discount_rate": 0.08, "return_rate": 0.05},
]

# units per product name
QUANTITIES = {
    "Panjabi Classic": 1200,
    "Panjabi Premium": 400,
    "Three-Piece Lawn": 900,
    "Kids Kurta": 600,
}

SIZES = {
    "Panjabi Classic": {"M": 400, "L": 500, "XL": 300},
    "Panjabi Premium": {"M": 120, "L": 180, "XL": 100},
}

OPEX = [
    {"name": "Showroom Rent", "category": "Rent", "cost": 85000, "start_month": "2026-01"},
    {"name": "Seasonal Staff", "category": "Salaries", "cost": 120000,
     "start_month": "2026-02", "end_month": "2026-03"},
    {"name": "Photo Shoot", "category": "Marketing", "cost": 60000,
     "start_month": "2026-02", "is_one_time": True},
]


def seed():
    init_db()
    db = SessionLocal()

    # Check if already seeded
    if crud.list_products(db, active=False):
        print("Database already seeded. Skipping.")
        db.close()
        return

    print(f"Seeding database with {len(PRODUCTS)} products...")
    products = {}
    for p in PRODUCTS:
        product = crud.create_product(db, schemas.ProductCreate(**p))
        products[product.name] = product
        print(f"  Created product: {product.name} [{product.product_code}] (ID={product.id})")

    opex_ids = []
    for o in OPEX:
        item = crud.create_opex(db, schemas.OpexCreate(**o))
        opex_ids.append(item.id)
        print(f"  Created OPEX item: {item.name} ({item.cost:,.0f}/month)")

    campaign = crud.create_campaign(db, schemas.CampaignCreate(
        name="Eid 2026",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 3, 31),
        distribution_mode="Back-loaded",
    ))
    crud.replace_quantities(
        db, campaign, {str(products[name].id): qty for name, qty in QUANTITIES.items()},
    )
    crud.replace_size_breakdown(
        db, campaign, {str(products[name].id): sizes for name, sizes in SIZES.items()},
    )
    crud.replace_campaign_opex(db, campaign, opex_ids)
    print(f"  Created campaign: {campaign.name} (ID={campaign.id})")

    forecast = calculate_campaign_forecast(campaign.id, db)
    totals = forecast["totals"]
    print(f"    Revenue: {totals['effective_revenue']:,.0f}  |  Net profit: {totals['net_profit']:,.0f}")

    scenario = crud.create_scenario(db, schemas.ScenarioCreate(
        name="Deeper discount", description="Extra 5 points of discount on menswear",
        base_campaign_id=campaign.id,
    ))
    crud.replace_scenario_products(db, scenario, [
        schemas.ScenarioProductOverrideSchema(product_id=products["Panjabi Classic"].id, discount_override=15),
        schemas.ScenarioProductOverrideSchema(product_id=products["Panjabi Premium"].id, discount_override=10),
    ])
    result = calculate_scenario_forecast(scenario.id, db)
    print(
        f"  Created scenario: {scenario.name} (ID={scenario.id})  |  "
        f"Net after OPEX: {result['totals']['net_profit_after_opex']:,.0f}"
    )

    db.close()
    print("\nSeeding complete!")


if __name__ == "__main__":
    seed()
