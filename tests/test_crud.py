"""Tests for CRUD operations."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sqlalchemy.exc import IntegrityError

from campaignpulse import crud, schemas


def _product(db_session, name="Kurta", **fields):
    data = {"name": name, "category": "Kidswear", "price": 50, "manufacturing_cost": 20}
    data.update(fields)
    return crud.create_product(db_session, schemas.ProductCreate(**data))


class TestProductCRUD:
    def test_create_product_generates_code(self, db_session):
        product = _product(db_session, name="Body Lotion")
        assert product.id is not None
        assert product.product_code.startswith("BODY-LOTION-")

    def test_create_product_keeps_given_code(self, db_session):
        product = _product(db_session, product_code="KRT-1")
        assert product.product_code == "KRT-1"

    def test_duplicate_code_raises(self, db_session, sample_product):
        with pytest.raises(IntegrityError):
            _product(db_session, product_code=sample_product.product_code)

    def test_get_nonexistent_product(self, db_session):
        assert crud.get_product(db_session, 9999) is None

    def test_update_product(self, db_session, sample_product):
        updated = crud.update_product(db_session, sample_product.id, schemas.ProductUpdate(price=120))
        assert updated.price == 120
        assert updated.name == "Panjabi"

    def test_list_products_active_filter(self, db_session, sample_product):
        _product(db_session, is_active=False)
        assert [p.id for p in crud.list_products(db_session)] == [sample_product.id]
        assert len(crud.list_products(db_session, active=False)) == 2

    def test_delete_product_cascades_quantities(self, db_session, sample_campaign, sample_product):
        assert crud.delete_product(db_session, sample_product.id) is True
        inputs = crud.load_campaign_inputs(db_session, sample_campaign)
        assert inputs["quantities"] == {}

    def test_product_to_dict(self, sample_product):
        d = crud.product_to_dict(sample_product)
        assert d["id"] == sample_product.id
        assert d["discount_rate"] == 0.1


class TestCampaignCRUD:
    def test_create_campaign_defaults(self, db_session):
        campaign = crud.create_campaign(db_session, schemas.CampaignCreate(name="Winter"))
        assert campaign.distribution_mode == "Uniform"
        assert campaign.currency == "BDT"

    def test_update_campaign(self, db_session, sample_campaign):
        updated = crud.update_campaign(
            db_session, sample_campaign.id, schemas.CampaignUpdate(distribution_mode="Back-loaded"),
        )
        assert updated.distribution_mode == "Back-loaded"
        assert updated.name == "Eid 2026"

    def test_update_missing_campaign(self, db_session):
        assert crud.update_campaign(db_session, 42, schemas.CampaignUpdate(name="x")) is None

    def test_delete_campaign_cascades_scenarios(self, db_session, sample_campaign):
        scenario = crud.create_scenario(
            db_session, schemas.ScenarioCreate(name="What if", base_campaign_id=sample_campaign.id),
        )
        assert crud.delete_campaign(db_session, sample_campaign.id) is True
        assert crud.get_campaign(db_session, sample_campaign.id) is None
        assert crud.get_scenario(db_session, scenario.id) is None

    def test_delete_missing_campaign(self, db_session):
        assert crud.delete_campaign(db_session, 42) is False


class TestCampaignInputs:
    def test_replace_quantities_drops_bad_rows(self, db_session, sample_campaign, sample_product):
        count = crud.replace_quantities(db_session, sample_campaign, {
            str(sample_product.id): 300, "9999": 50, "abc": 10,
        })
        assert count == 1
        inputs = crud.load_campaign_inputs(db_session, sample_campaign)
        assert inputs["quantities"] == {str(sample_product.id): 300.0}

    def test_replace_quantities_drops_non_positive(self, db_session, sample_campaign, sample_product):
        assert crud.replace_quantities(db_session, sample_campaign, {str(sample_product.id): 0}) == 0
        assert crud.load_campaign_inputs(db_session, sample_campaign)["quantities"] == {}

    def test_month_weights(self, db_session, sample_campaign):
        count = crud.replace_month_weights(db_session, sample_campaign, {
            "2026-01": 2, "2026-02": -1, "2026-03": None,
        })
        assert count == 1
        assert crud.load_campaign_inputs(db_session, sample_campaign)["month_weights"] == {"2026-01": 2.0}

    def test_product_month_weights_keep_other_products(self, db_session, sample_campaign, sample_product):
        other = _product(db_session)
        crud.replace_product_month_weights(db_session, sample_campaign, {
            str(sample_product.id): {"2026-01": 1},
            str(other.id): {"2026-02": 4},
        })
        crud.replace_product_month_weights(db_session, sample_campaign, {
            str(other.id): {"2026-01": 3},
        })
        pmw = crud.load_campaign_inputs(db_session, sample_campaign)["product_month_weights"]
        assert pmw == {str(sample_product.id): {"2026-01": 1.0}, str(other.id): {"2026-01": 3.0}}

    def test_campaign_and_product_weights_are_separate(self, db_session, sample_campaign, sample_product):
        crud.replace_product_month_weights(db_session, sample_campaign, {str(sample_product.id): {"2026-01": 1}})
        crud.replace_month_weights(db_session, sample_campaign, {"2026-02": 5})
        inputs = crud.load_campaign_inputs(db_session, sample_campaign)
        assert inputs["month_weights"] == {"2026-02": 5.0}
        assert inputs["product_month_weights"] == {str(sample_product.id): {"2026-01": 1.0}}

    def test_size_breakdown(self, db_session, sample_campaign, sample_product):
        count = crud.replace_size_breakdown(db_session, sample_campaign, {
            str(sample_product.id): {"M": 400, "L": 0, "XL": None},
        })
        assert count == 1
        sizes = crud.load_campaign_inputs(db_session, sample_campaign)["size_breakdown"]
        assert sizes == {str(sample_product.id): {"M": 400.0}}

    def test_product_overrides_drop_empty(self, db_session, sample_campaign, sample_product):
        count = crud.replace_product_overrides(db_session, sample_campaign, {
            str(sample_product.id): schemas.CampaignProductOverrideSchema(marketing_cost=12),
            "9999": schemas.CampaignProductOverrideSchema(marketing_cost=1),
        })
        assert count == 1
        ov = crud.load_campaign_inputs(db_session, sample_campaign)["product_overrides"]
        assert ov[str(sample_product.id)]["marketing_cost"] == 12.0
        assert ov[str(sample_product.id)]["packaging_cost"] is None

    def test_marketing_total_set_and_clear(self, db_session, sample_campaign):
        crud.set_marketing_total(db_session, sample_campaign, 5000)
        crud.set_marketing_total(db_session, sample_campaign, 7000)
        assert crud.load_campaign_inputs(db_session, sample_campaign)["marketing_total"] == 7000.0
        crud.set_marketing_total(db_session, sample_campaign, None)
        db_session.expire_all()
        assert crud.load_campaign_inputs(db_session, sample_campaign)["marketing_total"] is None

    def test_campaign_opex_dedup_and_unknown(self, db_session, sample_campaign, sample_opex):
        count = crud.replace_campaign_opex(db_session, sample_campaign, [sample_opex.id, sample_opex.id, 999])
        assert count == 1
        inputs = crud.load_campaign_inputs(db_session, sample_campaign)
        assert inputs["opex_ids"] == [sample_opex.id]
        assert inputs["attached_opex"][0]["cost"] == 1000.0


class TestOpexCRUD:
    def test_create_opex(self, db_session):
        item = crud.create_opex(db_session, schemas.OpexCreate(
            name="Rent", category="Rent", cost=100, start_month="2026-01",
        ))
        assert item.end_month is None
        assert item.is_one_time is False

    def test_invalid_month_rejected(self):
        with pytest.raises(ValueError):
            schemas.OpexCreate(name="Rent", category="Rent", cost=100, start_month="2026-13")

    def test_update_can_clear_end_month(self, db_session, sample_opex):
        updated = crud.update_opex(db_session, sample_opex.id, schemas.OpexUpdate(end_month=None))
        assert updated.end_month is None

    def test_update_ignores_unset_fields(self, db_session, sample_opex):
        updated = crud.update_opex(db_session, sample_opex.id, schemas.OpexUpdate(cost=250))
        assert updated.cost == 250
        assert updated.end_month == "2026-03"

    def test_delete_opex_detaches(self, db_session, sample_campaign, sample_opex):
        crud.replace_campaign_opex(db_session, sample_campaign, [sample_opex.id])
        assert crud.delete_opex(db_session, sample_opex.id) is True
        assert crud.list_campaign_opex(db_session, sample_campaign.id) == []

    def test_deactivated_opex_leaves_campaign(self, db_session, sample_campaign, sample_opex):
        crud.replace_campaign_opex(db_session, sample_campaign, [sample_opex.id])
        updated = crud.update_opex(db_session, sample_opex.id, schemas.OpexUpdate(is_active=False))
        assert updated.is_active is False
        assert crud.list_campaign_opex(db_session, sample_campaign.id) == []
        inputs = crud.load_campaign_inputs(db_session, sample_campaign)
        assert inputs["attached_opex"] == []

        crud.update_opex(db_session, sample_opex.id, schemas.OpexUpdate(is_active=True))
        assert [o.id for o in crud.list_campaign_opex(db_session, sample_campaign.id)] == [sample_opex.id]


class TestScenarioCRUD:
    def test_resolve_prefers_link(self, db_session, sample_campaign):
        other = crud.create_campaign(db_session, schemas.CampaignCreate(name="Puja"))
        scenario = crud.create_scenario(
            db_session, schemas.ScenarioCreate(name="S", base_campaign_id=sample_campaign.id),
        )
        assert crud.resolve_scenario_campaign(db_session, scenario).id == sample_campaign.id
        crud.link_scenario_campaign(db_session, scenario, other.id)
        assert crud.resolve_scenario_campaign(db_session, scenario).id == other.id

    def test_relink_replaces_previous(self, db_session, sample_campaign):
        other = crud.create_campaign(db_session, schemas.CampaignCreate(name="Puja"))
        scenario = crud.create_scenario(db_session, schemas.ScenarioCreate(name="S"))
        crud.link_scenario_campaign(db_session, scenario, other.id)
        crud.link_scenario_campaign(db_session, scenario, sample_campaign.id)
        assert crud.resolve_scenario_campaign(db_session, scenario).id == sample_campaign.id

    def test_unresolved_scenario(self, db_session):
        scenario = crud.create_scenario(db_session, schemas.ScenarioCreate(name="S"))
        assert crud.resolve_scenario_campaign(db_session, scenario) is None

    def test_replace_scenario_products(self, db_session, sample_product):
        scenario = crud.create_scenario(db_session, schemas.ScenarioCreate(name="S"))
        count = crud.replace_scenario_products(db_session, scenario, [
            schemas.ScenarioProductOverrideSchema(product_id=sample_product.id, price_override=90),
            schemas.ScenarioProductOverrideSchema(product_id=9999, price_override=1),
        ])
        assert count == 1
        rows = crud.list_scenario_products(db_session, scenario.id)
        assert rows[0].price_override == 90

    def test_replace_scenario_opex(self, db_session, sample_opex):
        scenario = crud.create_scenario(db_session, schemas.ScenarioCreate(name="S"))
        crud.replace_scenario_opex(db_session, scenario, [
            schemas.ScenarioOpexOverrideSchema(opex_item_id=sample_opex.id, cost_override=10),
        ])
        crud.replace_scenario_opex(db_session, scenario, [])
        assert crud.list_scenario_opex(db_session, scenario.id) == []


class TestDisplaySettings:
    def test_defaults(self, db_session):
        settings = crud.get_display_settings(db_session)
        assert settings.currency == "BDT"
        assert settings.exchange_rates["BDT"] == 1.0

    def test_update(self, db_session):
        crud.update_display_settings(db_session, schemas.DisplaySettingsSchema(
            currency="USD", exchange_rates={"BDT": 1, "USD": 120, "GBP": 150},
        ))
        settings = crud.get_display_settings(db_session)
        assert settings.currency == "USD"
        assert settings.exchange_rates["USD"] == 120.0

    def test_rates_must_be_positive(self):
        with pytest.raises(ValueError):
            schemas.DisplaySettingsSchema(currency="USD", exchange_rates={"BDT": 1, "USD": 0, "GBP": 150})
