"""Tests for FastAPI endpoints."""

import io
import json
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import openpyxl
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from campaignpulse.database import Base, get_db
from campaignpulse.main import app


@pytest.fixture
def client(tmp_path):
    """Create a test client with a file-based temp database."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _fk_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def product_id(client):
    """Create the worked-example product and return its ID."""
    resp = client.post("/api/products", json={
        "name": "Panjabi",
        "category": "Menswear",
        "price": 100,
        "discount_rate": 0.1,
        "return_rate": 0.05,
        "manufacturing_cost": 40,
        "packaging_cost": 5,
    })
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture
def campaign_id(client, product_id):
    """Create a two-month Uniform campaign selling 1000 units and return its ID."""
    resp = client.post("/api/campaigns", json={
        "name": "Eid 2026",
        "start_date": "2026-01-01",
        "end_date": "2026-02-28",
        "distribution_mode": "Uniform",
    })
    assert resp.status_code == 201
    cid = resp.json()["id"]
    resp = client.put(f"/api/campaigns/{cid}/quantities", json={"quantities": {str(product_id): 1000}})
    assert resp.json()["count"] == 1
    return cid


@pytest.fixture
def opex_id(client):
    resp = client.post("/api/opex", json={
        "name": "Showroom Rent", "category": "Rent", "cost": 1000,
        "start_month": "2026-01", "end_month": "2026-03",
    })
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture
def scenario_id(client, campaign_id):
    resp = client.post("/api/scenarios", json={"name": "Deeper discount", "base_campaign_id": campaign_id})
    assert resp.status_code == 201
    return resp.json()["id"]


class TestHealthEndpoints:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "CampaignPulse API"

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestProductEndpoints:
    def test_create_product_generates_code(self, client, product_id):
        resp = client.get(f"/api/products/{product_id}")
        assert resp.status_code == 200
        assert resp.json()["product_code"].startswith("PANJABI-")

    def test_duplicate_code_conflict(self, client):
        body = {"product_code": "P-1", "name": "A", "category": "C", "price": 1, "manufacturing_cost": 1}
        assert client.post("/api/products", json=body).status_code == 201
        resp = client.post("/api/products", json=body)
        assert resp.status_code == 409
        assert resp.json()["detail"]["error_code"] == "DUPLICATE_PRODUCT"

    def test_invalid_rate_rejected(self, client):
        resp = client.post("/api/products", json={
            "name": "A", "category": "C", "price": 1, "manufacturing_cost": 1, "discount_rate": 1.5,
        })
        assert resp.status_code == 422

    def test_list_hides_inactive(self, client, product_id):
        client.put(f"/api/products/{product_id}", json={"is_active": False})
        assert client.get("/api/products").json() == []
        assert len(client.get("/api/products", params={"active": "false"}).json()) == 1

    def test_update_product(self, client, product_id):
        resp = client.put(f"/api/products/{product_id}", json={"price": 120})
        assert resp.status_code == 200
        assert resp.json()["price"] == 120

    def test_delete_product(self, client, product_id):
        assert client.delete(f"/api/products/{product_id}").status_code == 204
        assert client.get(f"/api/products/{product_id}").status_code == 404

    def test_get_nonexistent_product(self, client):
        resp = client.get("/api/products/9999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Product 9999 not found"


class TestCampaignEndpoints:
    def test_list_campaigns(self, client, campaign_id):
        resp = client.get("/api/campaigns")
        assert [c["id"] for c in resp.json()] == [campaign_id]

    def test_invalid_distribution_mode(self, client):
        resp = client.post("/api/campaigns", json={"name": "X", "distribution_mode": "Sideways"})
        assert resp.status_code == 422

    def test_update_campaign(self, client, campaign_id):
        resp = client.put(f"/api/campaigns/{campaign_id}", json={"distribution_mode": "Front-loaded"})
        assert resp.status_code == 200
        assert resp.json()["distribution_mode"] == "Front-loaded"

    def test_inputs_roundtrip(self, client, campaign_id, product_id, opex_id):
        pid = str(product_id)
        client.put(f"/api/campaigns/{campaign_id}/month-weights", json={"2026-01": 1, "2026-02": 3})
        client.put(f"/api/campaigns/{campaign_id}/sizes", json={pid: {"M": 400, "L": 600}})
        client.put(f"/api/campaigns/{campaign_id}/product-overrides",
                   json={"overrides": {pid: {"marketing_cost": 2}}})
        client.put(f"/api/campaigns/{campaign_id}/marketing-total", json={"marketing_cost_total": 5000})
        client.put(f"/api/campaigns/{campaign_id}/opex", json={"opex_ids": [opex_id]})

        data = client.get(f"/api/campaigns/{campaign_id}/inputs").json()
        assert data["quantities"] == {pid: 1000.0}
        assert data["month_weights"] == {"2026-01": 1.0, "2026-02": 3.0}
        assert data["size_breakdown"] == {pid: {"M": 400.0, "L": 600.0}}
        assert data["product_overrides"][pid]["marketing_cost"] == 2.0
        assert data["campaign"]["marketing_total"] == 5000.0
        assert data["campaign"]["opex_ids"] == [opex_id]

    def test_quantities_must_be_numeric(self, client, campaign_id, product_id):
        resp = client.put(f"/api/campaigns/{campaign_id}/quantities",
                          json={"quantities": {str(product_id): "lots"}})
        assert resp.status_code == 422

    def test_campaign_opex_listing(self, client, campaign_id, opex_id):
        client.put(f"/api/campaigns/{campaign_id}/opex", json={"opex_ids": [opex_id, 9999]})
        data = client.get(f"/api/campaigns/{campaign_id}/opex").json()
        assert data["ids"] == [opex_id]
        assert data["items"][0]["name"] == "Showroom Rent"

    def test_forecast(self, client, campaign_id):
        resp = client.get(f"/api/campaigns/{campaign_id}/forecast")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["monthly"]) == 2
        assert abs(data["monthly"][0]["effective_revenue"] - 42750) < 1e-6
        assert abs(data["totals"]["effective_revenue"] - 85500) < 1e-6
        assert abs(data["totals"]["net_profit"] - 40500) < 1e-6

    def test_forecast_without_sizes(self, client, campaign_id, product_id):
        client.put(f"/api/campaigns/{campaign_id}/sizes", json={str(product_id): {"M": 1000}})
        assert len(client.get(f"/api/campaigns/{campaign_id}/forecast").json()["size_breakdown"]) == 1
        resp = client.get(f"/api/campaigns/{campaign_id}/forecast", params={"include_sizes": "false"})
        assert resp.json()["size_breakdown"] == []

    def test_forecast_custom_per_product_weights(self, client, campaign_id, product_id):
        client.put(f"/api/campaigns/{campaign_id}", json={"distribution_mode": "Custom"})
        client.put(f"/api/campaigns/{campaign_id}/product-month-weights",
                   json={str(product_id): {"2026-01": 1, "2026-02": 3}})
        monthly = client.get(f"/api/campaigns/{campaign_id}/forecast").json()["monthly"]
        assert [round(r["qty"]) for r in monthly] == [250, 750]

    def test_forecast_nonexistent_campaign(self, client):
        resp = client.get("/api/campaigns/9999/forecast")
        assert resp.status_code == 404

    def test_profitability(self, client, campaign_id, opex_id):
        client.put(f"/api/campaigns/{campaign_id}/opex", json={"opex_ids": [opex_id]})
        data = client.get(f"/api/campaigns/{campaign_id}/profitability").json()
        assert data["totals"]["total_opex"] == 2000.0
        assert abs(data["totals"]["net_profit_after_opex"] - 38500) < 1e-6

    def test_delete_campaign_removes_scenarios(self, client, campaign_id, scenario_id):
        resp = client.delete(f"/api/campaigns/{campaign_id}")
        assert resp.status_code == 200
        assert client.get(f"/api/campaigns/{campaign_id}").status_code == 404
        assert client.get(f"/api/scenarios/{scenario_id}").status_code == 404


class TestOpexEndpoints:
    def test_invalid_month(self, client):
        resp = client.post("/api/opex", json={
            "name": "Rent", "category": "Rent", "cost": 1, "start_month": "Jan 2026",
        })
        assert resp.status_code == 422

    def test_update_clears_end_month(self, client, opex_id):
        resp = client.put(f"/api/opex/{opex_id}", json={"end_month": None})
        assert resp.status_code == 200
        assert resp.json()["end_month"] is None

    def test_delete_opex(self, client, opex_id):
        assert client.delete(f"/api/opex/{opex_id}").status_code == 204
        assert client.delete(f"/api/opex/{opex_id}").status_code == 404

    def test_deactivate_drops_out_of_profitability(self, client, campaign_id, opex_id):
        client.put(f"/api/campaigns/{campaign_id}/opex", json={"opex_ids": [opex_id]})
        resp = client.put(f"/api/opex/{opex_id}", json={"is_active": False})
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False
        totals = client.get(f"/api/campaigns/{campaign_id}/profitability").json()["totals"]
        assert totals["total_opex"] == 0.0


class TestScenarioEndpoints:
    def test_no_overrides_matches_campaign(self, client, campaign_id, scenario_id):
        base = client.get(f"/api/campaigns/{campaign_id}/forecast").json()["totals"]
        totals = client.get(f"/api/scenarios/{scenario_id}/forecast").json()["totals"]
        assert totals["net_profit_variable"] == base["net_profit"]
        assert totals["opex_total"] == 0.0

    def test_product_overrides(self, client, scenario_id, product_id):
        resp = client.put(f"/api/scenarios/{scenario_id}/products", json=[
            {"product_id": product_id, "discount_override": 20, "qty_override": 2000},
        ])
        assert resp.json()["count"] == 1
        totals = client.get(f"/api/scenarios/{scenario_id}/forecast").json()["totals"]
        assert abs(totals["campaign_qty"] - 2000) < 1e-9
        assert abs(totals["effective_revenue"] - 100 * 0.8 * 0.95 * 2000) < 1e-6

    def test_discount_override_is_percentage_points(self, client, scenario_id, product_id):
        resp = client.put(f"/api/scenarios/{scenario_id}/products", json=[
            {"product_id": product_id, "discount_override": 150},
        ])
        assert resp.status_code == 422

    def test_opex_overrides(self, client, campaign_id, scenario_id, opex_id):
        client.put(f"/api/campaigns/{campaign_id}/opex", json={"opex_ids": [opex_id]})
        client.put(f"/api/scenarios/{scenario_id}/opex", json=[
            {"opex_item_id": opex_id, "cost_override": 500},
        ])
        totals = client.get(f"/api/scenarios/{scenario_id}/forecast").json()["totals"]
        assert totals["opex_total"] == 1000.0
        assert abs(totals["net_profit_after_opex"] - 39500) < 1e-6

    def test_forecast_mode_and_custom_weights(self, client, scenario_id):
        resp = client.get(f"/api/scenarios/{scenario_id}/forecast", params={
            "distribution_mode": "Custom",
            "custom_weights": json.dumps({"2026-02": 1}),
        })
        assert [r["month"] for r in resp.json()["monthly"]] == ["2026-02"]

    def test_empty_custom_weights_spreads_uniformly(self, client, campaign_id, scenario_id):
        client.put(f"/api/campaigns/{campaign_id}/month-weights", json={"2026-01": 1})
        stored = client.get(f"/api/scenarios/{scenario_id}/forecast", params={"distribution_mode": "Custom"})
        assert [r["month"] for r in stored.json()["monthly"]] == ["2026-01"]

        resp = client.get(f"/api/scenarios/{scenario_id}/forecast", params={
            "distribution_mode": "Custom", "custom_weights": "{}",
        })
        qty = {r["month"]: r["qty"] for r in resp.json()["monthly"]}
        assert abs(qty["2026-01"] - 500) < 1e-9
        assert abs(qty["2026-02"] - 500) < 1e-9

    def test_malformed_custom_weights_ignored(self, client, scenario_id):
        resp = client.get(f"/api/scenarios/{scenario_id}/forecast", params={
            "distribution_mode": "Custom", "custom_weights": "{not json",
        })
        assert resp.status_code == 200
        assert len(resp.json()["monthly"]) == 2

    def test_link_campaign(self, client, scenario_id):
        other = client.post("/api/campaigns", json={
            "name": "Puja", "start_date": "2026-09-01", "end_date": "2026-10-31",
        }).json()["id"]
        resp = client.put(f"/api/scenarios/{scenario_id}/campaign", json={"campaign_id": other})
        assert resp.json()["linked"] is True
        assert client.get(f"/api/scenarios/{scenario_id}").json()["campaign_id"] == other
        # The linked campaign has no quantities
        assert client.get(f"/api/scenarios/{scenario_id}/forecast").json()["monthly"] == []

    def test_link_missing_campaign(self, client, scenario_id):
        resp = client.put(f"/api/scenarios/{scenario_id}/campaign", json={"campaign_id": 9999})
        assert resp.status_code == 404

    def test_forecast_without_campaign(self, client):
        sid = client.post("/api/scenarios", json={"name": "Orphan"}).json()["id"]
        resp = client.get(f"/api/scenarios/{sid}/forecast")
        assert resp.status_code == 404

    def test_get_scenario_details(self, client, scenario_id, product_id, campaign_id):
        client.put(f"/api/scenarios/{scenario_id}/products", json=[
            {"product_id": product_id, "price_override": 90},
        ])
        data = client.get(f"/api/scenarios/{scenario_id}").json()
        assert data["campaign_id"] == campaign_id
        assert data["products"][0]["price_override"] == 90

    def test_delete_scenario(self, client, scenario_id):
        assert client.delete(f"/api/scenarios/{scenario_id}").status_code == 204
        assert client.get(f"/api/scenarios/{scenario_id}").status_code == 404


class TestSettingsEndpoints:
    def test_default_display_settings(self, client):
        data = client.get("/api/settings/display").json()
        assert data["currency"] == "BDT"
        assert set(data["exchange_rates"]) == {"BDT", "USD", "GBP"}

    def test_update_display_settings(self, client):
        resp = client.put("/api/settings/display", json={
            "currency": "GBP", "exchange_rates": {"BDT": 1, "USD": 118, "GBP": 150},
        })
        assert resp.status_code == 200
        assert client.get("/api/settings/display").json()["currency"] == "GBP"

    def test_rejects_missing_rate(self, client):
        resp = client.put("/api/settings/display", json={
            "currency": "USD", "exchange_rates": {"BDT": 1, "USD": 118},
        })
        assert resp.status_code == 422


class TestExportEndpoints:
    def test_campaign_export(self, client, campaign_id, product_id):
        client.put(f"/api/campaigns/{campaign_id}/sizes", json={str(product_id): {"M": 1000}})
        resp = client.get(f"/api/export/campaigns/{campaign_id}")
        assert resp.status_code == 200
        assert "spreadsheetml" in resp.headers["content-type"]
        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        assert wb.sheetnames == [
            "Campaign Overview", "Product Summary", "Monthly Forecast", "Size Breakdown", "Monthly P&L",
        ]

    def test_products_export(self, client, product_id):
        resp = client.get("/api/export/products")
        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        ws = wb["Products"]
        assert ws.max_row == 2  # header + one product

    def test_opex_export_empty(self, client):
        resp = client.get("/api/export/opex")
        assert resp.status_code == 200
        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        assert wb.sheetnames == ["OPEX_Items"]

    def test_scenario_export(self, client, scenario_id):
        resp = client.get(f"/api/export/scenarios/{scenario_id}")
        assert resp.status_code == 200
        assert "Scenario_Deeper_discount.xlsx" in resp.headers["content-disposition"]

    def test_export_nonexistent_campaign(self, client):
        assert client.get("/api/export/campaigns/9999").status_code == 404
