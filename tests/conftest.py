"""Shared test fixtures for CampaignPulse."""

import sys
import os
from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Keep the app lifespan from creating a database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

from campaignpulse.database import Base
from campaignpulse import models


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database session for testing."""
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _fk_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def product_record():
    """Plain product mapping as the engines consume it (the worked example product)."""
    return {
        "id": 1,
        "name": "Panjabi",
        "category": "Menswear",
        "price": 100.0,
        "discount_rate": 0.1,
        "return_rate": 0.05,
        "manufacturing_cost": 40.0,
        "packaging_cost": 5.0,
        "shipping_cost": 0.0,
        "marketing_cost": 0.0,
    }


@pytest.fixture
def sample_product(db_session):
    """Create a sample product."""
    product = models.Product(
        product_code="PANJABI-0001",
        name="Panjabi",
        category="Menswear",
        price=100.0,
        manufacturing_cost=40.0,
        packaging_cost=5.0,
        shipping_cost=0.0,
        marketing_cost=0.0,
        discount_rate=0.1,
        return_rate=0.05,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def sample_campaign(db_session, sample_product):
    """Create a two-month Uniform campaign selling 1000 units of the sample product."""
    campaign = models.Campaign(
        name="Eid 2026",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 2, 28),
        distribution_mode="Uniform",
    )
    db_session.add(campaign)
    db_session.flush()

    db_session.add(models.CampaignQuantity(
        campaign_id=campaign.id, product_id=sample_product.id, total_qty=1000.0,
    ))
    db_session.commit()
    db_session.refresh(campaign)
    return campaign


@pytest.fixture
def sample_opex(db_session):
    """Create a recurring Jan-Mar 2026 OPEX item of 1000 per month."""
    item = models.OpexItem(
        name="Showroom Rent",
        category="Rent",
        cost=1000.0,
        start_month="2026-01",
        end_month="2026-03",
        is_one_time=False,
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item
