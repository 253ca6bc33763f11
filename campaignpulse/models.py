"""
CampaignPulse ORM Models

Defines all database tables using SQLAlchemy 2.0 mapped_column style.

Architecture:
    - All models inherit from Base (defined in database.py)
    - Relationships defined with back_populates for bidirectional access
    - CASCADE deletes configured so removing a campaign or scenario cleans up
      its input rows
    - UNIQUE constraints enforce one row per (campaign, product) etc.

Tables:
    - products: Product master data (price, rates, unit cost components)
    - campaigns: Campaign header (date range, distribution mode)
    - campaign_quantities: Total units per product per campaign
    - campaign_month_weights: Custom month weights (product_id NULL = campaign-wide)
    - campaign_size_breakdown: Units per size variant per product per campaign
    - campaign_product_overrides: Per-campaign packaging/marketing/discount/return shadows
    - campaign_marketing_totals: Campaign-level marketing spend
    - opex_items: Operating expense catalog
    - campaign_opex: Links OPEX items to campaigns
    - scenarios: What-if variants of a base campaign
    - scenario_campaign_links: Explicit campaign a scenario runs against
    - scenario_products: Per-product scenario overrides
    - scenario_opex: Per-OPEX-item scenario cost overrides
    - display_settings: Presentation currency and exchange rates
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Integer, Float, Text, Boolean, Date, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


# ---------------------------------------------------------------------------
# PRODUCT CATALOG
# ---------------------------------------------------------------------------

class Product(Base):
    """
    Product master data. Money fields are in the single base currency.
    discount_rate and return_rate are fractions in [0, 1].
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    manufacturing_cost: Mapped[float] = mapped_column(Float, nullable=False)
    packaging_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    shipping_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    marketing_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    return_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    discount_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    vat_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, code={self.product_code}, price={self.price})>"


# ---------------------------------------------------------------------------
# CAMPAIGN TABLES
# ---------------------------------------------------------------------------

class Campaign(Base):
    """
    A marketing campaign over an inclusive month range. All input tables
    hang off this record and are deleted with it.
    """
    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    distribution_mode: Mapped[str] = mapped_column(Text, nullable=False, default="Uniform")
    enable_size_breakdown: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="BDT")

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    quantities: Mapped[list["CampaignQuantity"]] = relationship(
        "CampaignQuantity", back_populates="campaign", cascade="all, delete-orphan"
    )
    month_weights: Mapped[list["CampaignMonthWeight"]] = relationship(
        "CampaignMonthWeight", back_populates="campaign", cascade="all, delete-orphan"
    )
    size_breakdown: Mapped[list["CampaignSizeBreakdown"]] = relationship(
        "CampaignSizeBreakdown", back_populates="campaign", cascade="all, delete-orphan"
    )
    product_overrides: Mapped[list["CampaignProductOverride"]] = relationship(
        "CampaignProductOverride", back_populates="campaign", cascade="all, delete-orphan"
    )
    marketing_total: Mapped[Optional["CampaignMarketingTotal"]] = relationship(
        "CampaignMarketingTotal", back_populates="campaign",
        cascade="all, delete-orphan", uselist=False,
    )
    opex_links: Mapped[list["CampaignOpex"]] = relationship(
        "CampaignOpex", back_populates="campaign", cascade="all, delete-orphan"
    )
    scenarios: Mapped[list["Scenario"]] = relationship(
        "Scenario", back_populates="base_campaign", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Campaign(id={self.id}, name={self.name}, {self.start_date}..{self.end_date})>"


class CampaignQuantity(Base):
    """Total units of one product over the whole campaign."""
    __tablename__ = "campaign_quantities"
    __table_args__ = (
        UniqueConstraint("campaign_id", "product_id", name="uq_campaign_quantity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    total_qty: Mapped[float] = mapped_column(Float, nullable=False)

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="quantities")


class CampaignMonthWeight(Base):
    """
    Custom distribution weight for one month. product_id NULL means the
    weight applies campaign-wide; otherwise it belongs to that product's
    own weight map.
    """
    __tablename__ = "campaign_month_weights"
    __table_args__ = (
        UniqueConstraint("campaign_id", "product_id", "month_label", name="uq_campaign_month_weight"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=True
    )
    month_label: Mapped[str] = mapped_column(Text, nullable=False)  # YYYY-MM
    weight: Mapped[float] = mapped_column(Float, nullable=False)

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="month_weights")


class CampaignSizeBreakdown(Base):
    """Units of one size variant of a product within a campaign."""
    __tablename__ = "campaign_size_breakdown"
    __table_args__ = (
        UniqueConstraint("campaign_id", "product_id", "size", name="uq_campaign_size"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    size: Mapped[str] = mapped_column(Text, nullable=False)
    qty: Mapped[float] = mapped_column(Float, nullable=False)

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="size_breakdown")


class CampaignProductOverride(Base):
    """Campaign-specific values shadowing product fields. NULL = use product value."""
    __tablename__ = "campaign_product_overrides"
    __table_args__ = (
        UniqueConstraint("campaign_id", "product_id", name="uq_campaign_product_override"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    packaging_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    marketing_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    discount_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    return_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="product_overrides")


class CampaignMarketingTotal(Base):
    """Campaign-level marketing spend (one row per campaign at most)."""
    __tablename__ = "campaign_marketing_totals"

    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True
    )
    marketing_cost_total: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="marketing_total")


# ---------------------------------------------------------------------------
# OPEX TABLES
# ---------------------------------------------------------------------------

class OpexItem(Base):
    """
    Operating expense. Recurring items cost `cost` per month from start_month
    to end_month (open-ended when NULL); one-time items cost it once, in
    start_month.
    """
    __tablename__ = "opex_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[float] = mapped_column(Float, nullable=False)
    start_month: Mapped[str] = mapped_column(Text, nullable=False)  # YYYY-MM
    end_month: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_one_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<OpexItem(id={self.id}, name={self.name}, cost={self.cost})>"


class CampaignOpex(Base):
    """Attaches an OPEX item to a campaign."""
    __tablename__ = "campaign_opex"
    __table_args__ = (
        UniqueConstraint("campaign_id", "opex_id", name="uq_campaign_opex"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    opex_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("opex_items.id", ondelete="CASCADE"), nullable=False
    )

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="opex_links")
    opex_item: Mapped["OpexItem"] = relationship("OpexItem")


# ---------------------------------------------------------------------------
# SCENARIO TABLES
# ---------------------------------------------------------------------------

class Scenario(Base):
    """
    What-if variant of a base campaign. The campaign it runs against is the
    explicit link if one exists, otherwise base_campaign_id.
    """
    __tablename__ = "scenarios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    base_campaign_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    base_campaign: Mapped[Optional["Campaign"]] = relationship(
        "Campaign", back_populates="scenarios"
    )
    campaign_link: Mapped[Optional["ScenarioCampaignLink"]] = relationship(
        "ScenarioCampaignLink", back_populates="scenario",
        cascade="all, delete-orphan", uselist=False,
    )
    product_overrides: Mapped[list["ScenarioProduct"]] = relationship(
        "ScenarioProduct", back_populates="scenario", cascade="all, delete-orphan"
    )
    opex_overrides: Mapped[list["ScenarioOpex"]] = relationship(
        "ScenarioOpex", back_populates="scenario", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Scenario(id={self.id}, name={self.name}, base={self.base_campaign_id})>"


class ScenarioCampaignLink(Base):
    """The campaign a scenario is evaluated against (at most one per scenario)."""
    __tablename__ = "scenario_campaign_links"

    scenario_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("scenarios.id", ondelete="CASCADE"), primary_key=True
    )
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )

    scenario: Mapped["Scenario"] = relationship("Scenario", back_populates="campaign_link")


class ScenarioProduct(Base):
    """
    Per-product scenario override. discount_override and return_rate_override
    are percentage points (10 = 10%); cost_override is a total unit cost;
    qty_override replaces the campaign quantity. NULL = keep base value.
    """
    __tablename__ = "scenario_products"
    __table_args__ = (
        UniqueConstraint("scenario_id", "product_id", name="uq_scenario_product"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scenario_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    price_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    discount_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    return_rate_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    qty_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    scenario: Mapped["Scenario"] = relationship("Scenario", back_populates="product_overrides")


class ScenarioOpex(Base):
    """Scenario replacement cost for one OPEX item. NULL = keep item cost."""
    __tablename__ = "scenario_opex"
    __table_args__ = (
        UniqueConstraint("scenario_id", "opex_item_id", name="uq_scenario_opex"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scenario_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False
    )
    opex_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("opex_items.id", ondelete="CASCADE"), nullable=False
    )
    cost_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    scenario: Mapped["Scenario"] = relationship("Scenario", back_populates="opex_overrides")


# ---------------------------------------------------------------------------
# PRESENTATION SETTINGS
# ---------------------------------------------------------------------------

class DisplaySettings(Base):
    """
    Display currency and exchange rates (units of base currency per unit of
    display currency). Single row; read by the presentation layer only.
    """
    __tablename__ = "display_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="BDT")
    exchange_rates_json: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
