"""
CampaignPulse Pydantic Schemas

Defines request/response models for the FastAPI REST API.
Request bodies are validated here once, so the forecast engines can assume
well-typed mappings.

Naming convention:
    - XxxCreate: request body for creating Xxx
    - XxxUpdate: request body for updating Xxx (all fields optional)
    - XxxResponse: response body for Xxx
"""

import re
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

MONTH_LABEL_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

DistributionMode = Literal["Uniform", "Front-loaded", "Back-loaded", "Custom"]
DisplayCurrency = Literal["BDT", "USD", "GBP"]

SUPPORTED_CURRENCIES = ("BDT", "USD", "GBP")


def _check_month_label(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not MONTH_LABEL_RE.match(v):
        raise ValueError(f"Invalid month label: {v}. Expected YYYY-MM")
    return v


# ---------------------------------------------------------------------------
# PRODUCT SCHEMAS
# ---------------------------------------------------------------------------

class ProductCreate(BaseModel):
    """Request body for creating a product."""
    product_code: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    manufacturing_cost: float = Field(..., ge=0)
    packaging_cost: float = Field(0.0, ge=0)
    shipping_cost: float = Field(0.0, ge=0)
    marketing_cost: float = Field(0.0, ge=0)
    return_rate: float = Field(0.0, ge=0.0, le=1.0)
    discount_rate: float = Field(0.0, ge=0.0, le=1.0)
    vat_included: bool = True
    notes: str = ""
    is_active: bool = True


class ProductUpdate(BaseModel):
    """Request body for updating a product. All fields optional."""
    product_code: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    manufacturing_cost: Optional[float] = Field(None, ge=0)
    packaging_cost: Optional[float] = Field(None, ge=0)
    shipping_cost: Optional[float] = Field(None, ge=0)
    marketing_cost: Optional[float] = Field(None, ge=0)
    return_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    discount_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    vat_included: Optional[bool] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class ProductResponse(BaseModel):
    """Response body for a product."""
    id: int
    product_code: str
    name: str
    category: str
    price: float
    manufacturing_cost: float
    packaging_cost: float
    shipping_cost: float
    marketing_cost: float
    return_rate: float
    discount_rate: float
    vat_included: bool
    notes: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# CAMPAIGN SCHEMAS
# ---------------------------------------------------------------------------

class CampaignCreate(BaseModel):
    """Request body for creating a campaign."""
    name: str = Field(..., min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    distribution_mode: DistributionMode = "Uniform"
    enable_size_breakdown: bool = True
    currency: str = "BDT"


class CampaignUpdate(BaseModel):
    """Request body for updating a campaign header. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    distribution_mode: Optional[DistributionMode] = None
    enable_size_breakdown: Optional[bool] = None
    currency: Optional[str] = None


class CampaignResponse(BaseModel):
    """Response body for a campaign header."""
    id: int
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    distribution_mode: str
    enable_size_breakdown: bool
    currency: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class QuantitiesUpdate(BaseModel):
    """{product_id: total units}. Zero/negative/None entries are dropped."""
    quantities: dict[str, Optional[float]]


class CampaignProductOverrideSchema(BaseModel):
    """Per-campaign product shadows. None = use the product's own value."""
    packaging_cost: Optional[float] = Field(None, ge=0)
    marketing_cost: Optional[float] = Field(None, ge=0)
    discount_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    return_rate: Optional[float] = Field(None, ge=0.0, le=1.0)


class ProductOverridesUpdate(BaseModel):
    """{product_id: overrides}. Entries with every field None are dropped."""
    overrides: dict[str, CampaignProductOverrideSchema]


class MarketingTotalUpdate(BaseModel):
    """Campaign-level marketing spend. None clears it."""
    marketing_cost_total: Optional[float] = Field(None, ge=0)


class CampaignOpexUpdate(BaseModel):
    """OPEX items attached to a campaign (replaces the current set)."""
    opex_ids: list[int]


# ---------------------------------------------------------------------------
# OPEX SCHEMAS
# ---------------------------------------------------------------------------

class OpexCreate(BaseModel):
    """Request body for creating an OPEX item."""
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1)
    cost: float = Field(..., ge=0)
    start_month: str
    end_month: Optional[str] = None
    is_one_time: bool = False
    notes: str = ""

    @field_validator("start_month")
    @classmethod
    def validate_start_month(cls, v):
        if not v:
            raise ValueError("start_month is required")
        return _check_month_label(v)

    @field_validator("end_month")
    @classmethod
    def validate_end_month(cls, v):
        return _check_month_label(v)


class OpexUpdate(BaseModel):
    """Request body for updating an OPEX item. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    start_month: Optional[str] = None
    end_month: Optional[str] = None
    is_one_time: Optional[bool] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("start_month", "end_month")
    @classmethod
    def validate_months(cls, v):
        return _check_month_label(v)


class OpexResponse(BaseModel):
    """Response body for an OPEX item."""
    id: int
    name: str
    category: str
    cost: float
    start_month: str
    end_month: Optional[str] = None
    is_one_time: bool
    notes: str
    is_active: bool = True

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# SCENARIO SCHEMAS
# ---------------------------------------------------------------------------

class ScenarioCreate(BaseModel):
    """Request body for creating a scenario."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    base_campaign_id: Optional[int] = None


class ScenarioUpdate(BaseModel):
    """Request body for updating a scenario. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    base_campaign_id: Optional[int] = None


class ScenarioResponse(BaseModel):
    """Response body for a scenario."""
    id: int
    name: str
    description: str
    base_campaign_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ScenarioCampaignLinkUpdate(BaseModel):
    campaign_id: int


class ScenarioProductOverrideSchema(BaseModel):
    """
    Scenario override for one product. discount_override and
    return_rate_override are percentage points (e.g. 12.5 = 12.5%).
    """
    product_id: int
    price_override: Optional[float] = Field(None, ge=0)
    discount_override: Optional[float] = Field(None, ge=0.0, le=100.0)
    return_rate_override: Optional[float] = Field(None, ge=0.0, le=100.0)
    cost_override: Optional[float] = Field(None, ge=0)
    qty_override: Optional[float] = Field(None, ge=0)

    model_config = {"from_attributes": True}


class ScenarioOpexOverrideSchema(BaseModel):
    """Scenario replacement cost for one OPEX item."""
    opex_item_id: int
    cost_override: Optional[float] = Field(None, ge=0)

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# DISPLAY SETTINGS
# ---------------------------------------------------------------------------

class DisplaySettingsSchema(BaseModel):
    """
    Presentation currency and exchange rates (base-currency units per unit
    of each display currency). Every supported currency needs a positive rate.
    """
    currency: DisplayCurrency = "BDT"
    exchange_rates: dict[str, float]

    @field_validator("exchange_rates")
    @classmethod
    def validate_rates(cls, v):
        errors = []
        for code in SUPPORTED_CURRENCIES:
            if code not in v:
                errors.append(f"exchange_rates.{code} is required")
            elif v[code] <= 0:
                errors.append(f"exchange_rates.{code} must be a positive number")
        if errors:
            raise ValueError("; ".join(errors))
        return {code: float(v[code]) for code in SUPPORTED_CURRENCIES}
