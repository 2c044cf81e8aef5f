# evquote/schemas/quote.py
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from evquote.schemas.common import CamelModel, Money, Number
from evquote.schemas.company_config import Rebate


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value) -> "QuoteStatus":
        # oudere records in Airtable hebben "Sent", "Viewed", ...
        if isinstance(value, cls):
            return value
        return cls(str(value or "").strip().lower())


class AdditionalService(CamelModel):
    name: str
    cost: Money


class SelectedAddon(CamelModel):
    name: str
    price: Money


class PriceBreakdown(CamelModel):
    materials: Money
    labor: Money
    labor_hours: Number
    conduit: Money
    permit: Money
    additional_services: List[AdditionalService] = Field(default_factory=list)
    selected_addons: List[SelectedAddon] = Field(default_factory=list)
    additional_services_cost: Money
    addons_cost: Money
    subtotal: Money
    markup: Number
    markup_amount: Money
    taxable_amount: Money
    sales_tax: Money
    sales_tax_rate: Number
    total: Money


class CustomerInfo(CamelModel):
    name: str
    email: str
    phone: str
    address: str


class VehicleInfo(CamelModel):
    make: str
    model: str
    charging_requirements: str
    max_charging_power: Optional[str] = None
    charging_speed: Optional[str] = None


class InstallationInfo(CamelModel):
    location: str
    distance: Number
    conduit_type: str
    charger_type: str


class FinancingOption(CamelModel):
    term: str
    monthly_payment: Money
    apr: Number


class Quote(CamelModel):
    quote_id: str
    project_id: str
    date: dt.date
    valid_until: dt.date

    customer: CustomerInfo
    vehicle: Optional[VehicleInfo] = None
    installation: InstallationInfo
    pricing: PriceBreakdown

    rebates: List[Rebate] = Field(default_factory=list)
    financing_options: List[FinancingOption] = Field(default_factory=list)

    status: QuoteStatus = QuoteStatus.DRAFT
    shareable_link: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return QuoteStatus.parse(v)


class QuoteVersion(CamelModel):
    """One persisted snapshot in the QUOTES table."""

    id: str
    quote_id: str
    project_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    total_amount: Optional[Money] = None
    quote_data: Optional[Quote] = None
    status: Optional[QuoteStatus] = None
    date_created: Optional[str] = None
    version: int = 1
    modified_by: str = "Unknown"

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        if v in (None, ""):
            return None
        try:
            return QuoteStatus.parse(v)
        except ValueError:
            return None
