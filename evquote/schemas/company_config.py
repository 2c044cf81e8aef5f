# evquote/schemas/company_config.py
from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from evquote.schemas.common import CamelModel, Money, Number

DEFAULT_COMPANY_NAME = "EV Charge Pro"
DEFAULT_INCLUDED_FOOTAGE = Decimal("20")
DEFAULT_LABOR_RATE = Decimal("95")
DEFAULT_MARKUP = Decimal("20")
DEFAULT_STATE_TAX_RATES = {"GA": Decimal("4")}


class Addon(CamelModel):
    name: str = Field(min_length=1)
    price: Money
    description: Optional[str] = None


class Rebate(CamelModel):
    name: str = Field(min_length=1)
    amount: Money
    description: Optional[str] = None


class FinancingPlan(CamelModel):
    term: str
    apr: Number = Decimal("0")

    @field_validator("term", mode="before")
    @classmethod
    def _term_as_label(cls, v):
        # Airtable JSON mag 36 of "36 months" bevatten
        if isinstance(v, (int, float)):
            return str(int(v))
        return v

    @field_validator("apr", mode="before")
    @classmethod
    def _apr_default(cls, v):
        return Decimal("0") if v in (None, "") else v


class CompanyConfig(CamelModel):
    company_name: str = DEFAULT_COMPANY_NAME
    included_footage: Number = DEFAULT_INCLUDED_FOOTAGE
    labor_rate: Money = DEFAULT_LABOR_RATE
    default_markup: Number = DEFAULT_MARKUP

    optional_addons: List[Addon] = Field(default_factory=list)
    rebates: List[Rebate] = Field(default_factory=list)
    financing_plans: List[FinancingPlan] = Field(default_factory=list)
    state_tax_rates: Dict[str, Number] = Field(default_factory=dict)

    def tax_rate_for(self, state: str) -> Decimal:
        return self.state_tax_rates.get(state, Decimal("0"))


def default_company_config() -> CompanyConfig:
    """Config used when the CompanyConfig table holds no record."""
    return CompanyConfig(state_tax_rates=dict(DEFAULT_STATE_TAX_RATES))
