# evquote/services/pricing_engine.py
from __future__ import annotations

import re
from decimal import Decimal
from typing import Dict, List, Tuple

from evquote.schemas.assessment import QuoteForm
from evquote.schemas.common import qmoney
from evquote.schemas.company_config import CompanyConfig, FinancingPlan
from evquote.schemas.project import Project
from evquote.schemas.quote import (
    AdditionalService,
    FinancingOption,
    PriceBreakdown,
    SelectedAddon,
)

D = Decimal

# -------------------------
# Vaste prijsregels
# -------------------------
MATERIALS_BASE = D("650")  # charger + basismateriaal
BASE_LABOR_HOURS = D("6")
CONDUIT_EXTRA_HOURS: Dict[str, Decimal] = {
    "surface": D("0"),
    "concealed": D("2"),
    "underground": D("4"),
}
CONDUIT_MULTIPLIERS: Dict[str, Decimal] = {
    "surface": D("1.0"),
    "concealed": D("1.3"),
    "underground": D("1.5"),
}
CONDUIT_BASE_COST = D("250")  # dekt de included footage
EXTRA_FOOT_RATE = D("12")

PANEL_UPGRADE_HOURS = D("8")
PANEL_UPGRADE_NO_SLOTS = D("1800")
PANEL_UPGRADE_AGE_CAPACITY = D("1200")
PANEL_MIN_CAPACITY_AMPS = D("200")

NEMA_OUTLET_COST = D("150")
PERMIT_FEE = D("235")

DEFAULT_FINANCING_MONTHS = 12


def _fmt_qty(value: Decimal) -> str:
    """15 -> "15", 15.50 -> "15.5"."""
    return format(D(value).normalize(), "f")


def panel_upgrade(assessment: QuoteForm) -> Tuple[Decimal, str] | None:
    """Return (cost, line name) for the single upgrade that applies, if any."""
    if assessment.available_slots == 0:
        return PANEL_UPGRADE_NO_SLOTS, "Electrical Panel Upgrade (No available slots)"
    if assessment.panel_age == "old" and assessment.panel_capacity < PANEL_MIN_CAPACITY_AMPS:
        return PANEL_UPGRADE_AGE_CAPACITY, "Electrical Panel Upgrade (Panel age/capacity)"
    return None


def compute_price(
    assessment: QuoteForm,
    config: CompanyConfig,
    project: Project,
) -> PriceBreakdown:
    """
    Turn an assessment into an itemized price breakdown.

    Pure and deterministic: no I/O, no clock, no rounding of intermediates.
    Additional services (extra wiring, panel upgrade, NEMA outlet) are kept out
    of the markup base but are part of the taxable amount.
    """
    materials = MATERIALS_BASE
    multiplier = CONDUIT_MULTIPLIERS[assessment.conduit_type]

    # -------------------------
    # Labor hours
    # -------------------------
    labor_hours = BASE_LABOR_HOURS + CONDUIT_EXTRA_HOURS[assessment.conduit_type]

    # -------------------------
    # Conduit + extra distance
    # -------------------------
    conduit = CONDUIT_BASE_COST * multiplier
    additional: List[AdditionalService] = []

    included = D(config.included_footage)
    if assessment.distance > included:
        extra_feet = assessment.distance - included
        extra_cost = extra_feet * (EXTRA_FOOT_RATE * multiplier)
        conduit += extra_cost
        additional.append(
            AdditionalService(
                name=f"Extra Wiring ({_fmt_qty(extra_feet)}ft beyond included {_fmt_qty(included)}ft)",
                cost=extra_cost,
            )
        )

    # -------------------------
    # Panel upgrade (max 1)
    # -------------------------
    upgrade = panel_upgrade(assessment)
    if upgrade is not None:
        upgrade_cost, upgrade_name = upgrade
        labor_hours += PANEL_UPGRADE_HOURS
        additional.append(AdditionalService(name=upgrade_name, cost=upgrade_cost))

    if assessment.charger_type == "nema":
        additional.append(AdditionalService(name="NEMA Outlet Installation", cost=NEMA_OUTLET_COST))

    labor = labor_hours * assessment.labor_rate
    permit = PERMIT_FEE if project.permit_required else D("0")

    # -------------------------
    # Add-ons (volgorde van de config)
    # -------------------------
    wanted = set(assessment.selected_addons)
    addons = [
        SelectedAddon(name=a.name, price=a.price)
        for a in config.optional_addons
        if a.name in wanted
    ]
    addons_cost = sum((a.price for a in addons), D("0"))
    additional_cost = sum((s.cost for s in additional), D("0"))

    # -------------------------
    # Subtotal, markup, tax
    # -------------------------
    subtotal = materials + conduit + labor
    markup_amount = subtotal * (assessment.markup / D("100"))

    if assessment.property_type == "commercial":
        # commercieel: geen tax op labor, markup en permit
        taxable = materials + additional_cost + addons_cost
    else:
        taxable = subtotal + markup_amount + permit + addons_cost + additional_cost

    tax_rate = D(config.tax_rate_for(assessment.state))
    sales_tax = taxable * (tax_rate / D("100"))

    total = subtotal + markup_amount + permit + addons_cost + additional_cost + sales_tax

    return PriceBreakdown(
        materials=materials,
        labor=labor,
        labor_hours=labor_hours,
        conduit=conduit,
        permit=permit,
        additional_services=additional,
        selected_addons=addons,
        additional_services_cost=additional_cost,
        addons_cost=addons_cost,
        subtotal=subtotal,
        markup=assessment.markup,
        markup_amount=markup_amount,
        taxable_amount=taxable,
        sales_tax=sales_tax,
        sales_tax_rate=tax_rate,
        total=total,
    )


# --------------------------------------------------------------------
# Financing
# --------------------------------------------------------------------

def monthly_payment(principal: Decimal, apr: Decimal, months: int) -> Decimal:
    """Standard amortized payment, rounded half-up to the cent."""
    if months <= 0:
        raise ValueError("months moet groter zijn dan 0")

    principal = D(principal)
    apr = D(apr)
    if apr == 0:
        return qmoney(principal / months)

    r = apr / D("100") / D("12")
    growth = (D("1") + r) ** months
    payment = principal * (r * growth) / (growth - D("1"))
    return qmoney(payment)


def term_months(term: str) -> int:
    """Leading integer of a term label ("36 months" -> 36); 12 when there is none."""
    m = re.match(r"\s*(\d+)", term or "")
    if not m or int(m.group(1)) <= 0:
        return DEFAULT_FINANCING_MONTHS
    return int(m.group(1))


def financing_options(total: Decimal, plans: List[FinancingPlan]) -> List[FinancingOption]:
    return [
        FinancingOption(
            term=plan.term,
            monthly_payment=monthly_payment(total, plan.apr, term_months(plan.term)),
            apr=plan.apr,
        )
        for plan in plans
    ]
