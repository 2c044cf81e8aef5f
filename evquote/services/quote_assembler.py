# evquote/services/quote_assembler.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from evquote.config import Settings
from evquote.repositories.base import RecordStore
from evquote.schemas.assessment import QuoteForm
from evquote.schemas.company_config import CompanyConfig
from evquote.schemas.project import Project
from evquote.schemas.quote import (
    CustomerInfo,
    InstallationInfo,
    Quote,
    QuoteStatus,
    VehicleInfo,
)
from evquote.schemas.vehicle import DEFAULT_RECOMMENDED_CHARGER, VehicleSpec
from evquote.services.config_resolver import resolve_config
from evquote.services.pricing_engine import compute_price, financing_options
from evquote.services.quote_ids import new_quote_id
from evquote.services.vehicle_specs import resolve_vehicle_specs

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

INSTALL_LOCATION_LABELS = {
    "garage-attached": "Attached Garage",
    "garage-detached": "Detached Garage",
    "driveway": "Driveway",
    "carport": "Carport",
    "exterior-wall": "Exterior Wall",
}

CONDUIT_TYPE_LABELS = {
    "surface": "Surface Mount",
    "concealed": "Concealed/In-Wall",
    "underground": "Underground",
}

CHARGER_TYPE_LABELS = {
    "hardwired": "Hardwired Charger",
    "nema": "NEMA Outlet (14-50)",
}


def _utctoday() -> date:
    return datetime.now(timezone.utc).date()


def _or_na(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        return NOT_AVAILABLE
    return str(value)


def customer_snapshot(project: Project) -> CustomerInfo:
    return CustomerInfo(
        name=_or_na(project.customer_name),
        email=_or_na(project.customer_email),
        phone=_or_na(project.customer_phone),
        address=_or_na(project.customer_address),
    )


def vehicle_snapshot(project: Project, specs: Dict[str, VehicleSpec]) -> Optional[VehicleInfo]:
    make = project.ev_make or ""
    model = project.ev_model or ""
    full_name = f"{make} {model}".strip()
    if not full_name:
        return None

    # exacte, hoofdlettergevoelige match op "<make> <model>"
    spec = specs.get(full_name)
    return VehicleInfo(
        make=make,
        model=model,
        charging_requirements=spec.recommended_charger if spec else DEFAULT_RECOMMENDED_CHARGER,
        max_charging_power=spec.max_charging_power if spec else None,
        charging_speed=spec.charging_speed if spec else None,
    )


def installation_snapshot(assessment: QuoteForm) -> InstallationInfo:
    return InstallationInfo(
        location=INSTALL_LOCATION_LABELS.get(assessment.install_location, assessment.install_location),
        distance=assessment.distance,
        conduit_type=CONDUIT_TYPE_LABELS.get(assessment.conduit_type, assessment.conduit_type),
        charger_type=CHARGER_TYPE_LABELS.get(assessment.charger_type, assessment.charger_type),
    )


def build_quote(
    assessment: QuoteForm,
    project: Project,
    config: CompanyConfig,
    specs: Dict[str, VehicleSpec],
    *,
    quote_id: str,
    today: date,
    validity_days: int = 30,
) -> Quote:
    """Pure part of quote assembly: all inputs already fetched."""
    pricing = compute_price(assessment, config, project)

    return Quote(
        quote_id=quote_id,
        project_id=assessment.project_id,
        date=today,
        valid_until=today + timedelta(days=validity_days),
        customer=customer_snapshot(project),
        vehicle=vehicle_snapshot(project, specs),
        installation=installation_snapshot(assessment),
        pricing=pricing,
        rebates=list(config.rebates),
        financing_options=financing_options(pricing.total, config.financing_plans),
        status=QuoteStatus.DRAFT,
    )


class QuoteAssembler:
    def __init__(
        self,
        store: RecordStore,
        *,
        projects_table: str = "PROJECTS",
        config_table: str = "COMPANY_CONFIG",
        specs_table: str = "EV_CHARGING_SPECS",
        validity_days: int = 30,
        clock: Callable[[], date] = _utctoday,
    ):
        self.store = store
        self.projects_table = projects_table
        self.config_table = config_table
        self.specs_table = specs_table
        self.validity_days = validity_days
        self.clock = clock

    @classmethod
    def from_settings(cls, store: RecordStore, s: Settings, **kwargs) -> "QuoteAssembler":
        return cls(
            store,
            projects_table=s.PROJECTS_TABLE,
            config_table=s.COMPANY_CONFIG_TABLE,
            specs_table=s.EV_SPECS_TABLE,
            validity_days=s.QUOTE_VALIDITY_DAYS,
            **kwargs,
        )

    def fetch_inputs(self, project_id: str) -> Tuple[Project, CompanyConfig, Dict[str, VehicleSpec]]:
        # drie onafhankelijke reads, parallel
        with ThreadPoolExecutor(max_workers=3) as executor:
            project_f = executor.submit(self.store.get, self.projects_table, project_id)
            config_f = executor.submit(resolve_config, self.store, self.config_table)
            specs_f = executor.submit(resolve_vehicle_specs, self.store, self.specs_table)

            project = Project.from_record(project_f.result())
            config = config_f.result()
            specs = specs_f.result()
        return project, config, specs

    def assemble_quote(self, assessment: QuoteForm, *, quote_id: Optional[str] = None) -> Quote:
        project, config, specs = self.fetch_inputs(assessment.project_id)

        quote_id = quote_id or project.quote_id or new_quote_id()
        quote = build_quote(
            assessment,
            project,
            config,
            specs,
            quote_id=quote_id,
            today=self.clock(),
            validity_days=self.validity_days,
        )
        logger.info(
            "assembled quote %s for project %s (total=%s)",
            quote.quote_id,
            quote.project_id,
            quote.pricing.total,
        )
        return quote
