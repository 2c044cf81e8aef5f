import os

# Geen Airtable tijdens tests
os.environ.setdefault("RECORD_STORE_BACKEND", "memory")
os.environ.setdefault("metrics_enabled", "true")

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from pydantic.alias_generators import to_camel

from evquote.repositories.memory import MemoryStore
from evquote.schemas.assessment import QuoteForm
from evquote.schemas.company_config import Addon, CompanyConfig, FinancingPlan
from evquote.schemas.project import Project
from evquote.services.quote_assembler import QuoteAssembler
from evquote.services.quote_lifecycle import QuoteLifecycleManager
from evquote.services.share_links import InMemoryShareLinkStore

PROJECT_ID = "recProject000001"


@pytest.fixture
def fixed_today():
    return date(2026, 10, 17)


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def assessment_data():
    # baseline: surface, binnen included footage, nieuw paneel, hardwired, residentieel
    return {
        "projectId": PROJECT_ID,
        "distance": 10,
        "conduitType": "surface",
        "chargerType": "hardwired",
        "panelType": "Square D",
        "panelCapacity": 200,
        "availableSlots": 4,
        "panelAge": "new",
        "state": "GA",
        "installLocation": "garage-attached",
        "laborRate": 95,
        "markup": 20,
        "propertyType": "residential",
        "selectedAddons": [],
    }


@pytest.fixture
def make_assessment(assessment_data):
    def _make(**overrides) -> QuoteForm:
        data = dict(assessment_data)
        # tests gebruiken snake_case, het formulier is camelCase met extra="forbid"
        data.update({to_camel(k): v for k, v in overrides.items()})
        return QuoteForm.model_validate(data)

    return _make


@pytest.fixture
def config():
    return CompanyConfig(
        included_footage=Decimal("20"),
        optional_addons=[
            Addon(name="Cable Management", price=Decimal("100")),
            Addon(name="Wi-Fi Setup", price=Decimal("50")),
        ],
        financing_plans=[
            FinancingPlan(term="12 months", apr=Decimal("0")),
            FinancingPlan(term="36 months", apr=Decimal("6")),
        ],
        state_tax_rates={"GA": Decimal("4")},
    )


@pytest.fixture
def project():
    return Project(id=PROJECT_ID, customer_name="Dana Whitfield", permit_required=False)


@pytest.fixture
def project_fields():
    return {
        "Customer Name": "Dana Whitfield",
        "Customer Email": "dana@example.com",
        "Customer Phone": "404-555-0147",
        "Customer Address": "12 Peachtree Ln, Atlanta, GA",
        "Project Status": "Photos Uploaded",
        "EV Make": "Tesla",
        "EV Model": "Model 3",
        "Install Location": "garage-attached",
        "Permit Required": False,
    }


@pytest.fixture
def store(project_fields):
    s = MemoryStore()
    s.seed("PROJECTS", project_fields, record_id=PROJECT_ID)
    s.seed(
        "COMPANY_CONFIG",
        {
            "Company Name": "Peach State EV",
            "Included Footage": 20,
            "Labor Rate": 95,
            "Default Markup": 20,
            "Optional Addons": '[{"name": "Cable Management", "price": 100}]',
            "Rebates": '[{"name": "Georgia Power Rebate", "amount": 250}]',
            "Financing Plans": '[{"term": "12 months", "apr": 0}, {"term": "36 months", "apr": 6}]',
            "State Tax Rates": '{"GA": 4}',
        },
    )
    s.seed(
        "EV_CHARGING_SPECS",
        {
            "Vehicle": "Tesla Model 3",
            "Recommended Charger": "Level 2, 48A",
            "Max Charging Power": "11.5 kW",
            "Charging Speed": "44 miles/hour",
        },
    )
    return s


@pytest.fixture
def assembler(store, fixed_today):
    return QuoteAssembler(store, clock=lambda: fixed_today)


@pytest.fixture
def share_links():
    return InMemoryShareLinkStore()


@pytest.fixture
def lifecycle(store, assembler, share_links, fixed_now):
    return QuoteLifecycleManager(
        store,
        assembler,
        share_links,
        public_base_url="https://quotes.example.com",
        clock=lambda: fixed_now,
    )


@pytest.fixture
def client(store, lifecycle):
    from evquote import dependencies
    from evquote.main import app
    from evquote.services.projects import ProjectService

    app.dependency_overrides[dependencies.get_store] = lambda: store
    app.dependency_overrides[dependencies.get_lifecycle] = lambda: lifecycle
    app.dependency_overrides[dependencies.get_project_service] = lambda: ProjectService(store)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
