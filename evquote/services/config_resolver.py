# evquote/services/config_resolver.py
from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from evquote.repositories.base import Record, RecordStore
from evquote.schemas.company_config import (
    DEFAULT_COMPANY_NAME,
    DEFAULT_INCLUDED_FOOTAGE,
    DEFAULT_LABOR_RATE,
    DEFAULT_MARKUP,
    Addon,
    CompanyConfig,
    FinancingPlan,
    Rebate,
    default_company_config,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_json_field(value: Any, *, field: str, empty: Any) -> Any:
    """
    Airtable long-text kolommen bevatten JSON als string.
    Kapotte JSON => lege waarde, geen exception.
    """
    if value is None:
        return empty
    if isinstance(value, str):
        if not value.strip():
            return empty
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("company config field %r is not valid JSON; using empty value", field)
            return empty
    return value


def to_decimal(value: Any, default: Optional[Decimal]) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return default
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not d.is_finite():
        return default
    return d


def _catalog(raw: Any, model: Type[M], field: str) -> List[M]:
    if not isinstance(raw, list):
        if raw not in ([], None):
            logger.warning("company config field %r is not a list; ignoring it", field)
        return []

    items: List[M] = []
    for entry in raw:
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning("dropping invalid %s entry %r: %s", field, entry, e.errors())
    return items


def _tax_table(raw: Any) -> Dict[str, Decimal]:
    if not isinstance(raw, dict):
        if raw not in ([], {}, None):
            logger.warning("company config field 'State Tax Rates' is not an object; ignoring it")
        return {}

    rates: Dict[str, Decimal] = {}
    for state, rate in raw.items():
        value = to_decimal(rate, None)
        if value is None:
            logger.warning("dropping non-numeric tax rate for %r: %r", state, rate)
            continue
        rates[str(state)] = value
    return rates


def config_from_record(record: Record) -> CompanyConfig:
    fields = record.get("fields") or {}

    name = fields.get("Company Name")
    if not isinstance(name, str) or not name.strip():
        name = DEFAULT_COMPANY_NAME

    return CompanyConfig(
        company_name=name,
        included_footage=to_decimal(fields.get("Included Footage"), DEFAULT_INCLUDED_FOOTAGE),
        labor_rate=to_decimal(fields.get("Labor Rate"), DEFAULT_LABOR_RATE),
        default_markup=to_decimal(fields.get("Default Markup"), DEFAULT_MARKUP),
        optional_addons=_catalog(
            parse_json_field(fields.get("Optional Addons"), field="Optional Addons", empty=[]),
            Addon,
            "Optional Addons",
        ),
        rebates=_catalog(
            parse_json_field(fields.get("Rebates"), field="Rebates", empty=[]),
            Rebate,
            "Rebates",
        ),
        financing_plans=_catalog(
            parse_json_field(fields.get("Financing Plans"), field="Financing Plans", empty=[]),
            FinancingPlan,
            "Financing Plans",
        ),
        state_tax_rates=_tax_table(
            parse_json_field(fields.get("State Tax Rates"), field="State Tax Rates", empty={})
        ),
    )


def resolve_config(store: RecordStore, table: str) -> CompanyConfig:
    """Single active CompanyConfig record, or the built-in default when the table is empty."""
    records = store.list(table, max_records=1)
    if not records:
        logger.info("no company config record found; using defaults")
        return default_company_config()
    return config_from_record(records[0])
