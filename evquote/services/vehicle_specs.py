# evquote/services/vehicle_specs.py
from __future__ import annotations

import logging
from typing import Dict

from evquote.repositories.base import RecordStore
from evquote.schemas.vehicle import DEFAULT_RECOMMENDED_CHARGER, VehicleSpec

logger = logging.getLogger(__name__)


def resolve_vehicle_specs(store: RecordStore, table: str) -> Dict[str, VehicleSpec]:
    """
    Map "<make> <model>" -> spec. Best effort: any failure gives an empty map
    and the quote falls back to a generic charger recommendation.
    """
    try:
        records = store.list(table)
    except Exception as e:
        logger.error("Error fetching EV specs: %s", e)
        return {}

    specs: Dict[str, VehicleSpec] = {}
    for record in records:
        fields = record.get("fields") or {}
        vehicle = fields.get("Vehicle") or ""
        if not vehicle:
            continue
        specs[vehicle] = VehicleSpec(
            vehicle=vehicle,
            recommended_charger=fields.get("Recommended Charger") or DEFAULT_RECOMMENDED_CHARGER,
            max_charging_power=str(fields.get("Max Charging Power") or "N/A"),
            charging_speed=str(fields.get("Charging Speed") or "N/A"),
        )
    return specs
