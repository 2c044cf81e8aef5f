# evquote/schemas/vehicle.py
from __future__ import annotations

from evquote.schemas.common import CamelModel

DEFAULT_RECOMMENDED_CHARGER = "Level 2, 240V"


class VehicleSpec(CamelModel):
    vehicle: str
    recommended_charger: str = DEFAULT_RECOMMENDED_CHARGER
    max_charging_power: str = "N/A"
    charging_speed: str = "N/A"
