# evquote/schemas/assessment.py
from __future__ import annotations

from decimal import Decimal
from typing import List, Literal

from pydantic import ConfigDict, Field, constr
from pydantic.alias_generators import to_camel

from evquote.schemas.common import CamelModel

ConduitType = Literal["surface", "concealed", "underground"]
ChargerType = Literal["hardwired", "nema"]
PanelAge = Literal["new", "old"]


class QuoteForm(CamelModel):
    """
    Contractor assessment for one pricing run.

    Alles wat hier niet in staat mag de UI niet sturen.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    project_id: constr(strip_whitespace=True, min_length=1)  # type: ignore
    distance: Decimal = Field(ge=0, description="Feet from panel to charger")
    conduit_type: ConduitType
    charger_type: ChargerType
    panel_type: str
    panel_capacity: Decimal = Field(ge=0, description="Panel capacity in amps")
    available_slots: int = Field(ge=0)
    panel_age: PanelAge
    state: constr(strip_whitespace=True)  # type: ignore
    install_location: str
    labor_rate: Decimal = Field(ge=0)
    markup: Decimal = Field(ge=0, description="Markup percent on the subtotal")
    property_type: str
    selected_addons: List[str] = Field(default_factory=list)
