# evquote/schemas/common.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

MONEY = Decimal("0.01")

# Decimal intern, float op de JSON-grens (UI en Airtable verwachten getallen)
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
# percentages, voeten, uren: zelfde serialisatie, andere betekenis
Number = Money


def qmoney(x: Decimal) -> Decimal:
    return Decimal(x).quantize(MONEY, rounding=ROUND_HALF_UP)


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
